"""
Cross-conversation merge and alignment.

Each requested conversation is laid out along its own timeline with 1-based
local sequence numbers, then messages whose (role, normalized content)
signature occurs in every requested conversation are listed once in a
common section with references back into each conversation.
"""

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Dict, List, Tuple

from chatwise_recall.config.constants import (
    MESSAGE_ID_FRAGMENT_LENGTH,
    MIN_MERGE_CONVERSATIONS,
    UNTITLED_CONVERSATION,
)
from chatwise_recall.database_management.chat_store import ChatStore, MessageRow
from chatwise_recall.database_management.metadata_formatter import (
    format_tool_sections,
    role_prefix,
)
from chatwise_recall.database_management.text_normalizer import signature
from chatwise_recall.database_management.time_window import (
    format_timestamp,
    to_milliseconds,
)
from chatwise_recall.utils.errors import InvalidArgumentError
from chatwise_recall.utils.logger import log_info
from chatwise_recall.utils.performance import timed_operation

MERGE_PREAMBLE = (
    "Instructions: below are several conversations, each laid out along its own "
    "timeline, followed by a common section aligning the messages they share. "
    "Work from:\n"
    "- The per-conversation narrative: keep references, progressions and "
    "corrections in their original order\n"
    "- The common alignment: [Common] entries point into each conversation "
    "by index (1#3 is message 3 of conversation 1); state shared conclusions "
    "and differences.\n"
)
SECTION_SEPARATOR = "---\n"
METADATA_HEADING = "Metadata:\n"
NARRATIVE_HEADING = "Per-conversation narrative:\n"
COMMON_HEADING = (
    "Common alignment (present in every conversation, shown once, "
    "with references into each conversation):\n"
)
NO_MESSAGES_LINE = "(no messages)\n"


@dataclass(frozen=True)
class NumberedMessage:
    """A message with its position inside one merge call."""

    ordinal: int
    seq: int
    message: MessageRow

    @property
    def timestamp_ms(self) -> int:
        return to_milliseconds(self.message.created_at)

    @property
    def id_fragment(self) -> str:
        return self.message.id[:MESSAGE_ID_FRAGMENT_LENGTH]

    @property
    def ref(self) -> str:
        return f"{self.ordinal}#{self.seq}({self.id_fragment})"


@dataclass
class CommonGroup:
    """Messages sharing one signature across every requested conversation."""

    signature: Tuple[str, str]
    occurrences: List[NumberedMessage]

    @property
    def representative(self) -> NumberedMessage:
        """Earliest occurrence; equal timestamps fall back to the message id."""
        return min(
            self.occurrences, key=lambda n: (n.timestamp_ms, n.message.id)
        )

    @property
    def refs(self) -> List[NumberedMessage]:
        return sorted(self.occurrences, key=lambda n: (n.ordinal, n.seq))


def prepare_conversation_ids(conversation_ids: Sequence[str]) -> List[str]:
    """Trim ids, drop empties and duplicates, keeping first-seen order."""
    prepared: List[str] = []
    for raw_id in conversation_ids or []:
        cleaned = str(raw_id).strip() if raw_id is not None else ""
        if cleaned and cleaned not in prepared:
            prepared.append(cleaned)
    return prepared


def number_messages(ordinal: int, messages: Sequence[MessageRow]) -> List[NumberedMessage]:
    """Assign 1-based local sequence numbers in (timestamp, id) order."""
    ordered = sorted(messages, key=lambda m: (to_milliseconds(m.created_at), m.id))
    return [
        NumberedMessage(ordinal=ordinal, seq=seq, message=message)
        for seq, message in enumerate(ordered, start=1)
    ]


def find_common_groups(
    numbered: Dict[int, List[NumberedMessage]], requested_count: int
) -> List[CommonGroup]:
    """Signatures covered by every requested conversation, earliest first."""
    groups: Dict[Tuple[str, str], List[NumberedMessage]] = defaultdict(list)
    for messages in numbered.values():
        for item in messages:
            groups[signature(item.message.role, item.message.content)].append(item)

    common = [
        CommonGroup(signature=sig, occurrences=items)
        for sig, items in groups.items()
        if len({item.ordinal for item in items}) == requested_count
    ]
    common.sort(
        key=lambda g: (g.representative.timestamp_ms, g.representative.message.id)
    )
    return common


def format_message_line(
    item: NumberedMessage, label: str, include_tools: bool
) -> str:
    """One narrative line plus its tool blocks when requested."""
    message = item.message
    line = (
        f"[{label}]({item.id_fragment} {format_timestamp(message.created_at)}) "
        f"{role_prefix(message.role)}{message.content}\n"
    )
    if include_tools and message.meta:
        line += format_tool_sections(message.meta)
    return line


def format_time_range(messages: Sequence[MessageRow]) -> str:
    if not messages:
        return "-"
    timestamps = [m.created_at for m in messages]
    earliest = min(timestamps, key=to_milliseconds)
    latest = max(timestamps, key=to_milliseconds)
    return f"{format_timestamp(earliest)} ~ {format_timestamp(latest)}"


class MergeAlignmentEngine:
    """Builds the merged, aligned view of several conversations."""

    def __init__(self, store: ChatStore) -> None:
        self.store = store

    def merge(self, conversation_ids: Sequence[str], include_tools: bool = True) -> str:
        """Merge two or more conversations into one aligned text.

        Args:
            conversation_ids: Ordered ids; their order defines the ordinals
            include_tools: Render tool calls and results under each message

        Returns:
            The merged text

        Raises:
            InvalidArgumentError: Fewer than two usable ids
            NotFoundError: The database file is missing
        """
        ids = prepare_conversation_ids(conversation_ids)
        if len(ids) < MIN_MERGE_CONVERSATIONS:
            raise InvalidArgumentError(
                f"At least {MIN_MERGE_CONVERSATIONS} chatIds are required to merge, "
                f"got {len(ids)}"
            )
        self.store.ensure_exists()

        with timed_operation("merge_conversations"):
            titles = self.store.fetch_titles(ids)
            raw_messages: Dict[int, List[MessageRow]] = {}
            numbered: Dict[int, List[NumberedMessage]] = {}
            for ordinal, conversation_id in enumerate(ids, start=1):
                raw_messages[ordinal] = self.store.fetch_conversation_messages(
                    conversation_id
                )
                numbered[ordinal] = number_messages(ordinal, raw_messages[ordinal])

            common = find_common_groups(numbered, len(ids))

            output = MERGE_PREAMBLE
            output += SECTION_SEPARATOR
            output += METADATA_HEADING
            for ordinal, conversation_id in enumerate(ids, start=1):
                title = titles.get(conversation_id) or UNTITLED_CONVERSATION
                output += (
                    f"- Conversation {ordinal}: {conversation_id} | Title: {title} "
                    f"| Time: {format_time_range(raw_messages[ordinal])}\n"
                )

            output += SECTION_SEPARATOR
            output += NARRATIVE_HEADING
            for ordinal in range(1, len(ids) + 1):
                output += f"—— Conversation {ordinal} ——\n"
                if not numbered[ordinal]:
                    output += NO_MESSAGES_LINE
                for item in numbered[ordinal]:
                    output += format_message_line(
                        item, f"{item.ordinal}#{item.seq}", include_tools
                    )

            output += SECTION_SEPARATOR
            output += COMMON_HEADING
            for group in common:
                representative = group.representative.message
                refs = ",".join(item.ref for item in group.refs)
                output += (
                    f"[Common]{role_prefix(representative.role)}"
                    f"{representative.content}  | Refs: {refs}\n"
                )

        log_info(
            f"Merged {len(ids)} conversations with {len(common)} common messages",
            {"chatIds": ids},
        )
        return output.strip()
