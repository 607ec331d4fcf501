"""
Multi-source query planning over titles, message content and tool metadata.

Every source is turned into a stream of Hit records sharing one shape. The
store only narrows rows by time window and conversation id; term matching,
exclusions and the self-exclusion cutoff are applied here.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from chatwise_recall.config.constants import (
    DEFAULT_LIMIT_CHATS,
    MATCH_ALL,
    MATCH_ANY,
    ROLE_USER,
    SOURCE_CONTENT,
    SOURCE_TITLE,
    SOURCE_TOOL,
)
from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.database_management.text_normalizer import normalize_text
from chatwise_recall.database_management.time_window import (
    TimeWindow,
    to_milliseconds,
)
from chatwise_recall.utils.errors import InvalidArgumentError
from chatwise_recall.utils.logger import log_debug


@dataclass(frozen=True)
class Hit:
    """One candidate unit of searchable text."""

    source: str
    conversation_id: str
    message_id: Optional[str]
    timestamp: int
    timestamp_ms: int
    role: Optional[str]
    normalized_text: str
    original_text: str


@dataclass(frozen=True)
class SearchQuery:
    """Resolved search parameters for one call."""

    terms: List[str]
    window: TimeWindow
    match: str = MATCH_ANY
    exclude_terms: List[str] = field(default_factory=list)
    exclude_conversation_ids: frozenset[str] = frozenset()
    include_tools: bool = True
    user_only: bool = False
    # User content newer than this (epoch ms) is never a hit; None disables.
    recent_user_cutoff_ms: Optional[int] = None
    limit_chats: int = DEFAULT_LIMIT_CHATS

    def __post_init__(self) -> None:
        if self.match not in (MATCH_ANY, MATCH_ALL):
            raise InvalidArgumentError(
                f"match must be '{MATCH_ANY}' or '{MATCH_ALL}', got {self.match!r}"
            )

    @property
    def sources(self) -> List[str]:
        """Sources searched for this query, in derivation order."""
        sources = []
        if not self.user_only:
            sources.append(SOURCE_TITLE)
        sources.append(SOURCE_CONTENT)
        if self.include_tools and not self.user_only:
            sources.append(SOURCE_TOOL)
        return sources


@dataclass
class RankedConversation:
    """Per-conversation aggregate of surviving hits."""

    conversation_id: str
    title: str
    hits: int
    first_ms: int
    last_ms: int


def matches_terms(text: str, terms: Sequence[str], match: str = MATCH_ANY) -> bool:
    """Check normalized text against the term set under a match policy."""
    if not terms:
        return False
    if match == MATCH_ALL:
        return all(term in text for term in terms)
    return any(term in text for term in terms)


def matches_excluded(text: str, exclude_terms: Iterable[str]) -> bool:
    """Return True if any excluded term occurs in the normalized text."""
    return any(term in text for term in exclude_terms)


def rank_key(conversation: RankedConversation) -> tuple:
    return (-conversation.hits, -conversation.last_ms, conversation.conversation_id)


class QueryPlanner:
    """Derives, filters, aggregates and ranks hits for a search."""

    def __init__(self, store: ChatStore) -> None:
        self.store = store

    def derive_candidates(
        self, query: SearchQuery, conversation_ids: Sequence[str] | None = None
    ) -> List[Hit]:
        """Build the unfiltered candidate stream for every enabled source.

        Args:
            query: Resolved search parameters
            conversation_ids: Optional restriction to these conversations

        Returns:
            Hits whose timestamp satisfies the query window
        """
        sources = query.sources
        candidates: List[Hit] = []

        if SOURCE_TITLE in sources:
            for row in self.store.fetch_title_rows(query.window, conversation_ids):
                timestamp = row.activity_at
                if timestamp is None or not query.window.contains(timestamp):
                    continue
                title = row.title or ""
                candidates.append(
                    Hit(
                        source=SOURCE_TITLE,
                        conversation_id=row.id,
                        message_id=None,
                        timestamp=timestamp,
                        timestamp_ms=to_milliseconds(timestamp),
                        role=None,
                        normalized_text=normalize_text(title),
                        original_text=title,
                    )
                )

        messages = self.store.fetch_message_rows(
            query.window, conversation_ids, user_only=query.user_only
        )
        for message in messages:
            if not query.window.contains(message.created_at):
                continue
            timestamp_ms = to_milliseconds(message.created_at)
            candidates.append(
                Hit(
                    source=SOURCE_CONTENT,
                    conversation_id=message.conversation_id,
                    message_id=message.id,
                    timestamp=message.created_at,
                    timestamp_ms=timestamp_ms,
                    role=message.role,
                    normalized_text=normalize_text(message.content),
                    original_text=message.content,
                )
            )
            if SOURCE_TOOL in sources and message.meta and message.meta.strip():
                candidates.append(
                    Hit(
                        source=SOURCE_TOOL,
                        conversation_id=message.conversation_id,
                        message_id=message.id,
                        timestamp=message.created_at,
                        timestamp_ms=timestamp_ms,
                        role=message.role,
                        normalized_text=normalize_text(message.meta),
                        original_text=message.meta,
                    )
                )

        return candidates

    def is_self_excluded(self, hit: Hit, query: SearchQuery) -> bool:
        """Drop user prompts newer than the recency cutoff."""
        if query.recent_user_cutoff_ms is None:
            return False
        return (
            hit.source == SOURCE_CONTENT
            and hit.role == ROLE_USER
            and hit.timestamp_ms > query.recent_user_cutoff_ms
        )

    def filter_candidates(
        self, candidates: Iterable[Hit], query: SearchQuery
    ) -> List[Hit]:
        """Apply the match policy, excluded terms, excluded ids and self-exclusion."""
        return [
            hit
            for hit in candidates
            if hit.conversation_id not in query.exclude_conversation_ids
            and matches_terms(hit.normalized_text, query.terms, query.match)
            and not matches_excluded(hit.normalized_text, query.exclude_terms)
            and not self.is_self_excluded(hit, query)
        ]

    def find_hits(
        self, query: SearchQuery, conversation_ids: Sequence[str] | None = None
    ) -> List[Hit]:
        """Surviving hits for the query, optionally restricted to some conversations."""
        return self.filter_candidates(
            self.derive_candidates(query, conversation_ids), query
        )

    def rank_conversations(self, query: SearchQuery) -> List[RankedConversation]:
        """Aggregate hits per conversation, rank them and truncate.

        Conversations without a chat row are dropped.
        """
        hits = self.find_hits(query)

        aggregates: Dict[str, RankedConversation] = {}
        for hit in hits:
            current = aggregates.get(hit.conversation_id)
            if current is None:
                aggregates[hit.conversation_id] = RankedConversation(
                    conversation_id=hit.conversation_id,
                    title="",
                    hits=1,
                    first_ms=hit.timestamp_ms,
                    last_ms=hit.timestamp_ms,
                )
                continue
            current.hits += 1
            current.first_ms = min(current.first_ms, hit.timestamp_ms)
            current.last_ms = max(current.last_ms, hit.timestamp_ms)

        titles = self.store.fetch_titles(list(aggregates))
        ranked = []
        for conversation_id, aggregate in aggregates.items():
            if conversation_id not in titles:
                continue
            aggregate.title = titles[conversation_id]
            ranked.append(aggregate)

        ranked.sort(key=rank_key)
        log_debug(
            f"Ranked {len(ranked)} conversations from {len(hits)} hits",
            {"terms": query.terms, "match": query.match},
        )
        return ranked[: query.limit_chats]

    def list_recent(self, query: SearchQuery) -> List[RankedConversation]:
        """Recency listing: conversations active in the window, latest first.

        The hit count of each entry is its message count.
        """
        listing = []
        for row in self.store.fetch_activity_rows(query.window):
            if row.conversation_id in query.exclude_conversation_ids:
                continue
            if row.last_at is None or not query.window.contains(row.last_at):
                continue
            last_ms = to_milliseconds(row.last_at)
            first_ms = to_milliseconds(row.first_at) if row.first_at is not None else last_ms
            listing.append(
                RankedConversation(
                    conversation_id=row.conversation_id,
                    title=row.title,
                    hits=row.message_count,
                    first_ms=first_ms,
                    last_ms=last_ms,
                )
            )

        listing.sort(key=lambda c: (-c.last_ms, c.conversation_id))
        return listing[: query.limit_chats]
