"""
Snippet extraction for ranked conversations.
"""

import re
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Dict, List

from chatwise_recall.config.constants import DEFAULT_SNIPPET_WINDOW, SNIPPET_ELLIPSIS
from chatwise_recall.database_management.query_planner import (
    Hit,
    QueryPlanner,
    SearchQuery,
)


@dataclass(frozen=True)
class Snippet:
    """A bounded excerpt of one hit."""

    message_id: str
    role: str
    created_at: int
    text: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "messageId": self.message_id,
            "role": self.role,
            "createdAt": self.created_at,
            "text": self.text,
            "source": self.source,
        }


def term_pattern(term: str) -> re.Pattern:
    """Case-insensitive pattern for a normalized term.

    Each single space in the term stands for any whitespace run in the
    original text, which normalize_text collapsed.
    """
    return re.compile(
        r"\s+".join(re.escape(part) for part in term.split(" ")), re.IGNORECASE
    )


def find_anchor(text: str, terms: Sequence[str]) -> int:
    """Offset in the original text of the earliest term occurrence, 0 if none."""
    offsets = []
    for term in terms:
        if not term:
            continue
        match = term_pattern(term).search(text)
        if match:
            offsets.append(match.start())
    return min(offsets) if offsets else 0


def extract_snippet(
    text: str, terms: Sequence[str], window: int = DEFAULT_SNIPPET_WINDOW
) -> str:
    """Cut [anchor - window, anchor + window] out of text, marking clamped edges.

    The result is never longer than 2 * window + 2 characters.
    """
    text = text or ""
    anchor = find_anchor(text, terms)
    start = max(0, anchor - window)
    end = min(len(text), anchor + window)

    snippet = text[start:end]
    if start > 0:
        snippet = SNIPPET_ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + SNIPPET_ELLIPSIS
    return snippet


def _newest_first(hit: Hit) -> tuple:
    return (hit.timestamp_ms, hit.message_id or "")


class SnippetExtractor:
    """Builds per-conversation snippets by re-deriving candidates."""

    def __init__(self, planner: QueryPlanner) -> None:
        self.planner = planner

    def extract(
        self,
        query: SearchQuery,
        conversation_ids: Sequence[str],
        limit_snippets: int,
        window: int = DEFAULT_SNIPPET_WINDOW,
        recency_listing: bool = False,
    ) -> Dict[str, List[Snippet]]:
        """Top snippets for each conversation, newest first.

        Args:
            query: The query the conversations were ranked with
            conversation_ids: Ranked conversation ids
            limit_snippets: Maximum snippets per conversation
            window: Characters kept on each side of the anchor
            recency_listing: Keep every candidate instead of matching terms

        Returns:
            Mapping of conversation id to its snippets
        """
        if not conversation_ids:
            return {}

        candidates = self.planner.derive_candidates(query, list(conversation_ids))
        if recency_listing:
            hits = [
                hit
                for hit in candidates
                if hit.conversation_id not in query.exclude_conversation_ids
                and not self.planner.is_self_excluded(hit, query)
            ]
        else:
            hits = self.planner.filter_candidates(candidates, query)

        by_conversation: Dict[str, List[Hit]] = defaultdict(list)
        for hit in hits:
            by_conversation[hit.conversation_id].append(hit)

        snippets: Dict[str, List[Snippet]] = {}
        for conversation_id in conversation_ids:
            ordered = sorted(
                by_conversation.get(conversation_id, []),
                key=_newest_first,
                reverse=True,
            )
            snippets[conversation_id] = [
                Snippet(
                    message_id=hit.message_id or "",
                    role=hit.role or "",
                    created_at=hit.timestamp_ms,
                    text=extract_snippet(hit.original_text, query.terms, window),
                    source=hit.source,
                )
                for hit in ordered[:limit_snippets]
            ]
        return snippets
