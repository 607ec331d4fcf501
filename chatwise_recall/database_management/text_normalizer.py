"""
Text normalization for search matching and cross-conversation signatures.
"""

import re
from typing import Iterable

from chatwise_recall.config.constants import (
    MAX_QUERY_TERMS,
    MAX_TOKENIZED_TERMS,
    RECENT_WILDCARDS,
)

_MULTI_SPACE = re.compile(r" {2,}")
# Anything that is not a letter or a digit; \w also matches "_", so exclude it.
_TOKEN_SEPARATOR = re.compile(r"[\W_]+", re.UNICODE)


def normalize_text(text: str | None) -> str:
    """Lowercase, flatten line breaks and tabs, collapse spaces and trim.

    normalize_text(normalize_text(x)) == normalize_text(x) for every x.
    """
    if not text:
        return ""

    flattened = (
        text.lower().replace("\r", " ").replace("\t", " ").replace("\n", " ")
    )
    return _MULTI_SPACE.sub(" ", flattened).strip()


def tokenize(query: str | None) -> list[str]:
    """Split a free-text query into at most MAX_TOKENIZED_TERMS tokens."""
    lowered = (query or "").lower().strip()
    if not lowered:
        return []

    tokens = [t for t in _TOKEN_SEPARATOR.split(lowered) if t]
    return tokens[:MAX_TOKENIZED_TERMS]


def is_recent_wildcard(raw_query: str | None) -> bool:
    """Return True if the raw query asks for a recency listing."""
    stripped = (raw_query or "").strip()
    return stripped in RECENT_WILDCARDS or stripped.lower() in RECENT_WILDCARDS


def normalize_terms(terms: Iterable[str]) -> list[str]:
    """Normalize an explicit term list, keeping phrases intact.

    Only empty entries are dropped; a sentinel next to real terms is a term.
    """
    normalized = []
    for term in terms:
        if term is None:
            continue
        cleaned = normalize_text(str(term))
        if cleaned:
            normalized.append(cleaned)
    return normalized[:MAX_QUERY_TERMS]


def build_query_terms(intent_query: str | list[str] | None) -> list[str]:
    """Build the search terms for a string or list intent query."""
    if isinstance(intent_query, list):
        if is_recent_query(intent_query):
            return []
        return normalize_terms(intent_query)
    return tokenize(intent_query)


def is_recent_query(intent_query: str | list[str] | None) -> bool:
    """Return True if the whole query is a recency sentinel.

    A list qualifies when every non-empty entry is a sentinel.
    """
    if isinstance(intent_query, list):
        entries = [str(t).strip() for t in intent_query if t is not None]
        entries = [entry for entry in entries if entry]
        return bool(entries) and all(is_recent_wildcard(entry) for entry in entries)
    return is_recent_wildcard(intent_query)


def raw_query_text(intent_query: str | list[str] | None) -> str:
    """Return the raw query as a single string (lists are space-joined)."""
    if isinstance(intent_query, list):
        return " ".join(str(t) for t in intent_query if t is not None).strip()
    return str(intent_query or "").strip()


def signature(role: str | None, content: str | None) -> tuple[str, str]:
    """Canonical (role, content) key used to align duplicate messages."""
    normalized = normalize_text(content)
    while "  " in normalized:
        normalized = normalized.replace("  ", " ")
    return (role or "").lower(), normalized
