"""
Conversation search: planning, ranking, snippets, confidence and guidance.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chatwise_recall.config.constants import (
    DEFAULT_EXCLUDE_CURRENT_CHAT,
    DEFAULT_INCLUDE_TOOLS_IN_SEARCH,
    DEFAULT_LIMIT_CHATS,
    DEFAULT_LIMIT_SNIPPETS,
    DEFAULT_RECENT_USER_SECS,
    DEFAULT_SNIPPET_WINDOW,
    GATHER_TOOL_NAME,
    MATCH_ANY,
    MAX_SUGGESTED_CHATS,
    PRECISION_BASIC,
    PRECISION_FUZZY,
    SEARCH_TOOL_NAME,
)
from chatwise_recall.config.search_config import SearchConfig
from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.database_management.confidence import ConfidenceEstimator
from chatwise_recall.database_management.query_planner import (
    QueryPlanner,
    RankedConversation,
    SearchQuery,
)
from chatwise_recall.database_management.self_exclusion import (
    ConversationResolver,
    recent_user_cutoff_ms,
)
from chatwise_recall.database_management.snippet_extractor import (
    Snippet,
    SnippetExtractor,
)
from chatwise_recall.database_management.text_normalizer import (
    build_query_terms,
    is_recent_query,
    normalize_text,
    raw_query_text,
)
from chatwise_recall.database_management.time_window import (
    now_ms,
    resolve_time_window,
)
from chatwise_recall.utils.error_handling import safe_execute
from chatwise_recall.utils.logger import log_info
from chatwise_recall.utils.performance import log_operation_time, start_timer

STOP_NO_TERMS = "no terms"
STOP_RECENT_WILDCARD = "returned_recent_wildcard"


@dataclass
class SearchRequest:
    """Search arguments after type coercion and clamping."""

    intent_query: Any = ""
    time_window: Any = None
    precision_mode: str = PRECISION_BASIC
    include_tools: bool = DEFAULT_INCLUDE_TOOLS_IN_SEARCH
    exclude_terms: List[str] = field(default_factory=list)
    exclude_chat_ids: List[str] = field(default_factory=list)
    exclude_current: bool = DEFAULT_EXCLUDE_CURRENT_CHAT
    exclude_recent_user_secs: int = DEFAULT_RECENT_USER_SECS
    user_only: bool = False
    match: str = MATCH_ANY
    limit_chats: int = DEFAULT_LIMIT_CHATS
    limit_snippets: int = DEFAULT_LIMIT_SNIPPETS
    snippet_window: int = DEFAULT_SNIPPET_WINDOW
    current_conversation_id: Optional[str] = None


def result_entry(
    conversation: RankedConversation, snippets: List[Snippet]
) -> Dict[str, Any]:
    return {
        "chatId": conversation.conversation_id,
        "title": conversation.title,
        "hits": conversation.hits,
        "timeRange": {"from": conversation.first_ms, "to": conversation.last_ms},
        "snippets": [snippet.to_dict() for snippet in snippets],
    }


def gather_suggestion(top_chat_ids: List[str], why: str) -> Dict[str, Any]:
    count = max(1, min(MAX_SUGGESTED_CHATS, len(top_chat_ids)))
    return {
        "tool": GATHER_TOOL_NAME,
        "args": {"chatIds": top_chat_ids[:count], "includeTools": False},
        "why": why,
    }


class ConversationSearch:
    """Runs one search call end to end against a ChatStore."""

    def __init__(
        self,
        store: ChatStore,
        resolver: ConversationResolver | None = None,
        config: SearchConfig | None = None,
        current_ms: int | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.planner = QueryPlanner(store)
        self.snippet_extractor = SnippetExtractor(self.planner)
        self.confidence = ConfidenceEstimator(config)
        self.current_ms = current_ms

    def resolve_excluded_ids(self, request: SearchRequest) -> List[str]:
        """Explicit exclusions plus the current conversation when requested."""
        excluded = []
        for raw_id in request.exclude_chat_ids:
            cleaned = str(raw_id).strip()
            if cleaned and cleaned not in excluded:
                excluded.append(cleaned)

        if not request.exclude_current:
            return excluded

        current = (request.current_conversation_id or "").strip()
        if not current and self.resolver is not None:
            resolved, ok = safe_execute(
                "resolve_current_conversation", self.resolver.resolve, self.store
            )
            current = resolved if ok and resolved else ""
        if current and current not in excluded:
            excluded.append(current)
        return excluded

    def search(self, request: SearchRequest) -> Dict[str, Any]:
        """Search conversations and build the response payload.

        Raises:
            NotFoundError: The database file is missing
            InvalidArgumentError: Malformed time window or match policy
            UnavailableError: The database cannot be read
        """
        start_time = start_timer()
        current_ms = self.current_ms if self.current_ms is not None else now_ms()

        window = resolve_time_window(request.time_window, current_ms)
        self.store.ensure_exists()

        exclude_terms = [
            normalized
            for normalized in (normalize_text(str(t)) for t in request.exclude_terms)
            if normalized
        ]
        excluded_ids = self.resolve_excluded_ids(request)
        terms = build_query_terms(request.intent_query)
        raw_query = raw_query_text(request.intent_query)

        query = SearchQuery(
            terms=terms,
            window=window,
            match=request.match,
            exclude_terms=exclude_terms,
            exclude_conversation_ids=frozenset(excluded_ids),
            include_tools=request.include_tools,
            user_only=request.user_only,
            recent_user_cutoff_ms=recent_user_cutoff_ms(
                request.exclude_recent_user_secs, current_ms
            ),
            limit_chats=request.limit_chats,
        )

        if not terms:
            if not is_recent_query(request.intent_query):
                return self._response(0, [], STOP_NO_TERMS, [], {}, exclude_terms)
            response = self._recency_listing(query, request, exclude_terms)
        else:
            response = self._ranked_search(query, request, raw_query, exclude_terms)

        log_operation_time(
            "search_conversations",
            start_time,
            extra_info=f"{len(response['results'])} results",
        )
        return response

    def _ranked_search(
        self,
        query: SearchQuery,
        request: SearchRequest,
        raw_query: str,
        exclude_terms: List[str],
    ) -> Dict[str, Any]:
        ranked = self.planner.rank_conversations(query)
        top_chat_ids = [c.conversation_id for c in ranked]
        snippets = self.snippet_extractor.extract(
            query, top_chat_ids, request.limit_snippets, request.snippet_window
        )
        results = [result_entry(c, snippets.get(c.conversation_id, [])) for c in ranked]
        confidence = self.confidence.search_confidence(ranked)

        if results:
            next_actions = [
                gather_suggestion(
                    top_chat_ids,
                    "Pull full context for top candidates while minimizing tokens; "
                    "enable includeTools=true later if needed",
                )
            ]
        else:
            alternate = (
                PRECISION_FUZZY
                if request.precision_mode == PRECISION_BASIC
                else PRECISION_BASIC
            )
            next_actions = [
                {
                    "tool": SEARCH_TOOL_NAME,
                    "args": {"intent_query": raw_query, "precision_mode": alternate},
                    "why": "Try alternate precision mode",
                }
            ]

        log_info(
            f"Search matched {len(results)} conversations",
            {"terms": query.terms, "confidence": confidence},
        )
        return self._response(
            confidence,
            results,
            self.confidence.stop_condition(),
            next_actions,
            {"terms": query.terms},
            exclude_terms,
        )

    def _recency_listing(
        self, query: SearchQuery, request: SearchRequest, exclude_terms: List[str]
    ) -> Dict[str, Any]:
        listing = self.planner.list_recent(query)
        top_chat_ids = [c.conversation_id for c in listing]
        snippets = self.snippet_extractor.extract(
            query,
            top_chat_ids,
            request.limit_snippets,
            request.snippet_window,
            recency_listing=True,
        )
        results = [result_entry(c, snippets.get(c.conversation_id, [])) for c in listing]
        next_actions = (
            [gather_suggestion(top_chat_ids, "Pull full context for the most recent chats")]
            if results
            else []
        )
        return self._response(
            self.confidence.recency_confidence(listing),
            results,
            STOP_RECENT_WILDCARD,
            next_actions,
            {},
            exclude_terms,
        )

    def _response(
        self,
        confidence: float,
        results: List[Dict[str, Any]],
        stop_if: str,
        next_actions: List[Dict[str, Any]],
        expanded_terms: Dict[str, Any],
        exclude_terms: List[str],
    ) -> Dict[str, Any]:
        return {
            "status": "ok",
            "iterations_used": 1,
            "confidence": confidence,
            "topChatIds": [r["chatId"] for r in results],
            "results": results,
            "guidance": {
                "stopIf": stop_if,
                "nextActions": next_actions,
                "state": {
                    "expandedTerms": expanded_terms,
                    "excludes": exclude_terms,
                    "iteration": 1,
                },
            },
        }
