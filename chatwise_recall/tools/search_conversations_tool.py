"""
Search conversations tool implementation.
"""

from pathlib import Path
from typing import Any, Dict, List

from chatwise_recall.config.constants import (
    DEFAULT_EXCLUDE_CURRENT_CHAT,
    DEFAULT_INCLUDE_TOOLS_IN_SEARCH,
    MATCH_ALL,
    MATCH_ANY,
    MAX_LIMIT_CHATS,
    MAX_LIMIT_SNIPPETS,
    MAX_RECENT_USER_SECS,
    MAX_SNIPPET_WINDOW,
    PRECISION_BASIC,
    PRECISION_FUZZY,
    SEARCH_TOOL_NAME,
    TIME_WINDOW_ALL,
    TIME_WINDOW_DAYS,
)
from chatwise_recall.config.search_config import SearchConfig, SearchConfigManager
from chatwise_recall.database_management.search_conversations import (
    ConversationSearch,
    SearchRequest,
)
from chatwise_recall.database_management.self_exclusion import (
    ConversationResolver,
    default_conversation_resolver,
)
from chatwise_recall.protocol.types import ToolResult
from chatwise_recall.tools.arguments import (
    get_bool,
    get_choice,
    get_clamped_int,
    get_string_list,
)
from chatwise_recall.tools.base_tool import DatabaseTool, json_result
from chatwise_recall.utils.error_handling import handle_tool_errors
from chatwise_recall.utils.errors import InvalidArgumentError
from chatwise_recall.utils.logger import log_info

SEARCH_DESCRIPTION = """Search ChatWise conversations by keyword and return ranked chats with snippets.
Use when:
- Finding relevant conversations by a keyword or intent (e.g. "rust", "deploy script"), optionally within a recent time window
- Listing the most recent conversations: pass intent_query "*" (or "recent")
Returns JSON with confidence, topChatIds, per-chat hits, time ranges and snippets, plus guidance.
Follow up with gather_chats on the suggested ids to read full conversations."""


def parse_intent_query(arguments: Dict[str, Any]) -> str | List[str]:
    value = arguments.get("intent_query")
    if value is None:
        return ""
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    if isinstance(value, str):
        return value
    raise InvalidArgumentError("intent_query must be a string or a list of strings")


def parse_time_window(arguments: Dict[str, Any]) -> Any:
    value = arguments.get("time_window")
    if value is None or isinstance(value, (str, dict)):
        return value
    raise InvalidArgumentError("time_window must be a window name or {start, end}")


class SearchConversationsTool(DatabaseTool):
    """Tool for searching conversations."""

    def __init__(
        self,
        db_path: Path | str | None = None,
        resolver: ConversationResolver | None = None,
        config: SearchConfig | None = None,
    ) -> None:
        super().__init__(db_path)
        self.resolver = resolver
        self.config = config

    @property
    def name(self) -> str:
        return SEARCH_TOOL_NAME

    @property
    def description(self) -> str:
        return SEARCH_DESCRIPTION

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "intent_query": {
                    "oneOf": [
                        {"type": "string"},
                        {"type": "array", "items": {"type": "string"}},
                    ],
                    "description": "Keyword(s) or short intent. '*' or 'recent' lists recent chats.",
                },
                "time_window": {
                    "oneOf": [
                        {
                            "type": "string",
                            "enum": [*TIME_WINDOW_DAYS, TIME_WINDOW_ALL],
                        },
                        {
                            "type": "object",
                            "properties": {
                                "start": {"type": "number"},
                                "end": {"type": "number"},
                            },
                            "required": ["start", "end"],
                        },
                    ],
                    "description": "Time window (default: all)",
                },
                "precision_mode": {
                    "type": "string",
                    "enum": [PRECISION_BASIC, PRECISION_FUZZY],
                    "description": f"'{PRECISION_BASIC}' (default) or '{PRECISION_FUZZY}'",
                },
                "include_tools_in_search": {
                    "type": "boolean",
                    "description": "Also search tool call metadata (default: true)",
                    "default": DEFAULT_INCLUDE_TOOLS_IN_SEARCH,
                },
                "exclude_terms": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Drop hits containing any of these terms",
                },
                "exclude_chat_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Chat ids to leave out of the results",
                },
                "exclude_current_chat": {
                    "type": "boolean",
                    "description": "Leave out the chat this search runs in (default: true)",
                    "default": DEFAULT_EXCLUDE_CURRENT_CHAT,
                },
                "exclude_recent_user_secs": {
                    "type": "integer",
                    "minimum": 0,
                    "maximum": MAX_RECENT_USER_SECS,
                    "description": "Ignore user messages newer than this many seconds (default: 60, 0 disables)",
                },
                "user_only": {
                    "type": "boolean",
                    "description": "Only search user messages (default: false)",
                    "default": False,
                },
                "match": {
                    "type": "string",
                    "enum": [MATCH_ANY, MATCH_ALL],
                    "description": "Match any term (default) or all terms",
                },
                "limit_chats": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": MAX_LIMIT_CHATS,
                    "description": "Max chats to return (default: 10)",
                },
                "limit_snippets_per_chat": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": MAX_LIMIT_SNIPPETS,
                    "description": "Max snippets per chat (default: 3)",
                },
                "snippet_window": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": MAX_SNIPPET_WINDOW,
                    "description": "Characters kept on each side of a hit (default: 64)",
                },
            },
            "required": ["intent_query"],
        }

    def parse_request(self, arguments: Dict[str, Any]) -> SearchRequest:
        """Coerce raw arguments into a search request, clamping numbers."""
        config = self.config or SearchConfigManager.get_default()
        defaults = config.get_dict("search")
        return SearchRequest(
            intent_query=parse_intent_query(arguments),
            time_window=parse_time_window(arguments),
            precision_mode=get_choice(
                arguments,
                "precision_mode",
                PRECISION_BASIC,
                (PRECISION_BASIC, PRECISION_FUZZY),
            ),
            include_tools=get_bool(
                arguments, "include_tools_in_search", DEFAULT_INCLUDE_TOOLS_IN_SEARCH
            ),
            exclude_terms=get_string_list(arguments, "exclude_terms"),
            exclude_chat_ids=get_string_list(arguments, "exclude_chat_ids"),
            exclude_current=get_bool(
                arguments, "exclude_current_chat", DEFAULT_EXCLUDE_CURRENT_CHAT
            ),
            exclude_recent_user_secs=get_clamped_int(
                arguments,
                "exclude_recent_user_secs",
                defaults["exclude_recent_user_secs"],
                0,
                MAX_RECENT_USER_SECS,
            ),
            user_only=get_bool(arguments, "user_only", False),
            match=get_choice(arguments, "match", MATCH_ANY, (MATCH_ANY, MATCH_ALL)),
            limit_chats=get_clamped_int(
                arguments, "limit_chats", defaults["limit_chats"], 1, MAX_LIMIT_CHATS
            ),
            limit_snippets=get_clamped_int(
                arguments,
                "limit_snippets_per_chat",
                defaults["limit_snippets_per_chat"],
                1,
                MAX_LIMIT_SNIPPETS,
            ),
            snippet_window=get_clamped_int(
                arguments,
                "snippet_window",
                defaults["snippet_window"],
                1,
                MAX_SNIPPET_WINDOW,
            ),
        )

    @handle_tool_errors("search_conversations")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        """Execute the search conversations tool."""
        log_info("Search conversations tool called")
        request = self.parse_request(arguments or {})

        search = ConversationSearch(
            self.get_store(),
            resolver=self.resolver or default_conversation_resolver(),
            config=self.config,
        )
        return [json_result(search.search(request))]
