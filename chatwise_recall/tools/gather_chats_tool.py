"""
Gather chats tool: view one conversation or merge several.
"""

from typing import Any, Dict, List

from chatwise_recall.config.constants import (
    DEFAULT_INCLUDE_TOOLS_IN_GATHER,
    GATHER_TOOL_NAME,
)
from chatwise_recall.database_management.conversation_viewer import ConversationViewer
from chatwise_recall.database_management.merge_alignment import (
    MergeAlignmentEngine,
    prepare_conversation_ids,
)
from chatwise_recall.protocol.types import ToolResult
from chatwise_recall.tools.arguments import get_bool, get_string_list
from chatwise_recall.tools.base_tool import DatabaseTool
from chatwise_recall.utils.error_handling import handle_tool_errors
from chatwise_recall.utils.errors import InvalidArgumentError
from chatwise_recall.utils.logger import log_info


class GatherChatsTool(DatabaseTool):
    """Returns one conversation, or several merged and aligned."""

    @property
    def name(self) -> str:
        return GATHER_TOOL_NAME

    @property
    def description(self) -> str:
        return (
            "Gather full ChatWise conversations by id. One chatId returns that "
            "conversation; several are merged along their own timelines with a "
            "common section referencing messages shared by all of them."
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "chatIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "description": "Conversation ids; their order numbers the conversations",
                },
                "includeTools": {
                    "type": "boolean",
                    "description": "Render tool calls and results (default: true)",
                    "default": DEFAULT_INCLUDE_TOOLS_IN_GATHER,
                },
            },
            "required": ["chatIds"],
        }

    @handle_tool_errors("gather_chats")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        """Execute the gather chats tool."""
        args = arguments or {}
        chat_ids = prepare_conversation_ids(get_string_list(args, "chatIds"))
        include_tools = get_bool(args, "includeTools", DEFAULT_INCLUDE_TOOLS_IN_GATHER)
        log_info("Gather chats tool called", {"chatIds": chat_ids})

        if not chat_ids:
            raise InvalidArgumentError("chatIds must contain at least one id")

        store = self.get_store()
        if len(chat_ids) == 1:
            text = ConversationViewer(store).view(chat_ids[0], include_tools)
        else:
            text = MergeAlignmentEngine(store).merge(chat_ids, include_tools)
        return [ToolResult(text=text)]
