"""
Delete conversation tool implementation.
"""

from typing import Any, Dict, List

from chatwise_recall.database_management.conversation_deleter import ConversationDeleter
from chatwise_recall.database_management.merge_alignment import prepare_conversation_ids
from chatwise_recall.protocol.types import ToolResult
from chatwise_recall.tools.arguments import get_bool, get_string_list
from chatwise_recall.tools.base_tool import DatabaseTool, json_result
from chatwise_recall.utils.error_handling import handle_tool_errors
from chatwise_recall.utils.errors import InvalidArgumentError
from chatwise_recall.utils.logger import log_info


class DeleteConversationTool(DatabaseTool):
    """Deletes conversations and their messages."""

    @property
    def name(self) -> str:
        return "delete_conversation"

    @property
    def description(self) -> str:
        return (
            "Delete ChatWise conversations and all their messages by chat id. "
            "Use dry_run to see what would be deleted first. Attachments and "
            "generated files on disk are not removed."
        )

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "chatId": {"type": "string", "description": "Single chat id to delete"},
                "chatIds": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Chat ids to delete",
                },
                "dry_run": {
                    "type": "boolean",
                    "description": "Only report counts, delete nothing (default: false)",
                    "default": False,
                },
            },
        }

    @handle_tool_errors("delete_conversation")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        """Execute the delete conversation tool."""
        args = arguments or {}
        chat_ids = prepare_conversation_ids(
            get_string_list(args, "chatId") + get_string_list(args, "chatIds")
        )
        dry_run = get_bool(args, "dry_run", False)
        log_info("Delete conversation tool called", {"chatIds": chat_ids, "dryRun": dry_run})

        if not chat_ids:
            raise InvalidArgumentError("Provide chatId or chatIds")

        result = ConversationDeleter(self.db_path).delete_conversations(chat_ids, dry_run)
        return [json_result(result)]
