"""
Single conversation view: metadata followed by the linear narrative.
"""

from chatwise_recall.config.constants import UNTITLED_CONVERSATION
from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.database_management.merge_alignment import (
    format_message_line,
    format_time_range,
    number_messages,
)
from chatwise_recall.utils.errors import InvalidArgumentError, NotFoundError
from chatwise_recall.utils.performance import timed_operation

NO_MESSAGES_TEXT = "No messages in this conversation\n"


class ConversationViewer:
    """Renders one conversation."""

    def __init__(self, store: ChatStore) -> None:
        self.store = store

    def view(self, conversation_id: str, include_tools: bool = True) -> str:
        """Render a conversation by id.

        Raises:
            InvalidArgumentError: Empty id
            NotFoundError: No chat row and no messages for the id
        """
        conversation_id = (conversation_id or "").strip()
        if not conversation_id:
            raise InvalidArgumentError("chatId must not be empty")

        with timed_operation("view_conversation", log_level="debug"):
            conversation = self.store.fetch_conversation(conversation_id)
            messages = self.store.fetch_conversation_messages(conversation_id)
            if conversation is None and not messages:
                raise NotFoundError(f"Conversation not found: {conversation_id}")

            title = (conversation.title if conversation else None) or UNTITLED_CONVERSATION
            output = "Conversation info:\n"
            output += f"- ID: {conversation_id}\n"
            output += f"- Title: {title}\n"
            output += f"- Messages: {len(messages)}\n"
            if messages:
                output += f"- Time range: {format_time_range(messages)}\n"
            output += "---\n"

            if not messages:
                output += NO_MESSAGES_TEXT
                return output.strip()

            output += "Messages:\n"
            for item in number_messages(1, messages):
                output += format_message_line(item, f"#{item.seq}", include_tools)

        return output.strip()
