"""
Keeping the caller's own conversation and prompt out of its search results.

The current conversation is passed explicitly into a search. Resolvers are
optional, best-effort ways of finding it when the caller did not say.
"""

import os
import traceback
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

from chatwise_recall.config.constants import (
    ENV_CURRENT_CHAT_ID,
    ENV_MCP_SERVER_NAME,
    MAX_RECENT_USER_SECS,
    SEARCH_TOOL_NAME,
    SELF_INVOCATION_WINDOW_MS,
    SERVER_NAME,
)
from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.database_management.metadata_formatter import (
    iter_tool_calls,
    parse_metadata,
)
from chatwise_recall.database_management.time_window import (
    TimeWindow,
    now_ms,
    to_milliseconds,
)
from chatwise_recall.utils.errors import ChatwiseRecallError
from chatwise_recall.utils.logger import log_debug, log_error


def recent_user_cutoff_ms(
    exclude_recent_user_secs: int, current_ms: int | None = None
) -> Optional[int]:
    """Epoch ms after which user prompts are ignored, None when disabled."""
    seconds = max(0, min(int(exclude_recent_user_secs), MAX_RECENT_USER_SECS))
    if seconds == 0:
        return None
    reference = current_ms if current_ms is not None else now_ms()
    return reference - seconds * 1000


class ConversationResolver(ABC):
    """Finds the id of the conversation the caller is running in."""

    @abstractmethod
    def resolve(self, store: ChatStore) -> Optional[str]:
        """Return the current conversation id, or None if unknown."""
        pass


class EnvironmentConversationResolver(ConversationResolver):
    """Reads the current conversation id from the environment."""

    def __init__(self, env_var: str = ENV_CURRENT_CHAT_ID) -> None:
        self.env_var = env_var

    def resolve(self, store: ChatStore) -> Optional[str]:
        value = os.environ.get(self.env_var, "").strip()
        return value or None


class ToolInvocationConversationResolver(ConversationResolver):
    """Finds the conversation whose assistant just called this server's search tool."""

    def __init__(
        self,
        server_name: str | None = None,
        tool_name: str = SEARCH_TOOL_NAME,
        window_ms: int = SELF_INVOCATION_WINDOW_MS,
        current_ms: int | None = None,
    ) -> None:
        self.server_name = server_name or os.environ.get(ENV_MCP_SERVER_NAME, SERVER_NAME)
        self.tool_name = tool_name
        self.window_ms = window_ms
        self.current_ms = current_ms

    def is_self_invocation(self, meta_raw: str | None) -> bool:
        """Check whether a meta blob records a call to our tool."""
        meta = parse_metadata(meta_raw)
        if meta is None:
            return False
        for _, call in iter_tool_calls(meta):
            if not isinstance(call, dict):
                continue
            if (
                call.get("server_name") == self.server_name
                and call.get("tool_name") == self.tool_name
            ):
                return True
        return False

    def resolve(self, store: ChatStore) -> Optional[str]:
        end_ms = self.current_ms if self.current_ms is not None else now_ms()
        window = TimeWindow(end_ms - self.window_ms, end_ms)
        messages = sorted(
            store.fetch_recent_tool_call_messages(window),
            key=lambda m: to_milliseconds(m.created_at),
            reverse=True,
        )
        for message in messages:
            if self.is_self_invocation(message.meta):
                return message.conversation_id
        return None


class ChainedConversationResolver(ConversationResolver):
    """Tries resolvers in order; a failing resolver is logged and skipped."""

    def __init__(self, resolvers: Sequence[ConversationResolver]) -> None:
        self.resolvers = list(resolvers)

    def resolve(self, store: ChatStore) -> Optional[str]:
        for resolver in self.resolvers:
            try:
                conversation_id = resolver.resolve(store)
            except (ChatwiseRecallError, ValueError, TypeError, KeyError) as e:
                log_error(
                    f"Current conversation resolver {type(resolver).__name__} failed: {e}",
                    {"traceback": traceback.format_exc()},
                )
                continue
            if conversation_id:
                log_debug(
                    f"Current conversation resolved by {type(resolver).__name__}",
                    {"chatId": conversation_id},
                )
                return conversation_id
        return None


def default_conversation_resolver() -> ConversationResolver:
    """Environment first, then detection of our own recent tool call."""
    return ChainedConversationResolver(
        [EnvironmentConversationResolver(), ToolInvocationConversationResolver()]
    )
