"""
Tests for self_exclusion module.
"""

from unittest.mock import MagicMock

import pytest

from conftest import BASE_MS, create_chatwise_database, tool_call_meta

from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.database_management.self_exclusion import (
    ChainedConversationResolver,
    EnvironmentConversationResolver,
    ToolInvocationConversationResolver,
    recent_user_cutoff_ms,
)
from chatwise_recall.utils.errors import UnavailableError

NOW_MS = BASE_MS + 60 * 60 * 1000


class TestRecentUserCutoff:
    def test_default_window(self) -> None:
        assert recent_user_cutoff_ms(60, NOW_MS) == NOW_MS - 60_000

    def test_zero_disables(self) -> None:
        assert recent_user_cutoff_ms(0, NOW_MS) is None

    def test_clamped_to_maximum(self) -> None:
        assert recent_user_cutoff_ms(10_000, NOW_MS) == NOW_MS - 600_000


class TestEnvironmentConversationResolver:
    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("CHATWISE_CURRENT_CHAT_ID", "  current  ")
        assert EnvironmentConversationResolver().resolve(MagicMock()) == "current"

    def test_unset(self, monkeypatch) -> None:
        monkeypatch.delenv("CHATWISE_CURRENT_CHAT_ID", raising=False)
        assert EnvironmentConversationResolver().resolve(MagicMock()) is None


class TestToolInvocationConversationResolver:
    """Detection of our own recent search call."""

    @pytest.fixture(autouse=True)
    def setup_database(self, db_path) -> None:
        create_chatwise_database(
            db_path,
            chats=[("old", "", BASE_MS, None), ("other", "", BASE_MS, None), ("live", "", BASE_MS, None)],
            messages=[
                ("a1", "old", NOW_MS - 30 * 60 * 1000, "assistant", "", tool_call_meta()),
                ("a2", "other", NOW_MS - 60_000, "assistant", "", tool_call_meta(server_name="another")),
                ("a3", "live", (NOW_MS - 120_000) // 1000, "assistant", "", tool_call_meta()),
                ("u1", "other", NOW_MS - 1000, "user", '"toolCall"', None),
            ],
        )
        self.store = ChatStore(db_path)

    def test_detects_recent_call_in_seconds_row(self) -> None:
        resolver = ToolInvocationConversationResolver(
            server_name="chatwise-mcp", current_ms=NOW_MS
        )
        assert resolver.resolve(self.store) == "live"

    def test_ignores_calls_outside_window(self) -> None:
        resolver = ToolInvocationConversationResolver(
            server_name="chatwise-mcp", current_ms=NOW_MS, window_ms=60_000
        )
        assert resolver.resolve(self.store) is None

    def test_server_name_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("MCP_SERVER_NAME", "another")
        resolver = ToolInvocationConversationResolver(current_ms=NOW_MS)
        assert resolver.resolve(self.store) == "other"

    def test_is_self_invocation(self) -> None:
        resolver = ToolInvocationConversationResolver(server_name="chatwise-mcp")
        assert resolver.is_self_invocation(tool_call_meta())
        assert not resolver.is_self_invocation(tool_call_meta(tool_name="gather_chats"))
        assert not resolver.is_self_invocation("not json")
        assert not resolver.is_self_invocation(None)


class TestChainedConversationResolver:
    def test_first_answer_wins(self) -> None:
        first = MagicMock()
        first.resolve.return_value = None
        second = MagicMock()
        second.resolve.return_value = "c2"
        third = MagicMock()

        chain = ChainedConversationResolver([first, second, third])
        assert chain.resolve(MagicMock()) == "c2"
        third.resolve.assert_not_called()

    def test_failures_are_skipped(self) -> None:
        failing = MagicMock()
        failing.resolve.side_effect = UnavailableError("locked")
        fallback = MagicMock()
        fallback.resolve.return_value = "c9"

        chain = ChainedConversationResolver([failing, fallback])
        assert chain.resolve(MagicMock()) == "c9"

    def test_nothing_resolved(self) -> None:
        assert ChainedConversationResolver([]).resolve(MagicMock()) is None
