"""
Tests for the tool registry.
"""

import json

import pytest

from conftest import BASE_MS, create_chatwise_database

from chatwise_recall.tools.base_tool import DatabaseTool
from chatwise_recall.tools.registry import ToolRegistry
from chatwise_recall.tools.server_info_tool import ServerInfoTool


class TestToolRegistry:
    """Test suite for ToolRegistry."""

    @pytest.fixture(autouse=True)
    def setup_registry(self, db_path) -> None:
        create_chatwise_database(
            db_path,
            chats=[("c1", "Rust notes", BASE_MS, BASE_MS)],
            messages=[("m1", "c1", BASE_MS, "user", "borrow checker", None)],
        )
        self.db_path = db_path
        self.registry = ToolRegistry(db_path)

    def test_registered_tools(self) -> None:
        assert self.registry.list_tool_names() == [
            "search_conversations",
            "gather_chats",
            "delete_conversation",
            "get_server_info",
        ]
        assert self.registry.get_tool("query_cursor_conversations") is None

    def test_database_tools_share_path(self) -> None:
        for name in self.registry.list_tool_names():
            tool = self.registry.get_tool(name)
            if isinstance(tool, DatabaseTool):
                assert tool.db_path == self.db_path

    def test_non_database_tools_take_no_path(self) -> None:
        assert isinstance(self.registry.get_tool("get_server_info"), ServerInfoTool)

    def test_register_tool_replaces_by_name(self) -> None:
        replacement = ServerInfoTool()
        self.registry.register_tool(replacement)
        assert self.registry.get_tool("get_server_info") is replacement
        assert len(self.registry.list_tool_names()) == 4

    @pytest.mark.asyncio
    async def test_registered_search_tool_uses_shared_database(self) -> None:
        tool = self.registry.get_tool("search_conversations")
        results = await tool.execute({"intent_query": "borrow"})
        assert json.loads(results[0].text)["topChatIds"] == ["c1"]
