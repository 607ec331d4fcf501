"""
Tests for the gather_chats tool.
"""

import json

import pytest

from conftest import BASE_MS, create_chatwise_database

from chatwise_recall.tools.gather_chats_tool import GatherChatsTool


class TestGatherChatsTool:
    """Test suite for GatherChatsTool."""

    @pytest.fixture(autouse=True)
    def setup_database(self, db_path) -> None:
        create_chatwise_database(
            db_path,
            chats=[
                ("chatA", "Alpha", BASE_MS, BASE_MS + 3000),
                ("chatB", "Beta", BASE_MS, BASE_MS + 3000),
            ],
            messages=[
                ("a-000001", "chatA", BASE_MS + 1000, "user", "ping", None),
                ("a-000002", "chatA", BASE_MS + 2000, "assistant", "pong", None),
                ("b-000001", "chatB", BASE_MS + 1500, "user", "Ping", None),
            ],
        )
        self.tool = GatherChatsTool(db_path)

    @pytest.mark.asyncio
    async def test_single_id_views_conversation(self) -> None:
        results = await self.tool.execute({"chatIds": ["chatA"]})

        assert len(results) == 1
        assert results[0].is_error is False
        assert results[0].text.startswith("Conversation info:\n- ID: chatA\n")
        assert "[#2](a-000002 2024-01-01 00:00:02) AI: pong" in results[0].text

    @pytest.mark.asyncio
    async def test_several_ids_are_merged(self) -> None:
        results = await self.tool.execute({"chatIds": ["chatA", "chatB"]})
        text = results[0].text

        assert "—— Conversation 1 ——" in text
        assert "[Common]Me: ping  | Refs: 1#1(a-000001),2#1(b-000001)" in text

    @pytest.mark.asyncio
    async def test_duplicate_ids_collapse_to_single_view(self) -> None:
        results = await self.tool.execute({"chatIds": ["chatA", " chatA "]})
        assert results[0].text.startswith("Conversation info:")

    @pytest.mark.asyncio
    async def test_unknown_conversation_is_structured_error(self) -> None:
        results = await self.tool.execute({"chatIds": ["nope"]})
        data = json.loads(results[0].text)

        assert results[0].is_error is True
        assert data["status"] == "error"
        assert data["error_type"] == "not_found"

    @pytest.mark.asyncio
    async def test_empty_ids(self) -> None:
        results = await self.tool.execute({"chatIds": []})
        assert json.loads(results[0].text)["error_type"] == "invalid_argument"

    @pytest.mark.asyncio
    async def test_include_tools_must_be_boolean(self) -> None:
        results = await self.tool.execute({"chatIds": ["chatA"], "includeTools": "maybe"})
        assert json.loads(results[0].text)["error_type"] == "invalid_argument"
