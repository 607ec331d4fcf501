"""
Tests for the server info tool.
"""

import json

import pytest

from chatwise_recall.tools.server_info_tool import ServerInfoTool


class TestServerInfoTool:
    """Test suite for ServerInfoTool."""

    def setup_method(self) -> None:
        self.tool = ServerInfoTool()

    def test_definition(self) -> None:
        definition = self.tool.get_tool_definition()
        assert definition.name == "get_server_info"
        assert definition.input_schema["properties"] == {}

    @pytest.mark.asyncio
    async def test_execute(self) -> None:
        results = await self.tool.execute({})
        data = json.loads(results[0].text)

        assert data["name"] == "chatwise-mcp"
        assert data["version"] == "0.1.0"
        assert "tools" in data["capabilities"]
