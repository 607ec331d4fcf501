"""
Server info tool implementation.
"""

from typing import Any, Dict, List

from chatwise_recall.config.constants import (
    SERVER_CAPABILITIES,
    SERVER_DESCRIPTION,
    SERVER_NAME,
)
from chatwise_recall.protocol.types import ToolResult
from chatwise_recall.tools.base_tool import BaseTool, json_result
from chatwise_recall.utils.common import get_version
from chatwise_recall.utils.error_handling import handle_tool_errors
from chatwise_recall.utils.logger import log_info


class ServerInfoTool(BaseTool):
    """Server info tool that returns server information."""

    @property
    def name(self) -> str:
        return "get_server_info"

    @property
    def description(self) -> str:
        return "Get information about the chatwise-recall MCP server"

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {"type": "object", "properties": {}, "required": []}

    @handle_tool_errors("get_server_info")
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        log_info("Server info tool called")
        info = {
            "name": SERVER_NAME,
            "version": get_version(),
            "description": SERVER_DESCRIPTION.strip(),
            "capabilities": SERVER_CAPABILITIES,
        }
        return [json_result(info)]
