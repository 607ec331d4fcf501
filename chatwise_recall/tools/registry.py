"""
Tool registry for managing all available tools.
"""

from pathlib import Path
from typing import Dict, List

from chatwise_recall.tools.base_tool import BaseTool, DatabaseTool
from chatwise_recall.tools.delete_conversation_tool import DeleteConversationTool
from chatwise_recall.tools.gather_chats_tool import GatherChatsTool
from chatwise_recall.tools.search_conversations_tool import SearchConversationsTool
from chatwise_recall.tools.server_info_tool import ServerInfoTool


class ToolRegistry:
    """Registry for managing all available tools."""

    supported_tools = [
        SearchConversationsTool,
        GatherChatsTool,
        DeleteConversationTool,
        ServerInfoTool,
    ]

    def __init__(self, db_path: Path | str | None = None) -> None:
        """Initialize the tool registry.

        Args:
            db_path: Database location shared by every database tool
        """
        self._tools: Dict[str, BaseTool] = {}
        for tool in self.supported_tools:
            if issubclass(tool, DatabaseTool):
                self.register_tool(tool(db_path))
            else:
                self.register_tool(tool())

    def register_tool(self, tool: BaseTool) -> None:
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def list_tool_names(self) -> List[str]:
        return list(self._tools.keys())
