"""
Base tool classes for all chatwise-recall tools.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from chatwise_recall.config.database_path import resolve_database_path
from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.protocol.types import ToolDefinition, ToolResult


class BaseTool(ABC):
    """Base class for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    @abstractmethod
    def input_schema(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any] | None) -> List[ToolResult]:
        pass

    def get_tool_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name, description=self.description, input_schema=self.input_schema
        )


class DatabaseTool(BaseTool):
    """A tool that works against the ChatWise database."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self._db_path = Path(db_path) if db_path is not None else None

    @property
    def db_path(self) -> Path:
        """Database location, resolved on first use when not injected."""
        if self._db_path is None:
            self._db_path = resolve_database_path()
        return self._db_path

    def get_store(self) -> ChatStore:
        return ChatStore(self.db_path)


def json_result(payload: Dict[str, Any]) -> ToolResult:
    """Wrap a JSON payload as a text tool result."""
    return ToolResult(text=json.dumps(payload, ensure_ascii=False), data=payload)
