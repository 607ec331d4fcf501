"""
Custom type definitions for chatwise-recall.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ToolResult:
    """Result from tool execution."""

    type: str = "text"
    text: str = ""
    data: Optional[Dict[str, Any]] = None
    is_error: bool = False


@dataclass
class ToolDefinition:
    """Tool definition for registration."""

    name: str
    description: str
    input_schema: Dict[str, Any]
