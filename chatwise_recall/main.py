"""
chatwise-recall searches, views and merges ChatWise conversations over MCP.
"""

import argparse
import asyncio
import sys
import traceback
from pathlib import Path
from typing import List

from chatwise_recall.config.constants import SERVER_NAME
from chatwise_recall.config.database_path import resolve_database_path
from chatwise_recall.protocol.jsonrpc_server import JSONRPCServer
from chatwise_recall.tools.registry import ToolRegistry
from chatwise_recall.utils.logger import log_error, log_info


class ChatwiseRecallServer:
    """Main server implementation."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = resolve_database_path(str(db_path) if db_path else None)
        self.server = JSONRPCServer(SERVER_NAME)
        self.tool_registry = ToolRegistry(self.db_path)
        self._setup_tools()

    def _setup_tools(self) -> None:
        for tool_name in self.tool_registry.list_tool_names():
            self.server.tools[tool_name] = self.tool_registry.get_tool(tool_name)

    async def run(self) -> None:
        log_info("Starting chatwise-recall server", {"db_path": str(self.db_path)})
        await self.server.run()


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chatwise-recall",
        description="MCP server for searching and merging ChatWise conversations",
    )
    parser.add_argument(
        "--db-path",
        help="Path to the ChatWise app.db (default: CHATWISE_DB_PATH, DB_PATH or the platform location)",
    )
    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)
    try:
        server = ChatwiseRecallServer(args.db_path)
        asyncio.run(server.run())
    except KeyboardInterrupt:
        log_info("Server stopped by user.")
        sys.exit(0)
    except (OSError, RuntimeError, ValueError) as e:
        log_error(f"Server error: {str(e)}", {"traceback": traceback.format_exc()})
        sys.exit(1)


if __name__ == "__main__":
    main()
