"""
Stdio JSON-RPC 2.0 server speaking the MCP tool protocol.
"""

import asyncio
import json
import sys
import traceback
from typing import Any, Dict, List, Optional

from chatwise_recall.config.constants import (
    JSONRPC_VERSION,
    MCP_PROTOCOL_VERSION,
    SERVER_CAPABILITIES,
    SERVER_NAME,
)
from chatwise_recall.protocol.types import ToolResult
from chatwise_recall.utils.common import get_version
from chatwise_recall.utils.logger import log_debug, log_error

FALLBACK_VERSION = "0.0.0"

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
PARSE_ERROR = -32700


def serialize_tool_results(results: List[Any]) -> tuple[List[Any], bool]:
    """Convert tool results to MCP content items and report any error flag."""
    content: List[Any] = []
    is_error = False
    for item in results:
        if isinstance(item, ToolResult):
            entry: Dict[str, Any] = {"type": item.type, "text": item.text}
            if item.data is not None:
                entry["data"] = item.data
            content.append(entry)
            is_error = is_error or item.is_error
        else:
            content.append({"type": "text", "text": str(item)})
    return content, is_error


class JSONRPCServer:
    """Line-delimited JSON-RPC server over stdin/stdout."""

    def __init__(self, name: str = SERVER_NAME):
        self.name = name
        self.tools: Dict[str, Any] = {}

    async def handle_request(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Dispatch one request; notifications return None."""
        method = request.get("method")
        params = request.get("params")
        request_id = request.get("id")
        log_debug(f"Received request: {method}", {"id": request_id})

        if params is None:
            params = {}
        if not isinstance(params, dict):
            return self._error_response(
                INVALID_PARAMS, "Invalid params: params must be an object", request_id
            )

        if method == "initialize":
            return self._initialize(params, request_id)
        elif method == "notifications/initialized":
            return None
        elif method == "tools/list":
            return self._list_tools(request_id)
        elif method == "tools/call":
            return await self._call_tool(params, request_id)
        else:
            return self._error_response(METHOD_NOT_FOUND, "Method not found", request_id)

    def _initialize(
        self, params: Dict[str, Any], request_id: Optional[int]
    ) -> Dict[str, Any]:
        try:
            version = get_version()
        except (FileNotFoundError, ValueError, OSError) as e:
            log_error(
                f"Failed to get version: {str(e)}",
                {"traceback": traceback.format_exc()},
            )
            version = FALLBACK_VERSION

        return self._result_response(
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": SERVER_CAPABILITIES,
                "serverInfo": {"name": self.name, "version": version},
            },
            request_id,
        )

    def _list_tools(self, request_id: Optional[int]) -> Dict[str, Any]:
        tools = [
            {
                "name": tool_name,
                "description": tool.description,
                "inputSchema": tool.input_schema,
            }
            for tool_name, tool in self.tools.items()
        ]
        return self._result_response({"tools": tools}, request_id)

    async def _call_tool(
        self, params: Dict[str, Any], request_id: Optional[int]
    ) -> Dict[str, Any]:
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(tool_name, str) or not isinstance(arguments, dict):
            return self._error_response(
                INVALID_PARAMS,
                "Invalid params: name must be a string and arguments an object",
                request_id,
            )

        if tool_name not in self.tools:
            return self._error_response(
                METHOD_NOT_FOUND, f"Unknown tool: {tool_name}", request_id
            )

        try:
            results = await self.tools[tool_name].execute(arguments)
        except (AttributeError, TypeError, KeyError, ValueError) as e:
            error_msg = f"Tool execution error: {str(e)}"
            log_error(error_msg, {"traceback": traceback.format_exc()})
            return self._error_response(INTERNAL_ERROR, error_msg, request_id)

        content, is_error = serialize_tool_results(results)
        result: Dict[str, Any] = {"content": content}
        if is_error:
            result["isError"] = True
        return self._result_response(result, request_id)

    def _result_response(
        self, result: Dict[str, Any], request_id: Optional[int]
    ) -> Dict[str, Any]:
        response: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "result": result}
        if request_id is not None:
            response["id"] = request_id
        return response

    def _error_response(
        self, code: int, message: str, request_id: Optional[int]
    ) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "error": {"code": code, "message": message},
        }
        if request_id is not None:
            response["id"] = request_id
        return response

    def _write(self, message: Dict[str, Any]) -> None:
        print(json.dumps(message, ensure_ascii=False))
        sys.stdout.flush()

    async def run(self) -> None:
        """Serve requests from stdin until EOF."""
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, sys.stdin.readline)
                if not line:
                    break
                if not line.strip():
                    continue

                request = json.loads(line.strip())
                if not isinstance(request, dict):
                    raise ValueError("request must be a JSON object")
                response = await self.handle_request(request)
                if response is not None:
                    self._write(response)
            except json.JSONDecodeError as e:
                log_error(
                    f"JSON decode error: {str(e)}",
                    {"traceback": traceback.format_exc()},
                )
                continue
            except (OSError, ValueError) as e:
                log_error(
                    f"Server communication error: {str(e)}",
                    {"traceback": traceback.format_exc()},
                )
                self._write(
                    {
                        "jsonrpc": JSONRPC_VERSION,
                        "error": {
                            "code": PARSE_ERROR,
                            "message": f"Communication error: {str(e)}",
                        },
                    }
                )
            except (AttributeError, TypeError, KeyError) as e:
                log_error(
                    f"Request handling error: {str(e)}",
                    {"traceback": traceback.format_exc()},
                )
                self._write(
                    {
                        "jsonrpc": JSONRPC_VERSION,
                        "error": {
                            "code": INTERNAL_ERROR,
                            "message": f"Request handling error: {str(e)}",
                        },
                    }
                )
