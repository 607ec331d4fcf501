"""Error handling patterns for all tool functions."""

import json
import traceback
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec

from chatwise_recall.protocol.types import ToolResult
from chatwise_recall.utils.errors import ChatwiseRecallError, InternalError
from chatwise_recall.utils.logger import log_error

P = ParamSpec("P")


def create_error_result(error_type: str, message: str) -> ToolResult:
    """Create a structured error result, distinguishable from an empty one."""
    payload = {"status": "error", "error_type": error_type, "error": message}
    return ToolResult(
        text=json.dumps(payload, ensure_ascii=False),
        data=payload,
        is_error=True,
    )


def handle_tool_errors(
    operation_name: str,
) -> Callable[
    [Callable[P, Awaitable[list[ToolResult]]]],
    Callable[P, Awaitable[list[ToolResult]]],
]:
    """Decorator turning tool failures into structured error results."""

    def decorator(
        func: Callable[P, Awaitable[list[ToolResult]]],
    ) -> Callable[P, Awaitable[list[ToolResult]]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> list[ToolResult]:
            try:
                return await func(*args, **kwargs)
            except ChatwiseRecallError as e:
                log_error(
                    f"{operation_name} failed: {e.message}",
                    {"error_type": e.error_type},
                )
                return [create_error_result(e.error_type, e.message)]
            except (ValueError, TypeError, KeyError, AttributeError, OSError) as e:
                log_error(
                    f"Error in {operation_name}: {str(e)}",
                    {"traceback": traceback.format_exc()},
                )
                return [
                    create_error_result(
                        InternalError.error_type,
                        f"Error in {operation_name}: {str(e)}",
                    )
                ]

        return wrapper

    return decorator


def safe_execute(
    operation_name: str, func: Callable[..., Any], *args: Any, **kwargs: Any
) -> tuple[Any, bool]:
    """Safely execute a best-effort step and return (result, success_flag)."""
    try:
        return func(*args, **kwargs), True
    except (ChatwiseRecallError, ValueError, TypeError, KeyError, OSError) as e:
        log_error(
            f"Error in {operation_name}: {str(e)}",
            {"traceback": traceback.format_exc()},
        )
        return None, False
