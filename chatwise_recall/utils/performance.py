"""Performance monitoring utilities for the chatwise-recall MCP server."""

import time
from collections.abc import Iterator
from contextlib import contextmanager

from chatwise_recall.utils.logger import log_debug, log_info


def start_timer() -> float:
    """Start a performance timer."""
    return time.perf_counter()


def get_duration(start_time: float) -> float:
    """Get duration since start time in seconds."""
    return time.perf_counter() - start_time


def log_operation_time(
    operation_name: str,
    start_time: float,
    log_level: str = "info",
    extra_info: str = "",
) -> None:
    """Log the duration of an operation.

    Args:
        operation_name: Name of the operation
        start_time: Start time from start_timer()
        log_level: Logging level ('debug' or 'info')
        extra_info: Optional suffix appended to the message
    """
    duration = get_duration(start_time)
    message = f"Performance: {operation_name} completed in {duration:.3f}s"
    if extra_info:
        message += f" ({extra_info})"

    if log_level == "debug":
        log_debug(message)
    else:
        log_info(message)


@contextmanager
def timed_operation(operation_name: str, log_level: str = "info") -> Iterator[float]:
    """Context manager for timing operations.

    Example:
        with timed_operation("merge_conversations"):
            ...
    """
    start_time = start_timer()
    try:
        yield start_time
    finally:
        log_operation_time(operation_name, start_time, log_level)
