"""
Time window resolution tolerant of mixed second/millisecond timestamps.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from chatwise_recall.config.constants import (
    FAR_FUTURE_MS,
    MS_PER_DAY,
    TIME_WINDOW_ALL,
    TIME_WINDOW_DAYS,
    TIMESTAMP_MILLISECOND_THRESHOLD,
)
from chatwise_recall.utils.errors import InvalidArgumentError


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def to_milliseconds(timestamp: int | float | None) -> int:
    """Normalize a seconds-or-milliseconds timestamp to milliseconds."""
    if timestamp is None:
        return 0
    if timestamp > TIMESTAMP_MILLISECOND_THRESHOLD:
        return int(timestamp)
    return int(timestamp * 1000)


def format_timestamp(timestamp: int | float | None) -> str:
    """Format a seconds-or-milliseconds timestamp as UTC 'YYYY-MM-DD HH:MM:SS'."""
    if timestamp is None:
        return ""
    seconds = to_milliseconds(timestamp) / 1000
    try:
        moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(timestamp)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive [start_ms, end_ms] interval."""

    start_ms: int
    end_ms: int

    @property
    def start_seconds(self) -> int:
        return self.start_ms // 1000

    @property
    def end_seconds(self) -> int:
        return self.end_ms // 1000

    def contains(self, timestamp: int | float | None) -> bool:
        """Accept the timestamp if it falls inside as ms OR as seconds."""
        if timestamp is None:
            return False
        if self.start_ms <= timestamp <= self.end_ms:
            return True
        return self.start_ms <= timestamp * 1000 <= self.end_ms

    def sql_clause(self, column: str) -> tuple[str, list[int]]:
        """SQL predicate testing a column in both unit interpretations."""
        clause = f"(({column} BETWEEN ? AND ?) OR ({column} BETWEEN ? AND ?))"
        return clause, [
            self.start_ms,
            self.end_ms,
            self.start_seconds,
            self.end_seconds,
        ]


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def resolve_time_window(
    time_window: str | dict[str, Any] | None, current_ms: int | None = None
) -> TimeWindow:
    """Resolve a symbolic or explicit time window.

    Args:
        time_window: '7d' | '30d' | '60d' | '90d' | 'all' | {start, end} | None
        current_ms: Reference "now" in milliseconds (defaults to wall clock)

    Raises:
        InvalidArgumentError: Unknown window name or non-numeric bounds
    """
    if time_window is None or time_window == TIME_WINDOW_ALL:
        return TimeWindow(0, FAR_FUTURE_MS)

    if isinstance(time_window, dict):
        start = time_window.get("start")
        end = time_window.get("end")
        if not _is_number(start) or not _is_number(end):
            raise InvalidArgumentError(
                "time_window must provide numeric 'start' and 'end' bounds"
            )
        return TimeWindow(int(start), int(end))

    if isinstance(time_window, str) and time_window in TIME_WINDOW_DAYS:
        end_ms = current_ms if current_ms is not None else now_ms()
        start_ms = end_ms - TIME_WINDOW_DAYS[time_window] * MS_PER_DAY
        return TimeWindow(start_ms, end_ms)

    raise InvalidArgumentError(
        f"Unsupported time_window: {time_window!r}. "
        f"Use one of {', '.join([*TIME_WINDOW_DAYS, TIME_WINDOW_ALL])} or {{start, end}}"
    )
