"""File-based logging utility."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from chatwise_recall.config.constants import CHATWISE_RECALL_HOME


def write_log(level: str, message: str, data: dict[str, Any] | None = None) -> None:
    """Write log entry to file in CHATWISE_RECALL_HOME/logs directory.

    stdout carries the JSON-RPC stream, so nothing is ever printed here.
    """
    if not CHATWISE_RECALL_HOME:
        return

    logs_dir = Path(CHATWISE_RECALL_HOME) / "logs"

    timestamp = datetime.now(timezone.utc).isoformat()
    log_entry: dict[str, Any] = {
        "timestamp": timestamp,
        "level": level,
        "message": message,
    }

    if data:
        log_entry["data"] = data

    log_file = logs_dir / f"{level}.log"

    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(log_entry, default=str, ensure_ascii=False) + "\n")
            f.flush()
    except OSError:
        # Logging must never break a tool call.
        return


def log_debug(message: str, data: dict[str, Any] | None = None) -> None:
    """Log a debug message."""
    write_log("debug", message, data)


def log_info(message: str, data: dict[str, Any] | None = None) -> None:
    """Log an info message."""
    write_log("info", message, data)


def log_error(message: str, data: dict[str, Any] | None = None) -> None:
    """Log an error message."""
    write_log("error", message, data)
