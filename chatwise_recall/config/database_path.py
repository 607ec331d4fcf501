"""
ChatWise database location resolution.

Priority: explicit path, then CHATWISE_DB_PATH / DB_PATH, then the
platform default where the ChatWise desktop app keeps its SQLite file.
"""

import os
import platform
from pathlib import Path

from chatwise_recall.config.constants import (
    CHATWISE_APP_DIR,
    CHATWISE_DB_FILENAME,
    ENV_DB_PATH,
    ENV_DB_PATH_FALLBACK,
)


def get_default_database_path() -> Path:
    """Return the platform-specific default ChatWise database path."""
    system = platform.system()
    home = Path.home()

    if system == "Darwin":
        base = home / "Library" / "Application Support"
    elif system == "Windows":
        base = Path(os.getenv("APPDATA", str(home / "AppData" / "Roaming")))
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME", str(home / ".config")))

    return base / CHATWISE_APP_DIR / CHATWISE_DB_FILENAME


def resolve_database_path(explicit_path: str | None = None) -> Path:
    """Resolve the database path.

    Args:
        explicit_path: Path given on the command line or by the caller

    Returns:
        Absolute path to the ChatWise database (it may not exist)
    """
    cleaned = (explicit_path or "").strip()
    if cleaned:
        return Path(cleaned).expanduser().resolve()

    env_path = (
        os.getenv(ENV_DB_PATH, "") or os.getenv(ENV_DB_PATH_FALLBACK, "")
    ).strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    return get_default_database_path()
