"""
Common utility functions for the chatwise-recall MCP Server.
"""

from pathlib import Path

VERSION_FILE = Path(__file__).resolve().parent.parent / "VERSION"


def get_version() -> str:
    """Get the version from the VERSION file shipped inside the package.

    Returns:
        The version string from the VERSION file.

    Raises:
        FileNotFoundError: If the VERSION file is not found.
        ValueError: If the VERSION file is empty or unreadable.
    """
    if not VERSION_FILE.exists():
        raise FileNotFoundError(f"VERSION file not found at {VERSION_FILE}")

    try:
        with open(VERSION_FILE, "r", encoding="utf-8") as f:
            version = f.read().strip()
    except OSError as e:
        raise ValueError(f"Error reading VERSION file: {e}") from e

    if not version:
        raise ValueError("VERSION file is empty")

    return version
