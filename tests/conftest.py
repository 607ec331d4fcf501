"""
Test configuration and helpers for building ChatWise databases.
"""

import json
import sqlite3
from pathlib import Path

import pytest

from chatwise_recall.config.search_config import SearchConfigManager

CHATWISE_SCHEMA = """
CREATE TABLE chat (
    id TEXT PRIMARY KEY,
    title TEXT,
    createdAt INTEGER,
    lastReplyAt INTEGER
);
CREATE TABLE message (
    id TEXT PRIMARY KEY,
    chatId TEXT,
    createdAt INTEGER,
    role TEXT,
    content TEXT,
    meta TEXT
);
"""

# 2024-01-01 00:00:00 UTC
BASE_MS = 1_704_067_200_000
BASE_SECONDS = BASE_MS // 1000


def create_test_database(
    db_path: Path, schema_sql: str | None = None, data: dict | None = None
) -> None:
    """Create a test database with optional schema and data."""
    with sqlite3.connect(str(db_path)) as conn:
        cursor = conn.cursor()
        try:
            if schema_sql:
                cursor.executescript(schema_sql)

            if data:
                for table, rows in data.items():
                    if rows:
                        placeholders = ", ".join(["?" for _ in rows[0]])
                        cursor.executemany(
                            f"INSERT INTO {table} VALUES ({placeholders})", rows
                        )

            conn.commit()
        finally:
            cursor.close()
    conn.close()


def create_chatwise_database(
    db_path: Path, chats: list | None = None, messages: list | None = None
) -> Path:
    """Create a ChatWise-shaped database.

    chats rows: (id, title, createdAt, lastReplyAt)
    messages rows: (id, chatId, createdAt, role, content, meta)
    """
    create_test_database(
        db_path,
        CHATWISE_SCHEMA,
        {"chat": chats or [], "message": messages or []},
    )
    return db_path


def tool_call_meta(
    server_name: str = "chatwise-mcp",
    tool_name: str = "search_conversations",
    arguments: str = '{"intent_query": "rust"}',
) -> str:
    """Meta blob of an assistant message that called an MCP tool."""
    return json.dumps(
        {
            "toolCall": {
                "call_1": {
                    "type": "use_mcp_tool",
                    "server_name": server_name,
                    "tool_name": tool_name,
                    "arguments": arguments,
                }
            }
        }
    )


def count_rows(db_path: Path, table: str) -> int:
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(f"SELECT COUNT(1) FROM {table}").fetchone()[0]
    finally:
        conn.close()


@pytest.fixture(autouse=True)
def reset_search_config(tmp_path, monkeypatch):
    """Give every test default search tuning, independent of the user's home."""
    monkeypatch.setattr(
        "chatwise_recall.config.search_config.CHATWISE_RECALL_HOME",
        str(tmp_path / "home"),
    )
    monkeypatch.delenv("CHATWISE_CURRENT_CHAT_ID", raising=False)
    SearchConfigManager.reset_default()
    yield
    SearchConfigManager.reset_default()


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "app.db"
