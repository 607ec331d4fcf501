"""
Read access to the ChatWise SQLite store.

Each operation opens its own read-only connection and closes it before
returning; nothing is cached between calls. Only the time window and the
conversation id restriction are pushed down to SQL, everything else is
filtered in Python by the query planner.
"""

import sqlite3
import traceback
from collections.abc import Iterator, Sequence
from contextlib import closing, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from chatwise_recall.database_management.time_window import TimeWindow
from chatwise_recall.utils.errors import NotFoundError, UnavailableError
from chatwise_recall.utils.logger import log_error

SQL_SELECT_CONVERSATION = """
    SELECT id, title, createdAt, lastReplyAt
    FROM chat
    WHERE id = ?
"""

SQL_SELECT_CONVERSATION_MESSAGES = """
    SELECT id, chatId, createdAt, role, content, meta
    FROM message
    WHERE chatId = ?
    ORDER BY createdAt, id
"""

SQL_SELECT_RECENT_TOOL_CALLS = """
    SELECT id, chatId, createdAt, role, content, meta
    FROM message
    WHERE role = 'assistant'
      AND meta IS NOT NULL AND trim(meta) <> ''
      AND meta LIKE '%"toolCall"%'
      AND {time_clause}
    ORDER BY createdAt DESC
"""


@dataclass(frozen=True)
class ConversationRow:
    """One row of the chat table."""

    id: str
    title: Optional[str]
    created_at: Optional[int]
    last_reply_at: Optional[int]

    @property
    def activity_at(self) -> Optional[int]:
        """Last activity, falling back to creation time."""
        return self.last_reply_at if self.last_reply_at is not None else self.created_at


@dataclass(frozen=True)
class MessageRow:
    """One row of the message table."""

    id: str
    conversation_id: str
    created_at: int
    role: str
    content: str
    meta: Optional[str]


@dataclass(frozen=True)
class ActivityRow:
    """Per-conversation activity summary for the recency listing."""

    conversation_id: str
    title: str
    first_at: Optional[int]
    last_at: Optional[int]
    message_count: int


def _in_clause(column: str, values: Sequence[str]) -> str:
    placeholders = ",".join("?" for _ in values)
    return f"{column} IN ({placeholders})"


def _message_from_row(row: sqlite3.Row) -> MessageRow:
    return MessageRow(
        id=str(row["id"]),
        conversation_id=str(row["chatId"]),
        created_at=row["createdAt"] or 0,
        role=row["role"] or "",
        content=row["content"] or "",
        meta=row["meta"],
    )


class ChatStore:
    """Read-only queries against a ChatWise database file."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)

    def exists(self) -> bool:
        """Check whether the database file is present."""
        return self.db_path.is_file()

    def ensure_exists(self) -> None:
        """Raise NotFoundError if the database file is missing."""
        if not self.exists():
            raise NotFoundError(f"Database not found: {self.db_path}")

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Open a read-only connection for the duration of one operation."""
        self.ensure_exists()
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            log_error(
                f"Unable to open database {self.db_path}: {e}",
                {"traceback": traceback.format_exc()},
            )
            raise UnavailableError(f"Unable to open database: {e}") from e

        conn.row_factory = sqlite3.Row
        with closing(conn):
            try:
                yield conn
            except sqlite3.Error as e:
                log_error(
                    f"Database error on {self.db_path}: {e}",
                    {"traceback": traceback.format_exc()},
                )
                raise UnavailableError(f"Database error: {e}") from e

    def _query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self.connect() as conn:
            with closing(conn.cursor()) as cursor:
                cursor.execute(sql, tuple(params))
                return cursor.fetchall()

    def fetch_title_rows(
        self, window: TimeWindow, conversation_ids: Sequence[str] | None = None
    ) -> List[ConversationRow]:
        """Chats whose last activity falls inside the window."""
        time_clause, params = window.sql_clause("COALESCE(lastReplyAt, createdAt)")
        sql = f"SELECT id, title, createdAt, lastReplyAt FROM chat WHERE {time_clause}"
        if conversation_ids is not None:
            if not conversation_ids:
                return []
            sql += " AND " + _in_clause("id", conversation_ids)
            params.extend(conversation_ids)

        return [
            ConversationRow(
                id=str(row["id"]),
                title=row["title"],
                created_at=row["createdAt"],
                last_reply_at=row["lastReplyAt"],
            )
            for row in self._query(sql, params)
        ]

    def fetch_message_rows(
        self,
        window: TimeWindow,
        conversation_ids: Sequence[str] | None = None,
        user_only: bool = False,
    ) -> List[MessageRow]:
        """Messages created inside the window."""
        time_clause, params = window.sql_clause("createdAt")
        sql = (
            "SELECT id, chatId, createdAt, role, content, meta FROM message "
            f"WHERE {time_clause}"
        )
        if user_only:
            sql += " AND role = 'user'"
        if conversation_ids is not None:
            if not conversation_ids:
                return []
            sql += " AND " + _in_clause("chatId", conversation_ids)
            params.extend(conversation_ids)

        return [_message_from_row(row) for row in self._query(sql, params)]

    def fetch_activity_rows(self, window: TimeWindow) -> List[ActivityRow]:
        """Per-chat message span and count for chats last active in the window."""
        time_clause, params = window.sql_clause("max_ts")
        sql = f"""
            WITH msg_agg AS (
              SELECT chatId, MIN(createdAt) AS min_ts, MAX(createdAt) AS max_ts,
                     COUNT(id) AS msg_count
              FROM message
              GROUP BY chatId
            ),
            base AS (
              SELECT ch.id AS chatId,
                     COALESCE(ch.title, '') AS title,
                     COALESCE(a.min_ts, ch.createdAt) AS min_ts,
                     COALESCE(a.max_ts, COALESCE(ch.lastReplyAt, ch.createdAt)) AS max_ts,
                     COALESCE(a.msg_count, 0) AS msg_count
              FROM chat ch
              LEFT JOIN msg_agg a ON a.chatId = ch.id
            )
            SELECT chatId, title, min_ts, max_ts, msg_count
            FROM base
            WHERE {time_clause}
        """
        return [
            ActivityRow(
                conversation_id=str(row["chatId"]),
                title=row["title"],
                first_at=row["min_ts"],
                last_at=row["max_ts"],
                message_count=row["msg_count"],
            )
            for row in self._query(sql, params)
        ]

    def fetch_titles(self, conversation_ids: Sequence[str]) -> dict[str, str]:
        """Map of conversation id to title ('' when untitled), existing chats only."""
        if not conversation_ids:
            return {}
        sql = "SELECT id, COALESCE(title, '') AS title FROM chat WHERE " + _in_clause(
            "id", conversation_ids
        )
        return {str(row["id"]): row["title"] for row in self._query(sql, conversation_ids)}

    def fetch_conversation(self, conversation_id: str) -> Optional[ConversationRow]:
        """Return the chat row or None."""
        rows = self._query(SQL_SELECT_CONVERSATION, (conversation_id,))
        if not rows:
            return None
        row = rows[0]
        return ConversationRow(
            id=str(row["id"]),
            title=row["title"],
            created_at=row["createdAt"],
            last_reply_at=row["lastReplyAt"],
        )

    def fetch_conversation_messages(self, conversation_id: str) -> List[MessageRow]:
        """All messages of one conversation in (createdAt, id) order."""
        return [
            _message_from_row(row)
            for row in self._query(SQL_SELECT_CONVERSATION_MESSAGES, (conversation_id,))
        ]

    def fetch_recent_tool_call_messages(self, window: TimeWindow) -> List[MessageRow]:
        """Assistant messages carrying a toolCall blob, newest first."""
        time_clause, params = window.sql_clause("createdAt")
        sql = SQL_SELECT_RECENT_TOOL_CALLS.format(time_clause=time_clause)
        return [_message_from_row(row) for row in self._query(sql, params)]
