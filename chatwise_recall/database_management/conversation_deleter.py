"""
Deletion of conversations and their messages.

The only writer in the project: counts first, then deletes messages and
chat rows inside one explicit transaction.
"""

import sqlite3
import traceback
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List

from chatwise_recall.config.constants import DELETE_CHUNK_SIZE
from chatwise_recall.utils.errors import NotFoundError, UnavailableError
from chatwise_recall.utils.logger import log_error, log_info

DELETE_NOTES_DRY_RUN = [
    "This tool only deletes DB rows (message, chat).",
    "No filesystem cleanup is performed for generatedFiles or attachments.",
]
DELETE_NOTES_COMMITTED = [
    "Rows deleted within a single transaction.",
    "No filesystem cleanup is performed for generatedFiles or attachments.",
]


def chunk(values: List[str], size: int) -> List[List[str]]:
    """Split values into lists of at most size items."""
    return [values[i : i + size] for i in range(0, len(values), size)]


class ConversationDeleter:
    """Deletes ChatWise conversations from a database file."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)

    def delete_conversations(
        self, conversation_ids: List[str], dry_run: bool = False
    ) -> Dict[str, Any]:
        """Delete conversations, or only count what would go when dry_run is set.

        Args:
            conversation_ids: Unique, non-empty conversation ids
            dry_run: When True nothing is deleted

        Returns:
            Dictionary with per-conversation counts, totals and deleted counts
        """
        if not self.db_path.is_file():
            raise NotFoundError(f"Database not found: {self.db_path}")

        try:
            with closing(sqlite3.connect(str(self.db_path))) as conn:
                per_chat = [self._count_rows(conn, cid) for cid in conversation_ids]
                totals = {
                    "chat": sum(r["toDelete"]["chat"] for r in per_chat),
                    "messages": sum(r["toDelete"]["messages"] for r in per_chat),
                }

                result: Dict[str, Any] = {
                    "status": "ok",
                    "dryRun": dry_run,
                    "chatIds": conversation_ids,
                    "perChat": per_chat,
                    "totals": totals,
                }

                if dry_run:
                    result["notes"] = DELETE_NOTES_DRY_RUN
                    return result

                result["deleted"] = self._delete_rows(conn, conversation_ids)
                result["notes"] = DELETE_NOTES_COMMITTED
        except sqlite3.Error as e:
            log_error(
                f"Delete failed on {self.db_path}: {e}",
                {"traceback": traceback.format_exc()},
            )
            raise UnavailableError(f"Database error: {e}") from e

        log_info(
            f"Deleted {result['deleted']['chat']} chats and "
            f"{result['deleted']['messages']} messages",
            {"chatIds": conversation_ids},
        )
        return result

    def _count_rows(self, conn: sqlite3.Connection, conversation_id: str) -> Dict[str, Any]:
        chat_count = conn.execute(
            "SELECT COUNT(1) FROM chat WHERE id = ?", (conversation_id,)
        ).fetchone()[0]
        message_count = conn.execute(
            "SELECT COUNT(1) FROM message WHERE chatId = ?", (conversation_id,)
        ).fetchone()[0]
        return {
            "chatId": conversation_id,
            "exists": chat_count > 0,
            "toDelete": {"chat": chat_count, "messages": message_count},
        }

    def _delete_rows(
        self, conn: sqlite3.Connection, conversation_ids: List[str]
    ) -> Dict[str, int]:
        deleted_messages = 0
        deleted_chats = 0
        # The connection context manager commits on success, rolls back on error.
        with conn:
            for part in chunk(conversation_ids, DELETE_CHUNK_SIZE):
                placeholders = ",".join("?" for _ in part)
                cursor = conn.execute(
                    f"DELETE FROM message WHERE chatId IN ({placeholders})", part
                )
                deleted_messages += cursor.rowcount
            for part in chunk(conversation_ids, DELETE_CHUNK_SIZE):
                placeholders = ",".join("?" for _ in part)
                cursor = conn.execute(
                    f"DELETE FROM chat WHERE id IN ({placeholders})", part
                )
                deleted_chats += cursor.rowcount
        return {"messages": deleted_messages, "chat": deleted_chats}
