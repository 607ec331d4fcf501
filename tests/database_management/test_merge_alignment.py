"""
Tests for merge_alignment module.
"""

import json

import pytest

from conftest import BASE_MS, BASE_SECONDS, create_chatwise_database

from chatwise_recall.database_management.chat_store import ChatStore, MessageRow
from chatwise_recall.database_management.merge_alignment import (
    MergeAlignmentEngine,
    find_common_groups,
    number_messages,
    prepare_conversation_ids,
)
from chatwise_recall.utils.errors import InvalidArgumentError, NotFoundError


def message(message_id: str, chat_id: str, created_at: int, role: str, content: str) -> MessageRow:
    return MessageRow(
        id=message_id,
        conversation_id=chat_id,
        created_at=created_at,
        role=role,
        content=content,
        meta=None,
    )


def common_lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.startswith("[Common]")]


class TestMergeHelpers:
    """Pure helpers of the alignment engine."""

    def test_prepare_conversation_ids(self) -> None:
        assert prepare_conversation_ids([" a ", "", "b", "a", None]) == ["a", "b"]

    def test_number_messages_is_chronological(self) -> None:
        numbered = number_messages(
            2,
            [
                message("z", "c", BASE_MS + 10, "user", "late"),
                message("b", "c", BASE_MS, "user", "tie b"),
                message("a", "c", BASE_MS, "user", "tie a"),
                message("s", "c", BASE_SECONDS - 1, "user", "seconds, earliest"),
            ],
        )
        assert [(n.seq, n.message.id) for n in numbered] == [
            (1, "s"),
            (2, "a"),
            (3, "b"),
            (4, "z"),
        ]
        assert numbered[0].ref == "2#1(s)"

    def test_common_requires_every_conversation(self) -> None:
        a = number_messages(1, [message("a1", "A", BASE_MS, "user", "ping")])
        b = number_messages(2, [message("b1", "B", BASE_MS + 5, "user", " PING ")])
        c = number_messages(3, [message("c1", "C", BASE_MS, "user", "pong")])

        assert len(find_common_groups({1: a, 2: b}, 2)) == 1
        assert find_common_groups({1: a, 2: b, 3: c}, 3) == []

    def test_repeats_in_one_conversation_do_not_count_as_coverage(self) -> None:
        a = number_messages(
            1,
            [
                message("a1", "A", BASE_MS, "user", "ping"),
                message("a2", "A", BASE_MS + 1, "user", "ping"),
            ],
        )
        b = number_messages(2, [message("b1", "B", BASE_MS, "user", "pong")])
        assert find_common_groups({1: a, 2: b}, 2) == []

    def test_representative_tie_break_uses_message_id(self) -> None:
        a = number_messages(1, [message("zzz", "A", BASE_MS, "user", "Ping")])
        b = number_messages(2, [message("aaa", "B", BASE_MS, "user", "ping")])
        group = find_common_groups({1: a, 2: b}, 2)[0]
        assert group.representative.message.id == "aaa"
        assert [r.ordinal for r in group.refs] == [1, 2]

    def test_local_sequence_independent_of_other_conversations(self) -> None:
        rows = [
            message("m1", "A", BASE_MS, "user", "one"),
            message("m2", "A", BASE_MS + 1, "assistant", "two"),
        ]
        alone = [(n.seq, n.message.id) for n in number_messages(1, rows)]
        again = [(n.seq, n.message.id) for n in number_messages(1, list(reversed(rows)))]
        assert alone == again == [(1, "m1"), (2, "m2")]


class TestMergeAlignmentEngine:
    """End-to-end merge against a temporary database."""

    @pytest.fixture(autouse=True)
    def setup_database(self, db_path) -> None:
        meta = json.dumps({"toolCall": {"c1": {"server_name": "web", "tool_name": "fetch"}}})
        create_chatwise_database(
            db_path,
            chats=[
                ("chatA", "First chat", BASE_MS, BASE_MS),
                ("chatB", None, BASE_SECONDS, BASE_SECONDS),
                ("chatC", "Third", BASE_MS, BASE_MS),
            ],
            messages=[
                ("a-000001", "chatA", BASE_MS + 1000, "user", "hello", None),
                ("a-000002", "chatA", BASE_MS + 2000, "user", "ping", None),
                ("a-000003", "chatA", BASE_MS + 3000, "assistant", "pong from A", meta),
                ("b-000001", "chatB", BASE_SECONDS + 5, "user", "Ping\n", None),
                ("b-000002", "chatB", BASE_SECONDS + 6, "assistant", "pong from B", None),
                ("c-000001", "chatC", BASE_MS + 500, "user", "unrelated", None),
            ],
        )
        self.db_path = db_path
        self.engine = MergeAlignmentEngine(ChatStore(db_path))

    def test_common_line_references_both_conversations(self) -> None:
        output = self.engine.merge(["chatA", "chatB"], include_tools=False)
        lines = common_lines(output)
        assert lines == ["[Common]Me: ping  | Refs: 1#2(a-000002),2#1(b-000001)"]

    def test_narrative_lines(self) -> None:
        output = self.engine.merge(["chatA", "chatB"], include_tools=False)
        assert "—— Conversation 1 ——" in output
        assert "—— Conversation 2 ——" in output
        assert "[1#1](a-000001 2024-01-01 00:00:01) Me: hello" in output
        assert "[2#2](b-000002 2024-01-01 00:00:06) AI: pong from B" in output
        assert "- Conversation 2: chatB | Title: <untitled> |" in output

    def test_tool_blocks_follow_their_message(self) -> None:
        with_tools = self.engine.merge(["chatA", "chatB"], include_tools=True)
        assert "AI: pong from A\n  <Tool Call> c1 server=web tool=fetch\n" in with_tools
        without_tools = self.engine.merge(["chatA", "chatB"], include_tools=False)
        assert "<Tool Call>" not in without_tools

    def test_adding_uncovering_conversation_empties_common(self) -> None:
        output = self.engine.merge(["chatA", "chatB", "chatC"])
        assert common_lines(output) == []
        assert "[3#1]" in output

    def test_missing_conversation_contributes_nothing(self) -> None:
        output = self.engine.merge(["chatA", "missing"])
        assert common_lines(output) == []
        assert "- Conversation 2: missing | Title: <untitled> | Time: -" in output

    def test_order_defines_ordinals(self) -> None:
        output = self.engine.merge(["chatB", "chatA"], include_tools=False)
        assert common_lines(output) == [
            "[Common]Me: ping  | Refs: 1#1(b-000001),2#2(a-000002)"
        ]

    def test_duplicate_ids_are_collapsed_before_validation(self) -> None:
        with pytest.raises(InvalidArgumentError):
            self.engine.merge(["chatA", " chatA ", ""])

    def test_missing_database(self, tmp_path) -> None:
        engine = MergeAlignmentEngine(ChatStore(tmp_path / "nope.db"))
        with pytest.raises(NotFoundError):
            engine.merge(["a", "b"])
