"""
Tests for snippet_extractor module.
"""

import pytest

from conftest import BASE_MS, create_chatwise_database

from chatwise_recall.database_management.chat_store import ChatStore
from chatwise_recall.database_management.query_planner import QueryPlanner, SearchQuery
from chatwise_recall.database_management.snippet_extractor import (
    SnippetExtractor,
    extract_snippet,
    find_anchor,
)
from chatwise_recall.database_management.time_window import TimeWindow

ALL_TIME = TimeWindow(0, 9_999_999_999_999)


class TestExtractSnippet:
    """Test suite for extract_snippet."""

    def test_short_text_is_returned_whole(self) -> None:
        assert extract_snippet("I love Rust programming", ["rust"], 64) == (
            "I love Rust programming"
        )

    def test_clamped_both_sides(self) -> None:
        text = "a" * 100 + "needle" + "b" * 100
        snippet = extract_snippet(text, ["needle"], 10)
        assert snippet == "…" + "a" * 10 + "needle" + "bbbb" + "…"

    def test_anchor_at_start_without_terms(self) -> None:
        text = "x" * 50
        assert extract_snippet(text, [], 10) == "x" * 10 + "…"

    def test_earliest_term_occurrence_anchors(self) -> None:
        assert find_anchor("alpha beta gamma", ["gamma", "beta"]) == 6

    def test_case_insensitive_anchor(self) -> None:
        assert find_anchor("Hello RUST", ["rust"]) == 6

    def test_phrase_anchors_across_line_breaks(self) -> None:
        text = "x" * 40 + "Error\r\n\tHandling matters"
        assert find_anchor(text, ["error handling"]) == 40
        snippet = extract_snippet(text, ["error handling"], 5)
        assert snippet.startswith("…xxxxxError")

    def test_term_is_matched_literally(self) -> None:
        assert find_anchor("cost is a+b (roughly)", ["a+b"]) == 8
        assert find_anchor("aab", ["a.b"]) == 0

    @pytest.mark.parametrize("window", [1, 5, 64, 400])
    @pytest.mark.parametrize(
        "text",
        ["", "short", "z" * 1000, "prefix " * 30 + "term" + " suffix" * 30, "term"],
    )
    def test_length_bound(self, text: str, window: int) -> None:
        snippet = extract_snippet(text, ["term"], window)
        assert len(snippet) <= 2 * window + 2
        assert snippet.strip("…") in text


class TestSnippetExtractor:
    """Test suite for SnippetExtractor."""

    @pytest.fixture(autouse=True)
    def setup_database(self, db_path) -> None:
        create_chatwise_database(
            db_path,
            chats=[("c1", "Rust chat", BASE_MS, BASE_MS + 9000)],
            messages=[
                ("m1", "c1", BASE_MS + 1000, "user", "rust one", None),
                ("m2", "c1", BASE_MS + 2000, "assistant", "rust two", None),
                ("m3", "c1", BASE_MS + 3000, "user", "rust three", None),
                ("m4", "c1", BASE_MS + 4000, "assistant", "unrelated", None),
            ],
        )
        self.extractor = SnippetExtractor(QueryPlanner(ChatStore(db_path)))

    def test_newest_first_and_capped(self) -> None:
        query = SearchQuery(terms=["rust"], window=ALL_TIME)
        snippets = self.extractor.extract(query, ["c1"], limit_snippets=2)
        texts = [s.text for s in snippets["c1"]]
        # title (activity +9000) is newest, then m3
        assert texts == ["Rust chat", "rust three"]
        assert snippets["c1"][0].source == "title"
        assert snippets["c1"][0].message_id == ""
        assert snippets["c1"][1].to_dict() == {
            "messageId": "m3",
            "role": "user",
            "createdAt": BASE_MS + 3000,
            "text": "rust three",
            "source": "content",
        }

    def test_recency_listing_keeps_unmatched_messages(self) -> None:
        query = SearchQuery(terms=[], window=ALL_TIME, include_tools=False)
        snippets = self.extractor.extract(
            query, ["c1"], limit_snippets=2, recency_listing=True
        )
        assert [s.text for s in snippets["c1"]] == ["Rust chat", "unrelated"]

    def test_no_conversations(self) -> None:
        query = SearchQuery(terms=["rust"], window=ALL_TIME)
        assert self.extractor.extract(query, [], limit_snippets=3) == {}
