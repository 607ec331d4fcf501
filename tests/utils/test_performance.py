"""
Tests for performance utilities.
"""

import unittest.mock as mock

import pytest

from chatwise_recall.utils.performance import (
    get_duration,
    log_operation_time,
    start_timer,
    timed_operation,
)


class TestPerformance:
    def test_duration_is_non_negative(self) -> None:
        assert get_duration(start_timer()) >= 0

    @mock.patch("chatwise_recall.utils.performance.log_debug")
    def test_log_operation_time_debug(self, mock_log_debug) -> None:
        log_operation_time("merge", start_timer(), "debug", "3 chats")
        message = mock_log_debug.call_args[0][0]
        assert message.startswith("Performance: merge completed in ")
        assert message.endswith("(3 chats)")

    @mock.patch("chatwise_recall.utils.performance.log_info")
    def test_timed_operation_logs_on_error(self, mock_log_info) -> None:
        with pytest.raises(RuntimeError):
            with timed_operation("search"):
                raise RuntimeError("boom")
        mock_log_info.assert_called_once()
