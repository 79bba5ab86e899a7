"""
Tests for the bounded retry loops.
"""

from unittest.mock import Mock

import pytest

from oneliner.validation import RetryResult, poll_with_backoff, wait_until


@pytest.mark.unit
class TestPollWithBackoff:
    """Test poll_with_backoff."""

    def test_first_attempt_succeeds(self):
        """Test that a ready read returns without sleeping."""
        sleep = Mock()
        result = poll_with_backoff(lambda: 0, sleep=sleep)

        assert result.ok
        assert result.value == 0
        assert result.attempts == 1
        assert result.waited == 0.0
        sleep.assert_not_called()

    def test_linear_backoff_between_retries(self):
        """Test that retry N sleeps backoff * N seconds."""
        sleep = Mock()
        read = Mock(side_effect=[None, None, 3])

        result = poll_with_backoff(read, max_retries=5, backoff=2.0, sleep=sleep)

        assert result.value == 3
        assert result.attempts == 3
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0]
        assert result.waited == 6.0

    def test_budget_exhausted(self):
        """Test that an always-pending read is tried max_retries + 1 times."""
        sleep = Mock()
        read = Mock(return_value=None)

        result = poll_with_backoff(read, max_retries=5, backoff=2.0, sleep=sleep)

        assert not result.ok
        assert result.value is None
        assert result.attempts == 6
        assert read.call_count == 6
        assert [c.args[0] for c in sleep.call_args_list] == [2.0, 4.0, 6.0, 8.0, 10.0]
        assert result.waited == 30.0

    def test_zero_retries(self):
        """Test that max_retries=0 means a single attempt."""
        sleep = Mock()
        result = poll_with_backoff(lambda: None, max_retries=0, sleep=sleep)

        assert result.attempts == 1
        sleep.assert_not_called()

    def test_falsy_values_count_as_ready(self):
        """Test that only None means not ready."""
        assert poll_with_backoff(lambda: "", sleep=Mock()).ok
        assert RetryResult(value=0, attempts=1).ok


@pytest.mark.unit
class TestWaitUntil:
    """Test wait_until with a fake clock."""

    def _clock(self, start=0.0):
        now = [start]

        def clock():
            return now[0]

        def sleep(seconds):
            now[0] += seconds

        return clock, sleep

    def test_predicate_true_immediately(self):
        """Test an immediately true predicate."""
        clock, sleep = self._clock()
        assert wait_until(lambda: True, 1.0, sleep=sleep, clock=clock)
        assert clock() == 0.0

    def test_predicate_becomes_true(self):
        """Test a predicate that turns true after a few polls."""
        clock, sleep = self._clock()
        calls = iter([False, False, True])

        assert wait_until(lambda: next(calls), 1.0, interval=0.1, sleep=sleep, clock=clock)
        assert clock() == pytest.approx(0.2)

    def test_timeout(self):
        """Test that the wait stops at the bound."""
        clock, sleep = self._clock()

        assert not wait_until(lambda: False, 1.0, interval=0.3, sleep=sleep, clock=clock)
        assert clock() == pytest.approx(1.0)
