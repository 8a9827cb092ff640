"""Unit tests for retry logic with exponential backoff."""

import pytest

from pagerender.core.exceptions import (
    ExternalServiceError,
    FetchFailedError,
    NotAPdfError,
)
from pagerender.resilience import RetriesExhausted, RetryConfig, is_retryable, retry_with_backoff


class SleepRecorder:
    """Awaitable sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def transient(error_type="timeout"):
    return ExternalServiceError(service_name="TEST", error_type=error_type)


class ScriptedCall:
    """Raises the scripted errors in order, then returns the result."""

    def __init__(self, errors, result="success"):
        self.errors = list(errors)
        self.result = result
        self.attempts = []

    async def __call__(self, attempt):
        self.attempts.append(attempt)
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryBasics:
    """Tests for basic retry functionality."""

    @pytest.mark.asyncio
    async def test_immediate_success_no_retry(self):
        sleep = SleepRecorder()
        call = ScriptedCall([])

        result = await retry_with_backoff(call, RetryConfig(max_attempts=3), sleep=sleep)

        assert result == "success"
        assert call.attempts == [0]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_transient_errors(self):
        sleep = SleepRecorder()
        call = ScriptedCall([transient(), transient()])

        result = await retry_with_backoff(call, RetryConfig(max_attempts=3), sleep=sleep)

        assert result == "success"
        assert call.attempts == [0, 1, 2]
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_reports_attempts_and_last_error(self):
        """No sleep follows the final attempt."""
        sleep = SleepRecorder()
        last = transient("unauthorized")
        call = ScriptedCall([transient(), transient(), last, None])

        with pytest.raises(RetriesExhausted) as exc_info:
            await retry_with_backoff(call, RetryConfig(max_attempts=3), sleep=sleep)

        assert exc_info.value.attempts == 3
        assert exc_info.value.last_error is last
        assert call.attempts == [0, 1, 2]
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [FetchFailedError(500, "boom"), NotAPdfError(first_bytes="<htm")],
    )
    async def test_non_transient_errors_propagate_immediately(self, error):
        sleep = SleepRecorder()
        call = ScriptedCall([error])

        with pytest.raises(type(error)):
            await retry_with_backoff(call, RetryConfig(max_attempts=3), sleep=sleep)

        assert call.attempts == [0]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_plain_exceptions_are_not_retried(self):
        call = ScriptedCall([KeyError("bug")])

        with pytest.raises(KeyError):
            await retry_with_backoff(call, RetryConfig(max_attempts=3), sleep=SleepRecorder())

        assert call.attempts == [0]


class TestRetryConfig:
    def test_exponential_delays(self):
        config = RetryConfig(initial_delay_seconds=1.0, exponential_base=2.0)

        assert [config.delay_for(n) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delays_are_deterministic_and_uncapped(self):
        config = RetryConfig()

        assert config.delay_for(6) == config.delay_for(6) == 64.0


class TestIsRetryable:
    def test_transient_is_retryable(self):
        assert is_retryable(transient()) is True

    def test_upstream_is_not(self):
        assert is_retryable(FetchFailedError(404)) is False

    def test_foreign_exceptions_are_not(self):
        assert is_retryable(TimeoutError()) is False
