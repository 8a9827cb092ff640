"""Retry logic with exponential backoff.

Retry decisions are made on the failure kind carried by the raised
BaseError: only ErrorKind.TRANSIENT triggers another attempt. Anything else
propagates on the first occurrence.

Example:
    >>> from pagerender.resilience.retry import retry_with_backoff, RetryConfig
    >>> config = RetryConfig(max_attempts=3, initial_delay_seconds=1.0)
    >>> body = await retry_with_backoff(download_once, config, operation="fetch")
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pagerender.core.exceptions import BaseError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry logic.

    Attributes:
        max_attempts: Maximum number of attempts (including initial)
        initial_delay_seconds: Delay before the second attempt
        exponential_base: Base for exponential backoff (delay *= base ** attempt)
    """

    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    exponential_base: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Delay after the failed attempt with 0-based index `attempt`."""
        return self.initial_delay_seconds * (self.exponential_base**attempt)


def is_retryable(exc: BaseException) -> bool:
    """Whether another attempt may succeed after `exc`."""
    return isinstance(exc, BaseError) and exc.kind is ErrorKind.TRANSIENT


class RetriesExhausted(Exception):
    """Every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"All {attempts} attempts failed: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


async def retry_with_backoff(
    func: Callable[[int], Awaitable[T]],
    config: RetryConfig,
    *,
    operation: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    log_extra: Optional[dict[str, Any]] = None,
) -> T:
    """Run `func(attempt)` until it succeeds or the attempt budget is spent.

    Args:
        func: Coroutine function receiving the 0-based attempt index
        config: Retry configuration
        operation: Name used in log messages
        sleep: Awaitable sleep, injectable for tests
        log_extra: Extra structured fields for log lines

    Returns:
        Result of the first successful attempt

    Raises:
        RetriesExhausted: If every attempt failed with a TRANSIENT error
        BaseException: Any non-retryable error, unchanged, on first occurrence
    """
    extra = dict(log_extra or {})
    last_exception: Optional[BaseException] = None

    for attempt in range(config.max_attempts):
        try:
            return await func(attempt)
        except BaseError as e:
            if not is_retryable(e):
                raise
            last_exception = e

            if attempt == config.max_attempts - 1:
                logger.error(
                    f"{operation}: all {config.max_attempts} attempts failed",
                    extra={**extra, "attempt": attempt + 1, "error_code": e.error_code},
                )
                break

            delay = config.delay_for(attempt)
            logger.warning(
                f"{operation}: attempt {attempt + 1}/{config.max_attempts} failed: "
                f"{e.message}. Retrying in {delay:.2f}s...",
                extra={
                    **extra,
                    "attempt": attempt + 1,
                    "max_attempts": config.max_attempts,
                    "delay_seconds": delay,
                    "error_code": e.error_code,
                },
            )
            await sleep(delay)

    raise RetriesExhausted(config.max_attempts, last_exception)
