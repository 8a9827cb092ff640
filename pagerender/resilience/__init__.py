"""Resilience utilities for external service calls.

Retry with exponential backoff for the source download and the page upload;
both budget their attempts and only retry transient failures.
"""

from pagerender.resilience.retry import (
    RetriesExhausted,
    RetryConfig,
    is_retryable,
    retry_with_backoff,
)

__all__ = [
    "RetriesExhausted",
    "RetryConfig",
    "is_retryable",
    "retry_with_backoff",
]
