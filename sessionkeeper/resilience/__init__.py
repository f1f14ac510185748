"""
Resilience patterns for sessionkeeper.

Retry with exponential backoff for calls to the backing store made outside
of a session request.
"""

from sessionkeeper.resilience.retry import (
    RetryConfig,
    RetryExhaustedException,
    calculate_delay,
    retry_async,
)

__all__ = [
    "RetryConfig",
    "RetryExhaustedException",
    "calculate_delay",
    "retry_async",
]
