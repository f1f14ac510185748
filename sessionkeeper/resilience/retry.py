"""
Retry logic with exponential backoff for sessionkeeper.

Used by the session store's lifecycle hook while it describes or provisions
the keyspace. Request-path operations are never retried here; their errors
go straight to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    How many times to call, how long to wait in between, and what counts
    as a transient failure.

    Attributes:
        max_attempts: Total calls including the first one.
        initial_delay: Seconds to wait after the first failure.
        exponential_base: Growth factor of the wait (2.0 gives 1s, 2s, 4s).
        max_delay: Upper bound for a single wait, or None.
        retryable_exceptions: Exception types worth another call.
        should_retry: Final say on an otherwise retryable exception.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: Optional[float] = None
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )
    should_retry: Optional[Callable[[Exception], bool]] = None


class RetryExhaustedException(Exception):
    """
    Raised after the last allowed attempt failed.

    The failure of that attempt is kept in last_exception and chained as
    __cause__.
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Exception,
        operation_name: Optional[str] = None
    ):
        self.attempts = attempts
        self.last_exception = last_exception
        self.operation_name = operation_name
        super().__init__(message)


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Seconds to wait after the given failed attempt (0-indexed).

    initial_delay * exponential_base ** attempt, capped at max_delay.
    """
    delay = initial_delay * (exponential_base ** attempt)
    return delay if max_delay is None else min(delay, max_delay)


def _is_retryable(config: RetryConfig, exc: Exception) -> bool:
    if not isinstance(exc, config.retryable_exceptions):
        return False
    if config.should_retry is not None:
        return config.should_retry(exc)
    return True


def _log_attempt_failed(name: str, attempt: int, config: RetryConfig,
                        delay: float, exc: Exception) -> None:
    logger.warning(
        "Attempt %d/%d of '%s' failed with %s: %s. Retrying in %.2f seconds",
        attempt, config.max_attempts, name, type(exc).__name__, exc, delay,
        extra={"extra_data": {
            "operation": name,
            "attempt": attempt,
            "max_attempts": config.max_attempts,
            "delay_seconds": delay,
            "error_type": type(exc).__name__,
            "error_message": str(exc),
        }}
    )


def _log_exhausted(name: str, attempts: int, exc: Exception) -> None:
    logger.error(
        "Giving up on '%s' after %d attempts. Last error: %s",
        name, attempts, exc,
        extra={"extra_data": {
            "operation": name,
            "attempts": attempts,
            "last_error": str(exc),
            "error_type": type(exc).__name__,
        }}
    )


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any
) -> T:
    """
    Await func(*args, **kwargs), calling it again after transient failures.

    The first call is always made, whatever max_attempts says.

    Example:
        await retry_async(
            record_store.init,
            auto_create=True,
            config=RetryConfig(max_attempts=5),
            operation_name="describe_table"
        )

    Raises:
        RetryExhaustedException: The last allowed attempt failed.
        Exception: A non-retryable failure, unchanged.
    """
    cfg = config or RetryConfig()
    name = operation_name or getattr(func, "__name__", "operation")
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            attempt += 1
            if not _is_retryable(cfg, e):
                raise
            if attempt >= cfg.max_attempts:
                _log_exhausted(name, attempt, e)
                raise RetryExhaustedException(
                    f"Operation '{name}' failed after {attempt} attempts",
                    attempts=attempt,
                    last_exception=e,
                    operation_name=name
                ) from e

            delay = calculate_delay(
                attempt - 1, cfg.initial_delay, cfg.exponential_base, cfg.max_delay
            )
            _log_attempt_failed(name, attempt, cfg, delay, e)
            await asyncio.sleep(delay)
