"""
Retry policy for store operations.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from taskflow.exceptions.errors import TransientStoreError

logger = logging.getLogger(__name__)


def is_transient(exc: BaseException) -> bool:
    """Default retryable predicate: only transient store failures are retried."""
    return isinstance(exc, TransientStoreError)


class RetryPolicy:
    """
    Bounded retries with exponential backoff.

    With the defaults an operation is attempted 3 times, sleeping 1s and then
    2s between attempts. The last failure is re-raised unchanged.

    Args:
        max_attempts: Total number of attempts (>= 1)
        base_delay: Delay before the second attempt, in seconds
        multiplier: Factor applied to the delay after each failed attempt
        retryable: Predicate deciding whether an exception is retried
        sleep: Awaitable sleep function (injectable for tests)
        on_retry: Optional callback ``(operation, attempt, exc)`` invoked before sleeping
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        multiplier: float = 2.0,
        retryable: Callable[[BaseException], bool] = is_transient,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_retry: Optional[Callable[[str, int, BaseException], None]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.retryable = retryable
        self.sleep = sleep
        self.on_retry = on_retry

    def delay_for(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        return self.base_delay * (self.multiplier ** (attempt - 1))

    async def call(self, operation: Callable[[], Awaitable[Any]], name: str = "operation") -> Any:
        """Run ``operation`` until it succeeds, fails permanently, or attempts run out."""
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.max_attempts or not self.retryable(e):
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{name} failed (attempt {attempt}/{self.max_attempts}): {e}. Retrying in {delay:.1f}s"
                )
                if self.on_retry:
                    self.on_retry(name, attempt, e)
                await self.sleep(delay)
                attempt += 1
