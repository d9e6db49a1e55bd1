"""
Retry policy for expensive calls against a slow, stateful backend.

Attempts are strictly sequential. Between attempt k and k+1 the policy
waits k * base_delay seconds (linear, not exponential). Only exceptions
classified as retryable are retried; the final attempt's exception is
re-raised unchanged.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """Default classifier: honour an error's ``retryable`` flag, otherwise fail fast."""
    return bool(getattr(error, "retryable", False))


class RetryPolicy:
    """
    Bounded retry with linear backoff.

    Usage:
        policy = RetryPolicy(max_attempts=2, base_delay=2.0)
        result = await policy.execute(lambda: client.send(request))
    """

    def __init__(
        self,
        max_attempts: int = 2,
        base_delay: float = 2.0,
        should_retry: Callable[[BaseException], bool] = is_retryable,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.should_retry = should_retry
        self._sleep = sleep or asyncio.sleep

    def backoff_for(self, attempt: int) -> float:
        """Seconds to wait after the given 1-based attempt fails."""
        return attempt * self.base_delay

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run the operation until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt

        Returns:
            Result of the first successful attempt

        Raises:
            Exception: The last attempt's exception, or the first non-retryable one
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception(self.should_retry),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                logger.debug(f"Attempt {number}/{self.max_attempts}")
                result = await operation()

        return result
