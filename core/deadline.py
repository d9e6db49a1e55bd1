"""
Deadline racing for long-running async operations.

Runs an operation concurrently with a timer and keeps whichever finishes
first. The loser is cancelled and awaited before returning, so a pending
HTTP request held by the operation is aborted rather than left running
in the background.

Usage:
    racer = TimeoutRacer()
    result = await racer.run(480.0, lambda: client.send(request))
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeadlineExceeded(TimeoutError):
    """Raised when the deadline timer wins the race."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"Operation did not complete within {deadline:.1f}s")


class TimeoutRacer:
    """Race an awaitable operation against a deadline timer."""

    async def run(
        self,
        deadline: float,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run an operation, failing it if the deadline elapses first.

        Args:
            deadline: Seconds before the timer fires
            operation: Zero-argument callable returning the awaitable to run

        Returns:
            The operation's result

        Raises:
            DeadlineExceeded: If the timer finishes before the operation
            Exception: Any exception raised by the operation
        """
        work = asyncio.ensure_future(operation())
        timer = asyncio.ensure_future(asyncio.sleep(deadline))

        try:
            done, _ = await asyncio.wait(
                {work, timer},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            # Also runs when the caller is cancelled while waiting
            pending = [task for task in (work, timer) if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if work in done:
            return work.result()

        logger.warning(f"Deadline of {deadline:.1f}s elapsed, operation cancelled")
        raise DeadlineExceeded(deadline)
