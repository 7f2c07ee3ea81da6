# ==============================================================================
# Operation Dispatcher
# ==============================================================================
"""
Runs store operations either awaited or fire-and-forget.

Fire-and-forget operations are scheduled as asyncio tasks and the caller gets
an InFlight handle back instead of the settled value. Their failures never
reach the caller through a return value: they are logged at ERROR level by a
done-callback and stay retrievable from the handle. Use this mode only where
losing a counter update silently (apart from the log line) is acceptable.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from statcounter.core.models import AwaitPolicy, InFlight

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Dispatcher:
    """Applies an AwaitPolicy to a store operation."""

    def __init__(self):
        # Strong references so pending tasks are not garbage collected
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def submit(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: AwaitPolicy,
        description: str,
    ) -> T | InFlight[T]:
        """
        Run an operation according to the policy.

        Args:
            operation: Zero-argument callable returning the store coroutine
            policy: AWAIT returns the value, FIRE_AND_FORGET returns a handle
            description: Short label used in logs (e.g., "incr app:...:online")

        Returns:
            The operation's result, or an InFlight handle
        """
        if policy is AwaitPolicy.AWAIT:
            return await operation()

        task = asyncio.ensure_future(operation())
        self._pending.add(task)
        task.add_done_callback(lambda t: self._settle(t, description))
        return InFlight(task, description)

    def _settle(self, task: asyncio.Task, description: str) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Fire-and-forget %s was cancelled", description)
            return
        error = task.exception()
        if error is not None:
            logger.error("Fire-and-forget %s failed: %s", description, error, exc_info=error)

    async def wait_for_pending(self) -> None:
        """Wait for every outstanding fire-and-forget operation to settle."""
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)
        # Let done-callbacks run so failures are logged before returning
        await asyncio.sleep(0)
