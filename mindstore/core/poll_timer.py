"""Cancellable repeating timer.

Runs an async callback every `interval` seconds on the running event loop
until cancelled. Arming is idempotent: at most one loop task exists per
timer, so re-arming while active never stacks overlapping timers.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PollTimer:
    """Repeating scheduled task with an explicit handle.

    The callback is awaited inline, so ticks never overlap. An exception
    from the callback is logged and the timer keeps running.

    Example:
        timer = PollTimer(5.0, refresh)
        timer.arm()     # starts ticking
        timer.arm()     # no-op, already active
        timer.cancel()  # stops; safe to call from inside the callback
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        *,
        sleep: Sleep = asyncio.sleep,
        name: str = "poll",
    ):
        """Initialize the timer (does not start it).

        Args:
            interval: Seconds between ticks.
            callback: Coroutine function invoked on every tick.
            sleep: Sleep implementation (tests inject a fake clock).
            name: Label used in log messages and the task name.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._callback = callback
        self._sleep = sleep
        self._name = name
        self._task: asyncio.Task | None = None
        self.ticks = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self) -> bool:
        """Start ticking if not already active.

        Returns:
            True if a new loop was started.
        """
        if self.active:
            return False
        self._task = asyncio.create_task(self._run(), name=f"{self._name}-timer")
        return True

    def cancel(self) -> bool:
        """Stop ticking.

        Returns:
            True if an active loop was cancelled.
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            self.ticks += 1
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("%s tick failed", self._name)
