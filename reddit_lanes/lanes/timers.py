"""Cancellable asyncio timer used for search debounce and lane auto-refresh."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)


class CancellableTimer:
    """
    Runs an async callback after ``delay`` seconds, optionally repeating.

    ``schedule()`` restarts the countdown, cancelling any pending one.
    ``cancel()`` guarantees no further firing. A callback that is already
    running when the timer is cancelled or rescheduled is allowed to finish;
    it is never interrupted mid-flight.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Awaitable[None]],
        repeat: bool = False,
        name: str = "timer",
    ):
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self.repeat = repeat
        self.name = name
        self._callback = callback
        self._epoch = 0
        self._task: Optional[asyncio.Task] = None
        self._firing: Set[asyncio.Task] = set()

    @property
    def active(self) -> bool:
        """True while a countdown is pending or a repeating timer is running."""
        return self._task is not None and not self._task.done()

    def schedule(self) -> None:
        """Start (or restart) the countdown. Requires a running event loop."""
        loop = asyncio.get_running_loop()
        self.cancel()
        self._task = loop.create_task(self._run(self._epoch))

    def cancel(self) -> None:
        """Stop the timer; a pending firing will never happen."""
        self._epoch += 1
        task, self._task = self._task, None
        if task is not None and not task.done() and task not in self._firing:
            task.cancel()

    async def wait(self) -> None:
        """Wait for the pending countdown and any running callback of a one-shot timer."""
        while True:
            pending = {t for t in self._firing if not t.done()}
            if self._task is not None and not self._task.done():
                pending.add(self._task)
            if not pending:
                return
            await asyncio.wait(pending)

    async def _run(self, epoch: int) -> None:
        current = asyncio.current_task()
        while True:
            await asyncio.sleep(self.delay)
            if epoch != self._epoch:
                return
            self._firing.add(current)
            try:
                await self._callback()
            finally:
                self._firing.discard(current)
            if not self.repeat or epoch != self._epoch:
                return
