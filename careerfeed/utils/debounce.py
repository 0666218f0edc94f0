"""Quiescence-window debouncing for bursts of profile edits.

Every call to ``schedule`` restarts the window; the action runs once the
window passes without a new call. Once the action has started it is never
cancelled: a newer call schedules another run after it instead.

Example Usage:
    debouncer = Debouncer(delay=0.5)

    for _ in range(10):
        debouncer.schedule(lambda: engine.sync_user(payload))

    await debouncer.flush()   # one sync_user call
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional


class Debouncer:
    """Coalesces rapid calls into one delayed coroutine run."""

    def __init__(self, delay: float = 0.5):
        """
        Initialize debouncer.

        Args:
            delay: Quiescence window in seconds
        """
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self._waiting = False
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, action: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """
        Run ``action`` after the quiescence window, replacing any waiting run.

        Must be called from within a running event loop.
        """
        if self._task is not None and self._waiting and not self._task.done():
            self._task.cancel()

        task = asyncio.get_running_loop().create_task(self._run(action))
        self._task = task
        self._waiting = True
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        return task

    async def flush(self) -> None:
        """Wait until the scheduled run, and any run already in flight, finish."""
        while True:
            pending = [task for task in self._running if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def cancel(self) -> None:
        """Drop a run that is still waiting out its window."""
        if self._task is not None and self._waiting and not self._task.done():
            self._task.cancel()

    async def _run(self, action: Callable[[], Awaitable[Any]]) -> Any:
        try:
            await asyncio.sleep(self.delay)
        finally:
            if self._task is asyncio.current_task():
                self._waiting = False
        return await action()
