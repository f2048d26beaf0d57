"""Single-slot cancellable timers for debounce and polling loops.

A :class:`ScheduledTask` owns at most one asyncio task. Scheduling again
cancels whatever is pending or running (cancel-on-supersede), and
:meth:`ScheduledTask.stop` cancels and awaits it (cancel-on-teardown), so no
background work outlives its owner.

Examples
--------
>>> import asyncio
>>> async def demo() -> list[str]:
...     calls: list[str] = []
...     async def record() -> None:
...         calls.append("fired")
...     timer = ScheduledTask("demo")
...     timer.schedule(0.01, record)
...     timer.schedule(0.01, record)
...     await timer.wait()
...     return calls
>>> asyncio.run(demo())
['fired']
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import typing as typ

logger = logging.getLogger(__name__)

Callback = typ.Callable[[], typ.Awaitable[None]]


class ScheduledTask:
    """Own one delayed coroutine at a time."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        """True while a scheduled run is pending or executing."""
        return self._task is not None and not self._task.done()

    def schedule(self, delay: float, callback: Callback) -> asyncio.Task[None]:
        """Run ``callback`` after ``delay`` seconds, superseding any prior run.

        Must be called from a running event loop.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(
            self._run(delay, callback), name=self.name
        )
        return self._task

    def start(self, callback: Callback) -> asyncio.Task[None]:
        """Run ``callback`` immediately as the owned task."""
        return self.schedule(0, callback)

    async def _run(self, delay: float, callback: Callback) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Scheduled task %s failed", self.name)

    def cancel(self) -> bool:
        """Cancel the owned task; return True when something was cancelled."""
        task = self._task
        if task is None or task.done():
            return False
        if task is asyncio.current_task():
            # The running callback is superseding itself; let it finish.
            return False
        task.cancel()
        logger.debug("Cancelled scheduled task %s", self.name)
        return True

    async def wait(self) -> None:
        """Wait for the owned task to finish or be cancelled."""
        task = self._task
        if task is None or task is asyncio.current_task():
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def stop(self) -> None:
        """Cancel the owned task and wait for it to unwind."""
        self.cancel()
        await self.wait()
        self._task = None


__all__ = ["Callback", "ScheduledTask"]
