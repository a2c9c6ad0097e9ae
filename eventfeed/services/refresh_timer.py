"""Periodic refresh handle.

A RefreshTimer owns exactly one asyncio task that sleeps for ``interval``
seconds and then awaits its callback, forever, until stopped. ``restart``
cancels the running task before arming a new one, so two timers never
overlap. ``aclose`` also waits for the cancelled task to finish. The sleep
function is injectable so tests can drive virtual time.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from eventfeed.utils.logger import logger

Sleep = Callable[[float], Awaitable[None]]


class RefreshTimer:
    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        sleep: Sleep = asyncio.sleep,
        name: str = "refresh",
    ) -> None:
        self.interval = interval
        self._callback = callback
        self._sleep = sleep
        self._name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        logger.debug("Refresh timer armed", extra={"timer": self._name, "interval": self.interval})

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Refresh timer stopped", extra={"timer": self._name})

    async def aclose(self) -> None:
        """Stop the timer and wait until its task has actually finished."""
        task = self._task
        self.stop()
        if task is not None:
            # return_exceptions swallows the task's own CancelledError only
            await asyncio.gather(task, return_exceptions=True)

    def restart(self, name: str | None = None) -> None:
        self.stop()
        if name is not None:
            self._name = name
        self.start()

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            try:
                await self._callback()
            except Exception as exc:  # noqa: BLE001 keep ticking after a failed refresh
                logger.warning("Refresh tick failed", extra={"timer": self._name, "error": str(exc)})
