from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AsyncioPeriodicTask:
    """Repeating callback on an asyncio loop, re-armed after each run."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval: float,
        callback: Callable[[], None],
        name: str,
    ) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._arm()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _arm(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._run)

    def _run(self) -> None:
        if self._cancelled:
            return
        try:
            self._callback()
        except Exception as e:
            logger.exception("Periodic task %s failed: %s", self.name, e)
        # The callback may have cancelled us
        if not self._cancelled:
            self._arm()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def every(self, interval: float, callback: Callable[[], None], name: str = "") -> AsyncioPeriodicTask:
        loop = self._loop or asyncio.get_running_loop()
        logger.debug("Arming %s every %.3fs", name or "task", interval)
        return AsyncioPeriodicTask(loop, interval, callback, name or "task")
