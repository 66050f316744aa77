from __future__ import annotations
import asyncio
import logging
from typing import Optional

from ..core.timeutil import now_utc
from ..domain.models import PhaseEvent, ScheduleState
from ..storage.sqlite_repo import SQLiteRepository

logger = logging.getLogger(__name__)


class PhaseRecorder:
    """Persists phase changes published by the engine.

    ``on_state`` is a plain engine observer; it only enqueues. A background
    task drains the queue into the repository.
    """

    def __init__(self, repo: SQLiteRepository, maxsize: int = 1000) -> None:
        self._repo = repo
        self._queue: asyncio.Queue[Optional[PhaseEvent]] = asyncio.Queue(maxsize=maxsize)
        self._task: Optional[asyncio.Task] = None
        self._last: Optional[tuple[str, bool]] = None

    def on_state(self, state: ScheduleState) -> None:
        key = (state.phase.value, state.enabled)
        if key == self._last:
            return
        self._last = key
        event = PhaseEvent(
            ts_utc=now_utc(),
            phase=state.phase.value,
            temperature=state.current.temperature,
            brightness=state.current.brightness,
            enabled=state.enabled,
            next_boundary=state.next_boundary,
        )
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Phase history queue full; dropping %s", event.phase)

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="phase_recorder")

    async def stop(self) -> None:
        if self._task:
            await self._queue.put(None)
            await self._task
            self._task = None

    async def _run(self) -> None:
        logger.info("Phase recorder started")
        while True:
            event = await self._queue.get()
            if event is None:
                break
            try:
                await self._repo.insert_phase_event(event)
            except Exception as e:
                logger.exception("Failed to record phase event: %s", e)
        logger.info("Phase recorder stopped")
