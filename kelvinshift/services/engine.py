from __future__ import annotations
import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from ..core.config import settings
from ..core.timeutil import now_local
from ..domain.interfaces import OutputSink, PeriodicTask, Scheduler, SettingsSource
from ..domain.interpolate import blend_value
from ..domain.models import (
    NEUTRAL,
    NO_OVERRIDE,
    ColorValue,
    DemoPlayback,
    ManualPreview,
    NoOverride,
    Override,
    ScheduleConfig,
    SchedulePhase,
    ScheduleState,
)
from ..domain.schedule import PhaseResolver

logger = logging.getLogger(__name__)

StateObserver = Callable[[ScheduleState], None]
DemoObserver = Callable[[float], None]


def _discard(observers: list, observer: Callable) -> None:
    if observer in observers:
        observers.remove(observer)


def demo_value(config: ScheduleConfig, progress: float) -> ColorValue:
    """Compressed day -> night -> day cycle; independent of the real schedule."""
    if progress < 0.5:
        return blend_value(config.day, config.night, progress * 2.0)
    return blend_value(config.night, config.day, (progress - 0.5) * 2.0)


class ScheduleEngine:
    """Applies the scheduled display value on a periodic tick.

    Two overrides can bypass the schedule: a manual preview (a value pushed
    while the user drags a slider) and a demo playback (a fast day/night
    cycle). At most one is active; while one is, the periodic tick and
    settings notifications leave the display alone. Releasing an override
    re-evaluates the schedule at once.

    All state is guarded by one re-entrant lock, so timer callbacks and
    caller-originated events are serialized.
    """

    def __init__(
        self,
        settings_source: SettingsSource,
        sink: OutputSink,
        scheduler: Scheduler,
        *,
        clock: Callable[[], datetime] = now_local,
        resolver: Optional[PhaseResolver] = None,
        tick_seconds: float = settings.tick_seconds,
        demo_fps: float = settings.demo_fps,
        demo_duration_seconds: float = settings.demo_duration_seconds,
    ) -> None:
        self._source = settings_source
        self._sink = sink
        self._scheduler = scheduler
        self._clock = clock
        self._resolver = resolver or PhaseResolver()
        self._tick_seconds = tick_seconds
        self._demo_fps = demo_fps
        self._demo_duration = demo_duration_seconds

        self._lock = threading.RLock()
        self._running = False
        self._tick_task: Optional[PeriodicTask] = None
        self._demo_task: Optional[PeriodicTask] = None
        self._unsubscribe_settings: Optional[Callable[[], None]] = None
        self._override: Override = NO_OVERRIDE

        self._observers: list[StateObserver] = []
        self._demo_observers: list[DemoObserver] = []

        cfg = settings_source.snapshot()
        self._state = ScheduleState(
            phase=SchedulePhase.DAY,
            current=NEUTRAL,
            day=cfg.day,
            night=cfg.night,
            sunrise=None,
            sunset=None,
            next_boundary=None,
            enabled=cfg.enabled,
        )

    # --- read-only views ---

    @property
    def state(self) -> ScheduleState:
        return self._state

    @property
    def override(self) -> Override:
        return self._override

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def demo_progress(self) -> float:
        ov = self._override
        return ov.progress if isinstance(ov, DemoPlayback) else 0.0

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        self._observers.append(observer)
        return lambda: _discard(self._observers, observer)

    def subscribe_demo(self, observer: DemoObserver) -> Callable[[], None]:
        self._demo_observers.append(observer)
        return lambda: _discard(self._demo_observers, observer)

    def _override_active(self) -> bool:
        return not isinstance(self._override, NoOverride)

    # --- lifecycle ---

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            logger.info(
                "Schedule engine started (tick_seconds=%s sink=%s)",
                self._tick_seconds,
                getattr(self._sink, "sink_id", type(self._sink).__name__),
            )
            self._unsubscribe_settings = self._source.subscribe(self.on_settings_changed)
            self.tick()
            self._tick_task = self._scheduler.every(self._tick_seconds, self.tick, name="schedule_tick")

    def stop(self) -> None:
        with self._lock:
            if self._tick_task is not None:
                self._tick_task.cancel()
                self._tick_task = None
            if isinstance(self._override, DemoPlayback):
                self._cancel_demo_task()
                self._notify_demo(0.0)
            self._override = NO_OVERRIDE
            if self._unsubscribe_settings is not None:
                self._unsubscribe_settings()
                self._unsubscribe_settings = None
            self._running = False
            self._reset_output()
            logger.info("Schedule engine stopped")

    # --- schedule ---

    def tick(self) -> None:
        with self._lock:
            if self._override_active():
                return
            self._evaluate()

    def on_settings_changed(self) -> None:
        with self._lock:
            if not self._running or self._override_active():
                return
            self._evaluate()

    def _evaluate(self) -> None:
        try:
            config = self._source.snapshot()
            if not config.enabled:
                self._reset_output()
                self._publish(ScheduleState(
                    phase=SchedulePhase.DAY,
                    current=NEUTRAL,
                    day=config.day,
                    night=config.night,
                    sunrise=None,
                    sunset=None,
                    next_boundary=None,
                    enabled=False,
                ))
                return

            now = self._clock()
            res = self._resolver.resolve(now, config)
            self._apply(res.value)

            if res.phase != self._state.phase or not self._state.enabled:
                logger.info(
                    "phase=%s value=%dK@%.2f next=%s",
                    res.phase.value, res.value.temperature, res.value.brightness,
                    res.next_boundary.isoformat(),
                )
            # Published value is the intended one, even if the sink refused it
            self._publish(ScheduleState(
                phase=res.phase,
                current=res.value,
                day=config.day,
                night=config.night,
                sunrise=res.sunrise,
                sunset=res.sunset,
                next_boundary=res.next_boundary,
                enabled=True,
            ))
        except Exception as e:
            logger.exception("Schedule evaluation failed: %s", e)

    def _restore(self) -> None:
        """Put the display back where it belongs once an override ends."""
        if self._running:
            self._evaluate()
        else:
            self._reset_output()

    # --- manual preview ---

    def start_preview(self, value: ColorValue) -> None:
        with self._lock:
            if isinstance(self._override, DemoPlayback):
                self._cancel_demo_task()
                self._notify_demo(0.0)
            self._override = ManualPreview(value)
            logger.info("Preview started at %dK@%.2f", value.temperature, value.brightness)
            self._apply(value)

    def update_preview(self, value: ColorValue) -> None:
        with self._lock:
            if not isinstance(self._override, ManualPreview):
                logger.debug("Ignoring preview update with no preview active")
                return
            self._override = ManualPreview(value)
            self._apply(value)

    def stop_preview(self) -> None:
        with self._lock:
            if not isinstance(self._override, ManualPreview):
                return
            self._override = NO_OVERRIDE
            logger.info("Preview stopped")
            self._restore()

    # --- demo playback ---

    def start_demo(self, duration_seconds: Optional[float] = None) -> None:
        duration = duration_seconds if duration_seconds is not None else self._demo_duration
        if duration <= 0:
            raise ValueError(f"demo duration must be positive, got {duration}")

        with self._lock:
            if isinstance(self._override, DemoPlayback):
                return
            if isinstance(self._override, ManualPreview):
                logger.info("Demo cancels active preview")

            interval = 1.0 / self._demo_fps
            self._override = DemoPlayback(progress=0.0, step=interval / duration)
            logger.info("Demo started (duration=%.1fs)", duration)
            self._apply_demo(0.0)
            self._notify_demo(0.0)
            self._demo_task = self._scheduler.every(interval, self._demo_tick, name="demo_tick")

    def stop_demo(self) -> None:
        with self._lock:
            if not isinstance(self._override, DemoPlayback):
                return
            self._cancel_demo_task()
            self._override = NO_OVERRIDE
            self._notify_demo(0.0)
            logger.info("Demo stopped")
            self._restore()

    def _demo_tick(self) -> None:
        with self._lock:
            ov = self._override
            if not isinstance(ov, DemoPlayback):
                return
            p = ov.progress + ov.step
            if p >= 1.0:
                self.stop_demo()
                return
            self._override = DemoPlayback(progress=p, step=ov.step)
            self._apply_demo(p)
            self._notify_demo(p)

    def _apply_demo(self, progress: float) -> None:
        try:
            self._apply(demo_value(self._source.snapshot(), progress))
        except Exception as e:
            logger.exception("Demo step failed: %s", e)

    def _cancel_demo_task(self) -> None:
        if self._demo_task is not None:
            self._demo_task.cancel()
            self._demo_task = None

    # --- output ---

    def _apply(self, value: ColorValue) -> bool:
        try:
            ok = self._sink.apply(value.temperature, value.brightness)
        except Exception as e:
            logger.exception("Output sink raised applying %dK@%.2f: %s", value.temperature, value.brightness, e)
            ok = False
        if not ok:
            logger.warning(
                "Output %s did not apply %dK@%.2f",
                getattr(self._sink, "sink_id", "?"), value.temperature, value.brightness,
            )
        return ok

    def _reset_output(self) -> None:
        try:
            self._sink.reset()
        except Exception as e:
            logger.exception("Output sink reset failed: %s", e)

    # --- notification ---

    def _publish(self, state: ScheduleState) -> None:
        self._state = state
        for obs in list(self._observers):
            try:
                obs(state)
            except Exception:
                logger.exception("State observer failed")

    def _notify_demo(self, progress: float) -> None:
        for obs in list(self._demo_observers):
            try:
                obs(progress)
            except Exception:
                logger.exception("Demo observer failed")
