"""User preferences: the settings source the schedule engine reads.

Values are clamped here, on the way in, so every ``ScheduleConfig`` handed to
the engine already satisfies its invariants. Clamping is logged, never silent.
"""
from __future__ import annotations
import json
import logging
import threading
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ValidationInfo, field_validator

from ..domain.models import ColorValue, ScheduleConfig, ScheduleMode

logger = logging.getLogger(__name__)

_BOUNDS: dict[str, tuple[float, float]] = {
    "day_kelvin": (2000, 6500),
    "night_kelvin": (1800, 5500),
    "day_brightness": (0.1, 1.0),
    "night_brightness": (0.1, 1.0),
    "custom_day_start": (0, 1439),
    "custom_night_start": (0, 1439),
    "latitude": (-90.0, 90.0),
    "longitude": (-180.0, 180.0),
    "transition_minutes": (1, 720),
}


class Preferences(BaseModel):
    day_kelvin: int = 5000
    night_kelvin: int = 2700
    day_brightness: float = 1.0
    night_brightness: float = 0.8
    schedule_mode: ScheduleMode = ScheduleMode.CUSTOM
    custom_day_start: int = 7 * 60
    custom_night_start: int = 20 * 60
    latitude: float = 0.0
    longitude: float = 0.0
    location_name: str = ""
    transition_minutes: int = 20
    enabled: bool = True

    @field_validator(*_BOUNDS)
    @classmethod
    def _clamp(cls, v: Any, info: ValidationInfo) -> Any:
        lo, hi = _BOUNDS[info.field_name]
        clamped = min(max(v, lo), hi)
        if clamped != v:
            logger.warning("Clamped %s from %s to %s", info.field_name, v, clamped)
        return type(v)(clamped)

    def to_config(self) -> ScheduleConfig:
        return ScheduleConfig(
            day=ColorValue(self.day_kelvin, self.day_brightness),
            night=ColorValue(self.night_kelvin, self.night_brightness),
            transition_minutes=self.transition_minutes,
            mode=self.schedule_mode,
            custom_day_start=self.custom_day_start,
            custom_night_start=self.custom_night_start,
            latitude=self.latitude,
            longitude=self.longitude,
            enabled=self.enabled,
        )


class PreferenceStore:
    def __init__(self, prefs: Preferences | None = None) -> None:
        self._prefs = prefs or Preferences()
        self._observers: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def prefs(self) -> Preferences:
        return self._prefs

    def snapshot(self) -> ScheduleConfig:
        return self._prefs.to_config()

    def update(self, **changes: Any) -> list[str]:
        """Apply changes, clamping as needed. Returns the keys whose value actually changed."""
        unknown = set(changes) - set(Preferences.model_fields)
        if unknown:
            raise KeyError(f"Unknown preference(s): {', '.join(sorted(unknown))}")

        with self._lock:
            old = self._prefs
            merged = old.model_dump()
            merged.update(changes)
            new = Preferences.model_validate(merged)
            changed = [k for k in Preferences.model_fields if getattr(new, k) != getattr(old, k)]
            if changed:
                self._prefs = new

        if changed:
            logger.info("Preferences changed: %s", ", ".join(changed))
            self._notify()
        return changed

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._observers):
            try:
                cb()
            except Exception:
                logger.exception("Preference observer failed")

    # --- persistence (string values, as stored in the settings table) ---

    def to_storage(self, keys: list[str] | None = None) -> dict[str, str]:
        data = self._prefs.model_dump(mode="json")
        if keys is not None:
            data = {k: data[k] for k in keys}
        return {k: json.dumps(v) for k, v in data.items()}

    def load_storage(self, rows: Mapping[str, str]) -> list[str]:
        changes: dict[str, Any] = {}
        for key, raw in rows.items():
            if key not in Preferences.model_fields:
                logger.warning("Ignoring unknown stored preference %s", key)
                continue
            try:
                changes[key] = json.loads(raw)
            except ValueError:
                logger.warning("Ignoring unreadable stored preference %s=%r", key, raw)
        return self.update(**changes)
