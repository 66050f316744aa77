from __future__ import annotations
from datetime import datetime
from typing import Optional

from ..domain.models import ScheduleMode, SchedulePhase, ScheduleState
from ..services.preferences import Preferences

PHASE_ICONS = {
    SchedulePhase.DAY: "☀",
    SchedulePhase.NIGHT: "☾",
    SchedulePhase.TRANSITION_TO_NIGHT: "☀→☾",
    SchedulePhase.TRANSITION_TO_DAY: "☾→☀",
}

PHASE_LABELS = {
    SchedulePhase.DAY: "Daytime",
    SchedulePhase.NIGHT: "Nighttime",
    SchedulePhase.TRANSITION_TO_NIGHT: "Transitioning to Night",
    SchedulePhase.TRANSITION_TO_DAY: "Transitioning to Day",
}


def status_title(state: ScheduleState) -> str:
    if not state.enabled:
        return "○ Off"
    return f"{PHASE_ICONS[state.phase]} {state.current.temperature}K"


def format_minutes(m: int) -> str:
    """Minute of day as a 12-hour clock label, e.g. 1230 -> '8:30 PM'."""
    h, mm = divmod(m, 60)
    h12 = 12 if h % 12 == 0 else h % 12
    return f"{h12}:{mm:02d} {'PM' if h >= 12 else 'AM'}"


def format_hhmm(m: int) -> str:
    h, mm = divmod(m, 60)
    return f"{h:02d}:{mm:02d}"


def _short_time(dt: Optional[datetime]) -> str:
    if dt is None:
        return "–"
    return format_minutes(dt.hour * 60 + dt.minute)


def schedule_label(prefs: Preferences, state: ScheduleState) -> str:
    if prefs.schedule_mode is ScheduleMode.SOLAR:
        return f"Schedule: Solar  ↑{_short_time(state.sunrise)}  ↓{_short_time(state.sunset)}"
    return (
        f"Schedule: {format_minutes(prefs.custom_day_start)} – "
        f"{format_minutes(prefs.custom_night_start)}"
    )
