from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from .errors import ConfigurationError

MINUTES_PER_DAY = 1440


class ScheduleMode(str, Enum):
    SOLAR = "solar"
    CUSTOM = "custom"


class SchedulePhase(str, Enum):
    DAY = "day"
    NIGHT = "night"
    TRANSITION_TO_NIGHT = "transition_to_night"
    TRANSITION_TO_DAY = "transition_to_day"


@dataclass(frozen=True)
class ColorValue:
    temperature: int  # Kelvin
    brightness: float  # 0.0-1.0


# Baseline the display returns to when the schedule is disengaged
NEUTRAL = ColorValue(temperature=6500, brightness=1.0)


@dataclass(frozen=True)
class ScheduleConfig:
    day: ColorValue
    night: ColorValue
    transition_minutes: int
    mode: ScheduleMode
    custom_day_start: int  # minute of day
    custom_night_start: int  # minute of day
    latitude: float = 0.0
    longitude: float = 0.0
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.transition_minutes < 1:
            raise ConfigurationError(f"transition_minutes must be >= 1, got {self.transition_minutes}")
        for name in ("custom_day_start", "custom_night_start"):
            value = getattr(self, name)
            if not 0 <= value < MINUTES_PER_DAY:
                raise ConfigurationError(f"{name} must be a minute of day (0-1439), got {value}")


@dataclass(frozen=True)
class SolarTimes:
    sunrise: datetime
    sunset: datetime
    solar_noon: datetime


@dataclass(frozen=True)
class Resolution:
    phase: SchedulePhase
    value: ColorValue
    progress: float  # within the current arc; 0.0 for the steady phases
    next_boundary: datetime
    sunrise: Optional[datetime] = None
    sunset: Optional[datetime] = None


@dataclass(frozen=True)
class ScheduleState:
    phase: SchedulePhase
    current: ColorValue
    day: ColorValue
    night: ColorValue
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    next_boundary: Optional[datetime]
    enabled: bool


# --- Override (one value, never more than one active) ---

@dataclass(frozen=True)
class NoOverride:
    pass


@dataclass(frozen=True)
class ManualPreview:
    value: ColorValue


@dataclass(frozen=True)
class DemoPlayback:
    progress: float
    step: float  # progress added per demo tick


Override = Union[NoOverride, ManualPreview, DemoPlayback]

NO_OVERRIDE = NoOverride()


@dataclass(frozen=True)
class PhaseEvent:
    ts_utc: datetime
    phase: str
    temperature: int
    brightness: float
    enabled: bool
    next_boundary: Optional[datetime] = None


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    name: str = ""
