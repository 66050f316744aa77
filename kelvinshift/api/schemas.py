from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Optional, Literal


class PreviewRequest(BaseModel):
    # Either or both; the missing one is taken from the current value
    kelvin: Optional[int] = Field(default=None, ge=1000, le=10000)
    brightness: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class DemoRequest(BaseModel):
    duration_s: Optional[float] = Field(default=None, gt=0, le=3600)


class PreferencesUpdateRequest(BaseModel):
    day_kelvin: Optional[int] = None
    night_kelvin: Optional[int] = None
    day_brightness: Optional[float] = None
    night_brightness: Optional[float] = None
    schedule_mode: Optional[Literal["solar", "custom"]] = None
    custom_day_start: Optional[str] = None    # "HH:MM"
    custom_night_start: Optional[str] = None  # "HH:MM"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None
    transition_minutes: Optional[int] = None
    enabled: Optional[bool] = None
