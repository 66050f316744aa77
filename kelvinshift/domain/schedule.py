from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from . import solar
from .clock import in_arc, minute_of_day, next_occurrence, normalize, progress
from .interpolate import blend_value
from .models import Resolution, ScheduleConfig, ScheduleMode, SchedulePhase

logger = logging.getLogger(__name__)


class PhaseResolver:
    """Classifies an instant into a schedule phase and the value to show.

    The ring is cut into four consecutive arcs::

        [day_start, night_trans)   DAY
        [night_trans, night_start) TRANSITION_TO_NIGHT
        [night_start, day_trans)   NIGHT
        [day_trans, day_start)     TRANSITION_TO_DAY

    where ``night_trans = night_start - transition`` and
    ``day_trans = day_start - transition`` (mod 1440). Arcs are tested in
    that order and the last one is the remainder, so every minute gets
    exactly one phase.
    """

    def boundaries(
        self, now: datetime, config: ScheduleConfig
    ) -> tuple[int, int, Optional[datetime], Optional[datetime]]:
        """(day_start, night_start, sunrise, sunset) in effect on ``now``'s date."""
        if config.mode is ScheduleMode.SOLAR:
            times = solar.calculate_for(now, config.latitude, config.longitude)
            if times is not None:
                return (
                    minute_of_day(times.sunrise),
                    minute_of_day(times.sunset),
                    times.sunrise,
                    times.sunset,
                )
            # Polar day/night: no sunrise or sunset today
            logger.debug(
                "No sunrise/sunset at lat=%.2f lon=%.2f on %s; using custom times",
                config.latitude, config.longitude, now.date(),
            )
        return config.custom_day_start, config.custom_night_start, None, None

    def resolve(self, now: datetime, config: ScheduleConfig) -> Resolution:
        day_start, night_start, sunrise, sunset = self.boundaries(now, config)
        tran = config.transition_minutes
        night_trans = normalize(night_start - tran)
        day_trans = normalize(day_start - tran)
        t = minute_of_day(now)

        if in_arc(t, day_start, night_trans):
            phase = SchedulePhase.DAY
            p = 0.0
            value = config.day
            end = night_trans
        elif in_arc(t, night_trans, night_start):
            phase = SchedulePhase.TRANSITION_TO_NIGHT
            p = progress(t, night_trans, tran)
            value = blend_value(config.day, config.night, p)
            end = night_start
        elif in_arc(t, night_start, day_trans):
            phase = SchedulePhase.NIGHT
            p = 0.0
            value = config.night
            end = day_trans
        else:
            phase = SchedulePhase.TRANSITION_TO_DAY
            p = progress(t, day_trans, tran)
            value = blend_value(config.night, config.day, p)
            end = day_start

        return Resolution(
            phase=phase,
            value=value,
            progress=p,
            next_boundary=next_occurrence(end, now),
            sunrise=sunrise,
            sunset=sunset,
        )
