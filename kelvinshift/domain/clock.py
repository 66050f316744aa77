"""Arithmetic on the 1440-minute ring of local time-of-day.

Every schedule boundary is a minute of day, so arcs that cross midnight
(e.g. a transition from 23:50 to 00:10) are handled here once, uniformly.
"""
from __future__ import annotations
from datetime import datetime, timedelta

from .models import MINUTES_PER_DAY


def normalize(m: int) -> int:
    """Wrap ``m`` onto the ring; always in [0, 1440)."""
    return m % MINUTES_PER_DAY


def in_arc(t: int, start: int, end: int) -> bool:
    """True if ``t`` lies in ``[start, end)`` walking forward around the ring."""
    if start <= end:
        return start <= t < end
    # Arc wraps through midnight
    return t >= start or t < end


def progress(t: int, start: int, length: int) -> float:
    """Fraction of the arc ``[start, start + length)`` elapsed at ``t``, clamped to 1."""
    elapsed = normalize(t - start)
    return min(1.0, elapsed / max(1, length))


def minute_of_day(dt: datetime) -> int:
    return dt.hour * 60 + dt.minute


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def next_occurrence(minute: int, ref: datetime) -> datetime:
    """The instant of ``minute`` today, or tomorrow if that is already past ``ref``."""
    at = start_of_day(ref) + timedelta(minutes=minute)
    if at < ref:
        at += timedelta(days=1)
    return at
