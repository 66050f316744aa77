"""Sunrise, sunset and solar noon from the NOAA solar calculator.

Accurate to about one minute for latitudes within 72 degrees of the equator.
Longitude is positive east. All returned instants are anchored to local
midnight of the requested date, using the UTC offset supplied by the caller
(which must be the offset in effect on that date, DST included).
"""
from __future__ import annotations
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from .models import SolarTimes

# Sun's upper limb on the horizon, corrected for atmospheric refraction
ZENITH_DEGREES = 90.833

J2000 = 2451545.0
DAYS_PER_CENTURY = 36525.0


def julian_day(d: date) -> float:
    """Julian day at 12:00 UTC on ``d`` (Gregorian calendar)."""
    y, m = d.year, d.month
    if m <= 2:
        y -= 1
        m += 12
    a = math.floor(y / 100)
    b = 2 - a + math.floor(a / 4)
    midnight = math.floor(365.25 * (y + 4716)) + math.floor(30.6001 * (m + 1)) + d.day + b - 1524.5
    return midnight + 0.5


def _sun_declination_and_eot(t: float) -> tuple[float, float]:
    """Solar declination (degrees) and equation of time (minutes) at Julian century ``t``."""
    l0 = math.fmod(280.46646 + t * (36000.76983 + 0.0003032 * t), 360.0)
    m = 357.52911 + t * (35999.05029 - 0.0001537 * t)
    e = 0.016708634 - t * (0.000042037 + 0.0000001267 * t)

    m_rad = math.radians(m)
    center = (
        math.sin(m_rad) * (1.914602 - t * (0.004817 + 0.000014 * t))
        + math.sin(2 * m_rad) * (0.019993 - 0.000101 * t)
        + math.sin(3 * m_rad) * 0.000289
    )

    true_long = l0 + center
    omega = 125.04 - 1934.136 * t
    apparent_long = true_long - 0.00569 - 0.00478 * math.sin(math.radians(omega))

    mean_obliq = 23.0 + (26.0 + (21.448 - t * (46.815 + t * (0.00059 - t * 0.001813))) / 60.0) / 60.0
    obliq = mean_obliq + 0.00256 * math.cos(math.radians(omega))

    decl = math.degrees(math.asin(math.sin(math.radians(obliq)) * math.sin(math.radians(apparent_long))))

    y = math.tan(math.radians(obliq / 2.0)) ** 2
    l0_rad = math.radians(l0)
    eot = 4.0 * math.degrees(
        y * math.sin(2 * l0_rad)
        - 2 * e * math.sin(m_rad)
        + 4 * e * y * math.sin(m_rad) * math.cos(2 * l0_rad)
        - 0.5 * y * y * math.sin(4 * l0_rad)
        - 1.25 * e * e * math.sin(2 * m_rad)
    )
    return decl, eot


def calculate(
    day: date,
    latitude: float,
    longitude: float,
    utc_offset_minutes: float,
) -> Optional[SolarTimes]:
    """Return sunrise/sunset/solar noon for ``day``, or None during polar day or night."""
    t = (julian_day(day) - J2000) / DAYS_PER_CENTURY
    decl, eot = _sun_declination_and_eot(t)

    lat_rad = math.radians(latitude)
    decl_rad = math.radians(decl)
    cos_ha = (
        math.cos(math.radians(ZENITH_DEGREES)) / (math.cos(lat_rad) * math.cos(decl_rad))
        - math.tan(lat_rad) * math.tan(decl_rad)
    )
    if not -1.0 <= cos_ha <= 1.0:
        return None
    ha = math.degrees(math.acos(cos_ha))

    # Minutes from local midnight
    noon = 720.0 - 4.0 * longitude - eot + utc_offset_minutes
    rise = noon - 4.0 * ha
    set_ = noon + 4.0 * ha

    tz = timezone(timedelta(minutes=utc_offset_minutes))
    midnight = datetime.combine(day, time(0, 0), tzinfo=tz)
    return SolarTimes(
        sunrise=midnight + timedelta(minutes=rise),
        sunset=midnight + timedelta(minutes=set_),
        solar_noon=midnight + timedelta(minutes=noon),
    )


def calculate_for(now: datetime, latitude: float, longitude: float) -> Optional[SolarTimes]:
    """Solar times for ``now``'s calendar date, expressed in ``now``'s time zone."""
    offset = now.utcoffset()
    minutes = offset.total_seconds() / 60.0 if offset is not None else 0.0
    times = calculate(now.date(), latitude, longitude, minutes)
    if times is None:
        return None
    if now.tzinfo is None:
        # Naive wall-clock in, naive wall-clock out
        return SolarTimes(
            sunrise=times.sunrise.replace(tzinfo=None),
            sunset=times.sunset.replace(tzinfo=None),
            solar_noon=times.solar_noon.replace(tzinfo=None),
        )
    return SolarTimes(
        sunrise=times.sunrise.astimezone(now.tzinfo),
        sunset=times.sunset.astimezone(now.tzinfo),
        solar_noon=times.solar_noon.astimezone(now.tzinfo),
    )
