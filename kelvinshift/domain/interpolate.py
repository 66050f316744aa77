from __future__ import annotations
import math

from .models import ColorValue


def smoothstep(t: float) -> float:
    t = max(0.0, min(1.0, t))
    return t * t * (3.0 - 2.0 * t)


def blend(a: float, b: float, t: float) -> float:
    """Hermite blend from ``a`` to ``b``; exact at both ends and never overshoots."""
    if t <= 0.0:
        return a
    if t >= 1.0:
        return b
    value = a + (b - a) * smoothstep(t)
    lo, hi = (a, b) if a <= b else (b, a)
    return max(lo, min(hi, value))


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def blend_temperature(a: int, b: int, t: float) -> int:
    """Blend two Kelvin values, rounding the blended delta to the nearest whole Kelvin."""
    if t <= 0.0:
        return a
    if t >= 1.0:
        return b
    return a + _round_half_away((b - a) * smoothstep(t))


def blend_value(a: ColorValue, b: ColorValue, t: float) -> ColorValue:
    return ColorValue(
        temperature=blend_temperature(a.temperature, b.temperature, t),
        brightness=blend(a.brightness, b.brightness, t),
    )
