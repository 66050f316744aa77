from __future__ import annotations


class KelvinShiftError(Exception):
    """Base class for errors raised by kelvinshift."""


class ConfigurationError(KelvinShiftError, ValueError):
    """A schedule snapshot violates an invariant that the preference layer should have enforced."""


class LocationError(KelvinShiftError):
    """Location lookup failed."""
