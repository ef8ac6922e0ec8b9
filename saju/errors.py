"""Exceptions raised by the saju engine."""


class SajuError(Exception):
    """Base class for every error the engine raises on purpose."""


class SajuInputError(SajuError, ValueError):
    """The caller supplied a malformed or out-of-range birth date/time."""


class SolarTermDataError(SajuError, LookupError):
    """The solar term table has no entry for a required boundary."""
