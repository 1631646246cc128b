"""Timing-related constants (timeouts, intervals, horizons)."""

from typing import Final


class Timeouts:
    """Timeout values in SECONDS."""

    HTTP_REQUEST_SECONDS: Final[float] = 30.0
    HTTP_CONNECT_SECONDS: Final[float] = 10.0
    HTTP_SOCK_READ_SECONDS: Final[float] = 20.0


class Horizons:
    """Date windows in DAYS."""

    AVAILABILITY_DAYS: Final[int] = 30
    RESCHEDULE_DAYS: Final[int] = 30


class Intervals:
    """Interval values in SECONDS."""

    OTP_COUNTDOWN_TICK: Final[float] = 1.0
