"""Unified constants for the booking portal.

All classes can be imported directly from this package:
    from hospital_booking.constants import Endpoints, OTP, Timeouts
"""

# API
from .api import Endpoints

# OTP
from .otp import OTP

# Timing-related
from .timing import (
    Horizons,
    Intervals,
    Timeouts,
)

__all__ = [
    "Endpoints",
    "OTP",
    "Horizons",
    "Intervals",
    "Timeouts",
]
