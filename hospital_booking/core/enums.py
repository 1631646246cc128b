"""Centralized enum definitions for the booking portal."""

from enum import Enum


class BookingStep(str, Enum):
    """Ordered positions of the appointment booking flow."""
    VERIFICATION = "verification"
    PROFILE = "profile"
    CHOOSE_DOCTOR = "choose_doctor"
    CONFIRM = "confirm"
    SUCCESS = "success"

    @property
    def order(self) -> int:
        """1-based position of the step in the flow."""
        return list(BookingStep).index(self) + 1

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class StepStatus(str, Enum):
    """Progress display status of a step relative to the current one."""
    COMPLETED = "completed"
    CURRENT = "current"
    UPCOMING = "upcoming"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class OTPPurpose(str, Enum):
    """Why a one-time passcode is being requested."""
    REGISTRATION = "registration"
    LOGIN = "login"
    PASSWORD_RESET = "password_reset"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class AppointmentStatus(str, Enum):
    """Status values for booked appointments."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]
