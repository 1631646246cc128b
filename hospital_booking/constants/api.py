"""Portal REST API paths, relative to the configured base URL."""

from typing import Final


class Endpoints:
    """Collaborator endpoint paths."""

    OTP_SEND: Final[str] = "/auth/otp/send"
    OTP_VERIFY: Final[str] = "/auth/otp/verify"
    REGISTER: Final[str] = "/auth/register"
    INITIAL_DATA: Final[str] = "/appointments/initial-data"
    AVAILABLE_SLOTS_RANGE: Final[str] = "/appointments/available-slots/range"
    APPOINTMENTS: Final[str] = "/appointments"
    RESCHEDULE: Final[str] = "/appointments/{appointment_id}/reschedule"
