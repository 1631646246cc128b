"""OTP-related constants."""

from typing import Final


class OTP:
    """OTP verification configuration."""

    RESEND_COOLDOWN_SECONDS: Final[int] = 60
    # Digits shown when a phone number is logged
    PHONE_VISIBLE_DIGITS: Final[int] = 3
