"""Utility functions for masking sensitive data in logs and outputs."""

from typing import Any, Dict, Optional, Set

from ..constants import OTP

_SENSITIVE_KEYS: Set[str] = {
    "password",
    "password_confirmation",
    "otp",
    "code",
    "token",
    "verification_token",
    "national_id",
    "medical_record_number",
}


def mask_phone(phone: Optional[str], visible: int = OTP.PHONE_VISIBLE_DIGITS) -> str:
    """
    Mask a phone number for safe logging, keeping only its last digits.

    Examples:
        >>> mask_phone("+966501234567")
        '**********567'
        >>> mask_phone("")
        '<empty>'
    """
    if not phone:
        return "<empty>"
    digits = phone.strip()
    if len(digits) <= visible:
        return "*" * len(digits)
    return "*" * (len(digits) - visible) + digits[-visible:]


def mask_payload(payload: Dict[str, Any], extra_keys: Optional[Set[str]] = None) -> Dict[str, Any]:
    """
    Return a shallow copy of a request payload with sensitive values masked.

    Args:
        payload: Request payload about to be logged
        extra_keys: Additional keys to mask besides the defaults

    Returns:
        Copy of payload safe for logging
    """
    keys = _SENSITIVE_KEYS | (extra_keys or set())
    masked: Dict[str, Any] = {}
    for key, value in payload.items():
        if key.lower() in keys and value:
            masked[key] = "***"
        elif key.lower() == "phone" and isinstance(value, str):
            masked[key] = mask_phone(value)
        else:
            masked[key] = value
    return masked
