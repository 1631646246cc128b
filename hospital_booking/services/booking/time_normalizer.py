"""Slot time normalization to the reservation service's HH:mm:ss format."""

import re
from typing import Any

from ...core.exceptions import FormatError

_RANGE_SUFFIX = re.compile(r"\s*-\s*\d{1,2}:\d{2}(?::\d{2})?\s*(?:[AaPp][Mm])?\s*$")
_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])$")
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def normalize_slot_time(display: Any) -> str:
    """
    Convert a displayed slot time to canonical 24-hour HH:mm:ss.

    Accepts "08:15 AM", "08:15 PM - 08:30 PM", "14:30" and "14:30:00".

    >>> normalize_slot_time("08:15 PM")
    '20:15:00'
    >>> normalize_slot_time("12:00 AM - 12:30 AM")
    '00:00:00'

    Args:
        display: Slot time as shown to the patient

    Returns:
        Time string in HH:mm:ss

    Raises:
        FormatError: If the value is not a recognizable time
    """
    if not isinstance(display, str):
        raise FormatError(str(display))

    value = _RANGE_SUFFIX.sub("", display.strip())

    match = _TWELVE_HOUR.match(value)
    if match:
        hour, minute, second, meridiem = match.groups()
        hours = int(hour)
        if not 1 <= hours <= 12:
            raise FormatError(display)
        if meridiem.upper() == "AM":
            hours = 0 if hours == 12 else hours
        else:
            hours = 12 if hours == 12 else hours + 12
        return _format(display, hours, int(minute), int(second or 0))

    match = _TWENTY_FOUR_HOUR.match(value)
    if match:
        hour, minute, second = match.groups()
        return _format(display, int(hour), int(minute), int(second or 0))

    raise FormatError(display)


def _format(display: str, hours: int, minutes: int, seconds: int) -> str:
    if hours > 23 or minutes > 59 or seconds > 59:
        raise FormatError(display)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
