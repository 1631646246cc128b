"""Business logic services module."""

import importlib as _importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .booking import BookingStepMachine as BookingStepMachine
    from .booking import RescheduleFlow as RescheduleFlow
    from .portal import PortalApiClient as PortalApiClient

_LAZY_MODULE_MAP = {
    "BookingStepMachine": ("hospital_booking.services.booking", "BookingStepMachine"),
    "RescheduleFlow": ("hospital_booking.services.booking", "RescheduleFlow"),
    "PortalApiClient": ("hospital_booking.services.portal", "PortalApiClient"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str):
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
