"""Hospital Booking - Patient appointment booking flow for the hospital portal."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

__version__ = "1.0.0"
__license__ = "MIT"

if TYPE_CHECKING:
    from .core.config.settings import get_settings as get_settings
    from .core.logger import setup_structured_logging as setup_structured_logging
    from .services.booking import BookingStepMachine as BookingStepMachine
    from .services.booking import RescheduleFlow as RescheduleFlow
    from .services.portal import PortalApiClient as PortalApiClient

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    # Core
    "get_settings": ("hospital_booking.core.config.settings", "get_settings"),
    "setup_structured_logging": ("hospital_booking.core.logger", "setup_structured_logging"),
    # Services
    "BookingStepMachine": ("hospital_booking.services.booking", "BookingStepMachine"),
    "RescheduleFlow": ("hospital_booking.services.booking", "RescheduleFlow"),
    "PortalApiClient": ("hospital_booking.services.portal", "PortalApiClient"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        # Cache in module globals to avoid repeated imports
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
