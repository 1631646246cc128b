"""Core infrastructure module."""

from .config.settings import PortalSettings, get_settings, reset_settings
from .enums import AppointmentStatus, BookingStep, OTPPurpose, StepStatus
from .environment import Environment
from .exceptions import (
    # Base exception
    BookingPortalError,
    # Local input
    ValidationError,
    FormatError,
    # Remote collaborators
    CollaboratorError,
    RateLimitError,
    # Async races
    StaleSelectionError,
    # Configuration
    ConfigurationError,
)
from .logger import correlation_id_ctx, setup_structured_logging

__all__ = [
    "PortalSettings",
    "get_settings",
    "reset_settings",
    "AppointmentStatus",
    "BookingStep",
    "OTPPurpose",
    "StepStatus",
    "Environment",
    "BookingPortalError",
    "ValidationError",
    "FormatError",
    "CollaboratorError",
    "RateLimitError",
    "StaleSelectionError",
    "ConfigurationError",
    "correlation_id_ctx",
    "setup_structured_logging",
]
