"""Custom exception classes for the booking portal."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class BookingPortalError(Exception):
    """Base exception for the booking portal."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize booking portal error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable by re-triggering the action
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Validation Errors
class ValidationError(BookingPortalError):
    """Missing or malformed local input, raised before any network call."""

    def __init__(self, message: str = "Validation error", field: Optional[str] = None):
        """
        Initialize validation error.

        Args:
            message: Error message shown to the patient
            field: Field name that failed validation
        """
        self.field = field
        super().__init__(message, recoverable=True, details={"field": field} if field else {})


class FormatError(ValidationError):
    """A slot time string could not be normalized."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unrecognized time format: '{value}'", field="time")
        self.details["value"] = value


# Collaborator Errors
class CollaboratorError(BookingPortalError):
    """A remote collaborator call failed or returned a failure envelope."""

    def __init__(
        self,
        message: str = "Request failed. Please try again.",
        status: Optional[int] = None,
        errors: Optional[Dict[str, List[str]]] = None,
    ):
        """
        Initialize collaborator error.

        Args:
            message: Human-readable message, surfaced to the patient as-is
            status: HTTP status code, if the failure came from a response
            errors: Per-field error messages from the collaborator
        """
        self.status = status
        self.errors = errors or {}
        details: Dict[str, Any] = {}
        if status is not None:
            details["status"] = status
        if self.errors:
            details["errors"] = self.errors
        super().__init__(message, recoverable=True, details=details)


class RateLimitError(CollaboratorError):
    """Collaborator rejected the call with HTTP 429."""

    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None):
        self.retry_after = retry_after
        if retry_after:
            message += f". Please wait {retry_after} seconds."
        super().__init__(message, status=429)
        self.details["retry_after"] = retry_after


class StaleSelectionError(BookingPortalError):
    """An async response arrived for a selection that is no longer current."""

    def __init__(self, requested: Any, current: Any):
        self.requested = requested
        self.current = current
        super().__init__(
            f"Discarding response for '{requested}', current selection is '{current}'",
            recoverable=True,
            details={"requested": requested, "current": current},
        )


# Configuration Errors
class ConfigurationError(BookingPortalError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)
