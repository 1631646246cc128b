"""Application settings with Pydantic validation."""

from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...constants import OTP, Horizons, Intervals, Timeouts
from ..exceptions import ConfigurationError


class PortalSettings(BaseSettings):
    """Booking portal settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production", description="Environment (production, development, testing)"
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # Portal API
    api_base_url: str = Field(
        default="http://localhost:8000/api", description="Base URL of the portal REST API"
    )
    api_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token of an already authenticated session"
    )
    request_timeout_seconds: float = Field(
        default=Timeouts.HTTP_REQUEST_SECONDS,
        gt=0,
        description="Total timeout for a single API request in seconds",
    )

    # Booking flow
    availability_horizon_days: int = Field(
        default=Horizons.AVAILABILITY_DAYS,
        ge=1,
        le=365,
        description="Days ahead queried for doctor availability",
    )
    otp_resend_cooldown_seconds: int = Field(
        default=OTP.RESEND_COOLDOWN_SECONDS,
        ge=0,
        description="Seconds before an OTP may be re-sent",
    )
    otp_tick_seconds: float = Field(
        default=Intervals.OTP_COUNTDOWN_TICK,
        gt=0,
        description="Length of one cooldown countdown tick in seconds",
    )
    password_min_length: int = Field(
        default=8, ge=1, description="Minimum password length accepted at registration"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Write the log file sink as JSON lines")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "development", "testing", "staging"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @model_validator(mode="after")
    def require_https_in_production(self) -> "PortalSettings":
        """
        Reject plain-http API URLs in production.

        Returns:
            Self if validation passes

        Raises:
            ValueError: If production environment points at an http:// API
        """
        if self.env == "production" and self.api_base_url.startswith("http://"):
            host = self.api_base_url.split("://", 1)[1]
            if not host.startswith(("localhost", "127.0.0.1")):
                raise ValueError("Production API_BASE_URL must use https://")
        return self

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == "production"


# Singleton instance
_settings: Optional[PortalSettings] = None


def get_settings() -> PortalSettings:
    """
    Get application settings singleton.

    Returns:
        PortalSettings instance

    Raises:
        ConfigurationError: If settings are invalid
    """
    global _settings
    if _settings is None:
        try:
            _settings = PortalSettings()
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid settings: {e.error_count()} error(s)",
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
