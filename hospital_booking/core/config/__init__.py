"""Configuration package."""

from .settings import PortalSettings, get_settings, reset_settings

__all__ = ["PortalSettings", "get_settings", "reset_settings"]
