"""Configuration package."""

from receipt_scanner.config.settings import (
    AppSettings,
    ConfigurationError,
    GeminiSettings,
    GoogleSettings,
    Settings,
    VisionSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "GeminiSettings",
    "GoogleSettings",
    "Settings",
    "VisionSettings",
    "get_settings",
    "validate_all_settings",
]
