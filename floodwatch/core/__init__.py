"""
FloodWatch - Core Utilities
Central configuration, logging, constants and error types.
"""

from floodwatch.core.config import settings, get_settings, Settings
from floodwatch.core.exceptions import (
    FloodWatchError,
    ConfigurationError,
    FormValidationError,
    AuthenticationError,
    GatewayError,
    GatewayReadError,
    GatewayWriteError,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "FloodWatchError",
    "ConfigurationError",
    "FormValidationError",
    "AuthenticationError",
    "GatewayError",
    "GatewayReadError",
    "GatewayWriteError",
]
