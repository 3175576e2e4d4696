"""
FloodWatch - Error hierarchy
"""

from typing import Optional


class FloodWatchError(Exception):
    """Base class for all application errors."""


class ConfigurationError(FloodWatchError):
    """Required configuration is missing."""


class FormValidationError(FloodWatchError):
    """Raised locally when user input violates a form rule."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class AuthenticationError(FloodWatchError):
    """The identity provider rejected a request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class GatewayError(FloodWatchError):
    """A record store round trip failed."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table
        self.message = message


class GatewayReadError(GatewayError):
    """A read request failed (distinct from "no rows")."""


class GatewayWriteError(GatewayError):
    """A write request failed; the message is shown to the user as-is."""
