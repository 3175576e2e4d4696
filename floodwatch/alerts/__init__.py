"""
FloodWatch - Alerts Module
User-facing success/error notifications.
"""

from floodwatch.alerts.notifier import Notifier, Toast, ToastLevel

__all__ = [
    "Notifier",
    "Toast",
    "ToastLevel",
]
