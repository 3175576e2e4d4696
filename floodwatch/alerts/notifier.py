"""
FloodWatch - Toast notifications
Fire-and-forget success/error messages for the user, shown on the next page.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class ToastLevel(str, Enum):
    """Toast severity; the channel knows nothing finer."""
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Toast:
    """One user-facing notification."""
    level: ToastLevel
    message: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
        }


class Notifier:
    """
    Per-client toast queue.

    Views push toasts; the page renderer drains them.
    """

    def __init__(self, max_pending: int = 20):
        self.max_pending = max_pending
        self._pending: List[Toast] = []

    def success(self, message: str) -> Toast:
        return self._push(ToastLevel.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self._push(ToastLevel.ERROR, message)

    def _push(self, level: ToastLevel, message: str) -> Toast:
        toast = Toast(level=level, message=message)
        self._pending.append(toast)
        self._trim()

        log = logger.info if level == ToastLevel.SUCCESS else logger.warning
        log(f"Toast [{level.value}] {message}")
        return toast

    def _trim(self) -> None:
        # Oldest toasts go first when nobody is reading
        overflow = len(self._pending) - max(self.max_pending, 0)
        if overflow > 0:
            del self._pending[:overflow]

    def extend(self, toasts: List[Toast]) -> None:
        """Queue toasts carried over from another notifier."""
        self._pending.extend(toasts)
        self._trim()

    @property
    def pending(self) -> List[Toast]:
        return list(self._pending)

    def drain(self) -> List[Toast]:
        """Return and clear all pending toasts."""
        toasts, self._pending = self._pending, []
        return toasts
