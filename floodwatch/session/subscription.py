"""
Cancellable subscription handle returned by every registration.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Subscription:
    """
    Handle for a registered callback.

    unsubscribe() runs the release action once; later calls do nothing.
    """

    def __init__(self, release: Optional[Callable[[], None]] = None, name: str = "subscription"):
        self._release = release
        self.name = name
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        release, self._release = self._release, None
        if release is not None:
            release()
        logger.debug(f"{self.name} released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()
