"""
Session watcher: the single source of the current identity.

Fetches the session once on start, then follows the provider's change stream
until stopped. Consumers register listeners and get a Subscription back.

States:
    unknown -> anonymous | authenticated
    anonymous <-> authenticated
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from floodwatch.gateway.records import Identity
from floodwatch.session.subscription import Subscription

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[Identity]], None]


class SessionState(str, Enum):
    """Authentication state as seen by the app."""
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class SessionWatcher:
    """
    Observes authentication state and fans identity changes out to listeners.

    Usage:
        async with SessionWatcher(provider) as watcher:
            handle = watcher.add_listener(on_identity)
            ...
            handle.unsubscribe()
    """

    def __init__(self, provider: Any):
        """
        Initialize watcher.

        Args:
            provider: Auth provider exposing current_identity() and subscribe()
        """
        self.provider = provider
        self.state = SessionState.UNKNOWN
        self.identity: Optional[Identity] = None

        self._provider_subscription: Optional[Subscription] = None
        self._listeners: Dict[int, IdentityListener] = {}
        self._handles: Dict[int, Subscription] = {}
        self._next_id = 0

    @property
    def started(self) -> bool:
        return self._provider_subscription is not None and self._provider_subscription.active

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    async def start(self) -> "SessionWatcher":
        """Subscribe to change events, then fetch the current session."""
        if self.started:
            return self

        # Subscribe first so a login racing the lookup is not lost
        self._provider_subscription = self.provider.subscribe(self._on_auth_event)
        try:
            identity = await self.provider.current_identity()
        except Exception:
            self._provider_subscription.unsubscribe()
            self._provider_subscription = None
            raise
        if self.state == SessionState.UNKNOWN:
            self._apply(identity)

        logger.info(f"Session watcher started ({self.state.value})")
        return self

    def stop(self) -> None:
        """Release the provider subscription and every listener handle."""
        if self._provider_subscription is not None:
            self._provider_subscription.unsubscribe()
            self._provider_subscription = None

        for handle in list(self._handles.values()):
            handle.unsubscribe()
        self._handles.clear()
        self._listeners.clear()
        logger.info("Session watcher stopped")

    async def __aenter__(self) -> "SessionWatcher":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def add_listener(self, listener: IdentityListener) -> Subscription:
        """
        Register an identity listener.

        Args:
            listener: Called with the new identity (None when signed out)

        Returns:
            Subscription; unsubscribe() removes the listener
        """
        listener_id = self._next_id
        self._next_id += 1
        self._listeners[listener_id] = listener

        def _release() -> None:
            self._listeners.pop(listener_id, None)
            self._handles.pop(listener_id, None)

        handle = Subscription(_release, name=f"identity listener {listener_id}")
        self._handles[listener_id] = handle
        return handle

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _on_auth_event(self, event: str, identity: Optional[Identity]) -> None:
        logger.debug(f"Auth event {event}")
        self._apply(identity)

    def _apply(self, identity: Optional[Identity]) -> None:
        new_state = SessionState.AUTHENTICATED if identity else SessionState.ANONYMOUS
        previous_id = self.identity.id if self.identity else None
        new_id = identity.id if identity else None

        changed = new_state != self.state or previous_id != new_id
        old_state = self.state
        self.state = new_state
        self.identity = identity

        if not changed:
            # Token refresh for the same user
            return

        logger.info(f"Session {old_state.value} -> {new_state.value}")
        self._notify(identity)

    def _notify(self, identity: Optional[Identity]) -> None:
        for listener_id, listener in list(self._listeners.items()):
            if listener_id not in self._listeners:
                continue
            try:
                listener(identity)
            except Exception:
                logger.exception(f"Identity listener {listener_id} failed")
