"""
Identity provider adapter over Supabase auth.

Turns the hosted auth client into the small contract the app needs:
current session, change notifications, sign in, sign up, sign out.
"""

import logging
from typing import Any, Callable, Optional, Tuple

import httpx
from supabase_auth.errors import AuthError

from floodwatch.core.exceptions import AuthenticationError
from floodwatch.gateway.records import Identity
from floodwatch.session.subscription import Subscription

logger = logging.getLogger(__name__)

# (event name, identity or None)
AuthEventCallback = Callable[[str, Optional[Identity]], None]


def identity_from_session(session: Any) -> Optional[Identity]:
    """Extract the Identity from a provider session (None when signed out)."""
    user = getattr(session, "user", None) if session is not None else None
    if user is None:
        return None
    return Identity(id=str(user.id), email=getattr(user, "email", None))


class SupabaseAuthProvider:
    """
    Auth provider backed by a Supabase async client's auth API.

    Provider failures are raised as AuthenticationError carrying the
    provider's message.
    """

    def __init__(self, auth: Any):
        """
        Initialize provider.

        Args:
            auth: The `auth` attribute of a Supabase AsyncClient
        """
        self._auth = auth

    async def current_identity(self) -> Optional[Identity]:
        """Fetch the current session; a failing lookup counts as signed out."""
        try:
            session = await self._auth.get_session()
        except (AuthError, httpx.HTTPError) as e:
            logger.warning(f"Session lookup failed, treating as anonymous: {e}")
            return None
        return identity_from_session(session)

    async def session_tokens(self) -> Optional[Tuple[str, str]]:
        """(access token, refresh token) of the current session, None when signed out."""
        try:
            session = await self._auth.get_session()
        except (AuthError, httpx.HTTPError) as e:
            logger.warning(f"Session lookup failed, not persisting tokens: {e}")
            return None
        if session is None:
            return None
        return session.access_token, session.refresh_token

    async def restore_session(self, access_token: str, refresh_token: str) -> Optional[Identity]:
        """
        Adopt a session persisted by an earlier request.

        Rejected or expired tokens leave the provider signed out.
        """
        try:
            response = await self._auth.set_session(access_token, refresh_token)
        except (AuthError, httpx.HTTPError) as e:
            logger.info(f"Stored session rejected, continuing anonymous: {e}")
            return None
        return identity_from_session(getattr(response, "session", None))

    def subscribe(self, callback: AuthEventCallback) -> Subscription:
        """
        Register for session change events.

        Args:
            callback: Called with (event, identity) on login, logout, refresh

        Returns:
            Subscription whose unsubscribe() deregisters the callback
        """
        def _on_change(event: Any, session: Any) -> None:
            name = getattr(event, "value", event)
            callback(str(name), identity_from_session(session))

        handle = self._auth.on_auth_state_change(_on_change)
        return Subscription(handle.unsubscribe, name="auth state listener")

    async def sign_in(self, email: str, password: str) -> Optional[Identity]:
        """Sign in with email and password."""
        try:
            response = await self._auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as e:
            raise AuthenticationError(e.message, getattr(e, "status", None)) from e
        return identity_from_session(getattr(response, "session", None))

    async def sign_up(self, email: str, password: str, redirect_to: str) -> None:
        """Create an account; the confirmation email links back to redirect_to."""
        try:
            await self._auth.sign_up({
                "email": email,
                "password": password,
                "options": {"email_redirect_to": redirect_to},
            })
        except AuthError as e:
            raise AuthenticationError(e.message, getattr(e, "status", None)) from e

    async def sign_out(self) -> None:
        try:
            await self._auth.sign_out()
        except AuthError as e:
            raise AuthenticationError(e.message, getattr(e, "status", None)) from e
