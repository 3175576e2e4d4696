"""
Auth page: sign in / sign up, and the navbar sign-out action.
"""

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from floodwatch.core.exceptions import AuthenticationError, FormValidationError
from floodwatch.forms.validation import validate_auth_form
from floodwatch.session.context import ClientContext
from floodwatch.views.base import Route, ViewController

logger = logging.getLogger(__name__)

GENERIC_AUTH_ERROR = "An error occurred"

# (fragment of provider message, message shown)
AUTH_ERROR_MESSAGES = (
    ("Invalid login credentials", "Invalid email or password"),
    ("already registered", "This email is already registered. Please login instead."),
)


class AuthMode(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"


def friendly_auth_message(error: Exception) -> str:
    """Map a provider rejection to the message shown to the user."""
    if not isinstance(error, AuthenticationError):
        return GENERIC_AUTH_ERROR
    message = error.message or ""
    for fragment, friendly in AUTH_ERROR_MESSAGES:
        if fragment.lower() in message.lower():
            return friendly
    return message or GENERIC_AUTH_ERROR


class AuthView(ViewController):
    """Redirects Home as soon as an identity is present."""

    route = Route.AUTH
    title = "Sign In"
    redirect_when_authenticated = True

    def __init__(self, context, mode: AuthMode = AuthMode.LOGIN):
        super().__init__(context)
        self.mode = mode
        self.email = ""

    async def submit(self, raw_fields: Mapping[str, Any], mode: Optional[AuthMode] = None) -> bool:
        """
        Validate credentials and call the provider.

        Returns:
            True when the provider accepted the request
        """
        self.mode = AuthMode(mode or self.mode)
        self.email = str(raw_fields.get("email") or "")

        if self.halted:
            return False

        try:
            form = validate_auth_form(raw_fields)
        except FormValidationError as e:
            self.notifier.error(e.message)
            return False

        provider = self.context.provider
        try:
            if self.mode == AuthMode.LOGIN:
                await provider.sign_in(form.email, form.password)
                self.notifier.success("Welcome back!")
            else:
                redirect_to = self.context.settings.site_url.rstrip("/") + "/"
                await provider.sign_up(form.email, form.password, redirect_to)
                self.notifier.success("Account created! You can now login.")
                self.mode = AuthMode.LOGIN
        except AuthenticationError as e:
            logger.info(f"{self.mode.value} rejected for {form.email}: {e.message}")
            self.notifier.error(friendly_auth_message(e))
            return False
        return True


async def sign_out(context: ClientContext) -> Route:
    """Sign the user out; the watcher's listeners see the identity drop."""
    try:
        await context.provider.sign_out()
    except AuthenticationError as e:
        context.notifier.error(friendly_auth_message(e))
        return Route.HOME
    context.notifier.success("Logged out successfully")
    return Route.HOME
