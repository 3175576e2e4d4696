"""
Base view controller: session gating, tri-state status, navigation, teardown.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from floodwatch.alerts.notifier import Notifier
from floodwatch.core.exceptions import GatewayReadError
from floodwatch.gateway.records import Identity
from floodwatch.session.context import ClientContext
from floodwatch.session.subscription import Subscription

logger = logging.getLogger(__name__)


class Route(str, Enum):
    """Navigable pages."""
    HOME = "/"
    AUTH = "/auth"
    MAP = "/map"
    REPORT = "/report"
    DASHBOARD = "/dashboard"


class ViewStatus(str, Enum):
    """What a page is able to render."""
    LOADING = "loading"
    EMPTY = "empty"
    POPULATED = "populated"


NAV_LINKS = (
    (Route.HOME, "Home", False),
    (Route.MAP, "Live Map", True),
    (Route.REPORT, "Report", True),
    (Route.DASHBOARD, "Dashboard", True),
)


class ViewController:
    """
    Page-level state machine driven by the session watcher.

    Usage:
        async with DashboardView(context) as view:
            await view.activate()
            ...
    """

    route: Route = Route.HOME
    title: str = "FloodWatch"
    # Redirect to Auth and stop loading when the identity goes away
    requires_identity: bool = False
    # Redirect Home as soon as someone is signed in
    redirect_when_authenticated: bool = False

    def __init__(self, context: ClientContext):
        self.context = context
        self.status = ViewStatus.LOADING
        self.redirect_to: Optional[Route] = None
        self.identity: Optional[Identity] = None

        self._listener: Optional[Subscription] = None
        self._halted = False
        self._disposed = False

    @property
    def notifier(self) -> Notifier:
        return self.context.notifier

    @property
    def halted(self) -> bool:
        """True once the view must not issue further reads."""
        return self._halted or self._disposed

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def nav_links(self) -> List[Dict[str, Any]]:
        """Navbar entries; protected pages only when signed in."""
        return [
            {"href": route.value, "label": label, "active": route == self.route}
            for route, label, protected in NAV_LINKS
            if not protected or self.identity is not None
        ]

    async def activate(self) -> "ViewController":
        """Gate on the current identity, follow changes, then load if permitted."""
        if self._disposed:
            raise RuntimeError(f"{type(self).__name__} already disposed")

        await self.context.open()
        self._listener = self.context.watcher.add_listener(self._on_identity_change)
        self._on_identity_change(self.context.watcher.identity)

        if not self.halted:
            await self.load()
        return self

    async def load(self) -> None:
        """Issue the reads this page needs. Default: nothing to read."""
        self.status = ViewStatus.POPULATED

    def dispose(self) -> None:
        """Release the identity listener. Safe to call more than once."""
        if self._listener is not None:
            self._listener.unsubscribe()
            self._listener = None
        self._disposed = True

    async def __aenter__(self) -> "ViewController":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    def navigate(self, route: Route) -> None:
        if self.redirect_to is None:
            logger.info(f"{type(self).__name__}: navigate -> {route.value}")
        self.redirect_to = route

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        if self._disposed:
            return
        self.identity = identity

        if identity is None and self.requires_identity:
            self._halted = True
            self.navigate(Route.AUTH)
        elif identity is not None and self.redirect_when_authenticated:
            self._halted = True
            self.navigate(Route.HOME)

    def read_failed(self, error: GatewayReadError, message: Optional[str] = None) -> None:
        """Surface a failed read; the page falls back to its empty state."""
        self.notifier.error(message or f"Failed to load {error.table.replace('_', ' ')}")
