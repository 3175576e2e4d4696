"""
Per-browser client context and the registry that owns them.

A ClientContext bundles everything one browser session needs: the Supabase
client (which holds that user's tokens), the auth provider, the data gateway,
the session watcher and the toast queue. It is opened once (watcher
subscribes) and closed once (watcher unsubscribes, client connections
released); views receive it instead of reaching for globals.
"""

import logging
import time
import uuid
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from supabase import acreate_client

from floodwatch.alerts.notifier import Notifier
from floodwatch.core.config import Settings, settings as default_settings
from floodwatch.core.exceptions import ConfigurationError
from floodwatch.gateway.data_gateway import RemoteDataGateway
from floodwatch.gateway.records import Identity
from floodwatch.session.provider import SupabaseAuthProvider
from floodwatch.session.watcher import SessionWatcher

logger = logging.getLogger(__name__)


async def close_supabase_client(client: Any) -> None:
    """Release the HTTP connections held by a Supabase async client."""
    postgrest = getattr(client, "_postgrest", None)
    if postgrest is not None:
        await postgrest.aclose()
    close_auth = getattr(client.auth, "close", None)
    if close_auth is not None:
        await close_auth()


class ClientContext:
    """Owner of one browser session's collaborators."""

    def __init__(
        self,
        provider: Any,
        gateway: RemoteDataGateway,
        notifier: Optional[Notifier] = None,
        config: Optional[Settings] = None,
        context_id: Optional[str] = None,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        """
        Initialize context.

        Args:
            provider: Auth provider (see SupabaseAuthProvider)
            gateway: Data gateway bound to the same client as the provider
            notifier: Toast queue (a fresh one if None)
            config: Settings (module settings if None)
            context_id: Identifier used as the session cookie value
            on_close: Awaited once when the context is closed
        """
        self.id = context_id or uuid.uuid4().hex
        self.provider = provider
        self.gateway = gateway
        self.notifier = notifier or Notifier()
        self.settings = config or default_settings
        self.watcher = SessionWatcher(provider)

        # Report submit control is disabled while a submission is outstanding
        self.submission_in_flight = False
        self._open = False
        self._on_close = on_close

    @classmethod
    async def connect(cls, config: Optional[Settings] = None) -> "ClientContext":
        """Create a context with its own Supabase client."""
        config = config or default_settings
        if not config.supabase_configured:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY must be set")

        client = await acreate_client(config.supabase_url, config.supabase_anon_key)
        return cls(
            provider=SupabaseAuthProvider(client.auth),
            gateway=RemoteDataGateway(client),
            config=config,
            on_close=lambda: close_supabase_client(client),
        )

    @property
    def identity(self) -> Optional[Identity]:
        return self.watcher.identity

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> "ClientContext":
        if not self._open:
            await self.watcher.start()
            self._open = True
            logger.info(f"Client context {self.id[:8]} opened")
        return self

    async def close(self) -> None:
        if self._open:
            self.watcher.stop()
            self._open = False
            logger.info(f"Client context {self.id[:8]} closed")
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            await on_close()

    async def __aenter__(self) -> "ClientContext":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


ContextFactory = Callable[[], Awaitable[ClientContext]]


class ContextRegistry:
    """
    In-memory map of session id -> open ClientContext.

    Contexts idle longer than idle_timeout are closed on the next lookup,
    and the least recently used context is closed when max_contexts is
    reached. Anonymous reads that need no session use one shared public
    context instead of a context per request.
    """

    def __init__(
        self,
        factory: Optional[ContextFactory] = None,
        max_contexts: Optional[int] = None,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize registry.

        Args:
            factory: Creates an unopened context (ClientContext.connect if None)
            max_contexts: Cap on open contexts (settings default if None)
            idle_timeout: Seconds of inactivity before a context is closed
            clock: Monotonic time source
        """
        self.factory: ContextFactory = factory or ClientContext.connect
        if max_contexts is None:
            max_contexts = default_settings.session_max_contexts
        if idle_timeout is None:
            idle_timeout = default_settings.session_idle_seconds
        self.max_contexts = max(1, max_contexts)
        self.idle_timeout = idle_timeout
        self._clock = clock
        self._contexts: "OrderedDict[str, ClientContext]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}
        self._public: Optional[ClientContext] = None

    def __len__(self) -> int:
        return len(self._contexts)

    def get(self, context_id: Optional[str]) -> Optional[ClientContext]:
        if not context_id:
            return None
        return self._contexts.get(context_id)

    async def get_or_create(
        self,
        context_id: Optional[str],
        tokens: Optional[Tuple[str, str]] = None,
    ) -> ClientContext:
        """
        Return the open context for context_id, creating one if unknown.

        Args:
            context_id: Id from the session cookie
            tokens: Persisted (access, refresh) tokens adopted by a new context

        Returns:
            Open ClientContext
        """
        await self.evict_idle()

        context = self.get(context_id)
        if context is None:
            context = await self._create(tokens)

        self._contexts.move_to_end(context.id)
        self._last_seen[context.id] = self._clock()
        return context

    async def _create(self, tokens: Optional[Tuple[str, str]]) -> ClientContext:
        while len(self._contexts) >= self.max_contexts:
            oldest = next(iter(self._contexts))
            logger.info(f"Context limit {self.max_contexts} reached, closing {oldest[:8]}")
            await self.discard(oldest)

        context = await self.factory()
        try:
            if tokens is not None:
                await context.provider.restore_session(*tokens)
            await context.open()
        except Exception:
            await context.close()
            raise
        self._contexts[context.id] = context
        return context

    async def evict_idle(self) -> int:
        """Close contexts idle longer than idle_timeout; returns how many."""
        now = self._clock()
        expired = [
            context_id for context_id, seen in self._last_seen.items()
            if now - seen > self.idle_timeout
        ]
        for context_id in expired:
            await self.discard(context_id)
        if expired:
            logger.info(f"Closed {len(expired)} idle client contexts")
        return len(expired)

    async def public_gateway(self) -> RemoteDataGateway:
        """Gateway of the shared anonymous context (created on first use)."""
        if self._public is None:
            self._public = await self.factory()
        return self._public.gateway

    async def discard(self, context_id: str) -> None:
        self._last_seen.pop(context_id, None)
        context = self._contexts.pop(context_id, None)
        if context is not None:
            await context.close()

    async def close_all(self) -> None:
        """Close every context (application shutdown)."""
        for context_id in list(self._contexts):
            await self.discard(context_id)
        if self._public is not None:
            await self._public.close()
            self._public = None
        logger.info("All client contexts closed")
