"""
FloodWatch - Session Module
Identity tracking over the hosted auth provider, and per-browser contexts.
"""

from floodwatch.session.subscription import Subscription
from floodwatch.session.provider import SupabaseAuthProvider, identity_from_session
from floodwatch.session.watcher import SessionWatcher, SessionState
from floodwatch.session.context import ClientContext, ContextRegistry

__all__ = [
    "Subscription",
    "SupabaseAuthProvider",
    "identity_from_session",
    "SessionWatcher",
    "SessionState",
    "ClientContext",
    "ContextRegistry",
]
