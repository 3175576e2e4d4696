"""
FloodWatch - Views Module
Page controllers composing the session watcher, forms and data gateway.
"""

from floodwatch.views.base import Route, ViewController, ViewStatus
from floodwatch.views.home import HomeView
from floodwatch.views.auth import AuthView, AuthMode, friendly_auth_message, sign_out
from floodwatch.views.dashboard import DashboardView, impact_level
from floodwatch.views.live_map import LiveMapView
from floodwatch.views.report import ReportView

__all__ = [
    "Route",
    "ViewController",
    "ViewStatus",
    "HomeView",
    "AuthView",
    "AuthMode",
    "friendly_auth_message",
    "sign_out",
    "DashboardView",
    "impact_level",
    "LiveMapView",
    "ReportView",
]
