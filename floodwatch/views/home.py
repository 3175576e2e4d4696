"""
Home page: landing content; identity only decides which links show.
"""

from floodwatch.views.base import Route, ViewController

FEATURES = (
    ("📍", "Live Flood Map", "Real-time visualization of flood-prone areas based on rainfall data"),
    ("⚠️", "Smart Alerts", "AI-powered predictions warn you before flooding occurs"),
    ("💧", "Crowdsourced Reports", "Community-driven road condition updates with photos"),
    ("🌱", "Eco Impact", "Track CO₂ saved by avoiding congested flood zones"),
)


class HomeView(ViewController):
    route = Route.HOME
    title = "FloodWatch Karachi"
    features = FEATURES
