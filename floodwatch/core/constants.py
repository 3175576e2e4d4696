"""
FloodWatch - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, Tuple

# =============================================================================
# GEOGRAPHY
# =============================================================================

# Karachi center coordinates (lat, lon)
KARACHI_CENTER: Tuple[float, float] = (24.8607, 67.0099)

LATITUDE_RANGE: Tuple[float, float] = (-90.0, 90.0)
LONGITUDE_RANGE: Tuple[float, float] = (-180.0, 180.0)

# =============================================================================
# STORE TABLES
# =============================================================================

TABLE_PROFILES = "profiles"
TABLE_ROAD_REPORTS = "road_reports"
TABLE_ECO_STATS = "eco_stats"
TABLE_ECO_TIPS = "eco_tips"

# =============================================================================
# REPORT FORM
# =============================================================================

RAIN_LEVELS: Tuple[str, ...] = ("low", "moderate", "high")
DEFAULT_RAIN_LEVEL = "moderate"

LOCATION_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1000
PASSWORD_MIN_LENGTH = 6

# Marker colors by rain level; anything unrecognised falls back to teal
RAIN_LEVEL_COLORS: Dict[str, str] = {
    "high": "#FF6B6B",
    "moderate": "#FFA500",
    "low": "#4ECDC4",
}
DEFAULT_MARKER_COLOR = "#4ECDC4"

RAIN_LEVEL_LABELS: Dict[str, str] = {
    "low": "Low - Minor puddles",
    "moderate": "Moderate - Ankle deep water",
    "high": "High - Severe flooding",
}

# =============================================================================
# ECO IMPACT
# =============================================================================

# kg CO2 credited per road report
ECO_CREDIT_PER_REPORT = 1.5
ECO_ACTION_ROAD_REPORT = "road_report"

# Dashboard impact tiers (min reports, label, badge)
IMPACT_LEVELS: Tuple[Tuple[int, str, str], ...] = (
    (10, "Hero", "🏆"),
    (5, "Champion", "⭐"),
    (0, "Helper", "🌱"),
)

# =============================================================================
# FLOOD RISK (rainfall in mm)
# =============================================================================

FLOOD_RISK_THRESHOLDS: Tuple[Tuple[float, str, str], ...] = (
    (30.0, "High", "Severe Flood Risk"),
    (15.0, "Moderate", "Moderate Risk"),
)
FLOOD_RISK_DEFAULT: Tuple[str, str] = ("Low", "Low Risk")

# =============================================================================
# MAP STYLES
# =============================================================================

MAP_TILE_STYLES: Dict[str, str] = {
    "light": "CartoDB positron",
    "dark": "CartoDB dark_matter",
    "street": "OpenStreetMap",
}
