"""
FloodWatch - Visualization Module
Folium maps of crowdsourced road reports.
"""

from floodwatch.visualization.map_generator import (
    MapConfig,
    MapMarker,
    build_markers,
    create_report_map,
    generate_report_map,
    get_rain_level_color,
)

__all__ = [
    "MapConfig",
    "MapMarker",
    "build_markers",
    "create_report_map",
    "generate_report_map",
    "get_rain_level_color",
]
