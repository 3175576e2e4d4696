"""
Map Visualization Module for FloodWatch

Generates interactive maps using Folium to display crowdsourced road reports,
one marker per report colored by rain level.
"""

import html
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import folium

from floodwatch.core.config import Settings, settings as default_settings
from floodwatch.core.constants import (
    DEFAULT_MARKER_COLOR,
    MAP_TILE_STYLES,
    RAIN_LEVEL_COLORS,
)
from floodwatch.gateway.records import RoadReport

logger = logging.getLogger(__name__)


def get_rain_level_color(rain_level: Optional[str]) -> str:
    """Get marker color based on rain level (teal for low or unknown)."""
    key = getattr(rain_level, "value", rain_level)
    return RAIN_LEVEL_COLORS.get(str(key).lower() if key else "", DEFAULT_MARKER_COLOR)


@dataclass(frozen=True)
class MapConfig:
    """Map widget configuration."""
    center: Tuple[float, float]
    zoom: int = 11
    pitch: int = 45
    style: str = "light"

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "MapConfig":
        config = config or default_settings
        return cls(
            center=(config.map_center_lat, config.map_center_lon),
            zoom=config.map_zoom,
            pitch=config.map_pitch,
            style=config.map_style,
        )

    @property
    def tiles(self) -> str:
        return MAP_TILE_STYLES.get(self.style, MAP_TILE_STYLES["light"])


@dataclass(frozen=True)
class MapMarker:
    """Marker data derived from exactly one road report."""
    latitude: float
    longitude: float
    color: str
    popup_html: str
    rain_level: str

    @property
    def position(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


def build_popup_html(report: RoadReport) -> str:
    """Popup content: location, description and rain level (escaped)."""
    return f"""
    <div style="font-family: Arial; min-width: 200px;">
        <h4 style="margin: 0;">{html.escape(report.location)}</h4>
        <p style="margin: 5px 0;">{html.escape(report.description)}</p>
        <p style="margin: 0; color: #6b7280; font-size: 12px;">Rain Level: {report.rain_level.value}</p>
    </div>
    """


def build_markers(reports: Iterable[RoadReport]) -> List[MapMarker]:
    """One marker per report, in report order."""
    return [
        MapMarker(
            latitude=report.latitude,
            longitude=report.longitude,
            color=get_rain_level_color(report.rain_level),
            popup_html=build_popup_html(report),
            rain_level=report.rain_level.value,
        )
        for report in reports
    ]


def create_report_map(
    markers: List[MapMarker],
    config: Optional[MapConfig] = None,
    show_legend: bool = True,
) -> folium.Map:
    """
    Create an interactive map with road report markers.

    Args:
        markers: Markers from build_markers()
        config: Map configuration (Karachi defaults if None)
        show_legend: Add the rain level legend

    Returns:
        Folium Map object
    """
    config = config or MapConfig.from_settings()

    # Leaflet is 2D; pitch travels as a map option for renderers that read it
    report_map = folium.Map(
        location=list(config.center),
        zoom_start=config.zoom,
        tiles=config.tiles,
        pitch=config.pitch,
    )

    for marker in markers:
        folium.CircleMarker(
            location=[marker.latitude, marker.longitude],
            radius=12,
            popup=folium.Popup(marker.popup_html, max_width=300),
            color="white",
            weight=2,
            fill=True,
            fill_color=marker.color,
            fill_opacity=0.9,
        ).add_to(report_map)

    if show_legend:
        legend_html = f'''
        <div style="position: fixed; bottom: 30px; right: 30px;
                    background-color: rgba(255,255,255,0.9); padding: 10px;
                    border-radius: 5px; z-index: 9999; font-family: Arial; font-size: 12px;">
            <b>Rain Level</b><br>
            <span style="color: {RAIN_LEVEL_COLORS['high']};">●</span> High<br>
            <span style="color: {RAIN_LEVEL_COLORS['moderate']};">●</span> Moderate<br>
            <span style="color: {RAIN_LEVEL_COLORS['low']};">●</span> Low
        </div>
        '''
        report_map.get_root().html.add_child(folium.Element(legend_html))

    logger.info(f"Created map with {len(markers)} report markers")
    return report_map


def generate_report_map(
    reports: List[RoadReport],
    output_path: str = "flood_reports.html",
    config: Optional[MapConfig] = None,
) -> str:
    """
    Generate and save the report map as an HTML file.

    Args:
        reports: Road reports to plot
        output_path: Path to save HTML file
        config: Map configuration

    Returns:
        Path to saved file
    """
    report_map = create_report_map(build_markers(reports), config=config)
    report_map.save(output_path)
    logger.info(f"Map saved to {output_path}")

    return output_path
