"""
Live map: every road report as a marker, plus the flood risk banner.
"""

import logging
from typing import List, Optional

import folium

from floodwatch.core.exceptions import GatewayReadError
from floodwatch.gateway.records import RoadReport
from floodwatch.ingestion.weather_client import CurrentWeather, WeatherClient
from floodwatch.views.base import Route, ViewController, ViewStatus
from floodwatch.visualization.map_generator import (
    MapConfig,
    MapMarker,
    build_markers,
    create_report_map,
)

logger = logging.getLogger(__name__)


class LiveMapView(ViewController):
    """Identity is tracked for the navbar only; reports are public."""

    route = Route.MAP
    title = "Live Flood Map"

    def __init__(self, context, weather_client: Optional[WeatherClient] = None):
        super().__init__(context)
        self.reports: List[RoadReport] = []
        self.markers: List[MapMarker] = []
        self.weather: Optional[CurrentWeather] = None
        self.map_config = MapConfig.from_settings(context.settings)

        if weather_client is None and context.settings.weather_enabled:
            weather_client = WeatherClient(timeout=context.settings.weather_timeout_seconds)
        self.weather_client = weather_client

    async def load(self) -> None:
        try:
            self.reports = await self.context.gateway.fetch_reports()
        except GatewayReadError as e:
            self.read_failed(e, "Failed to load reports")
            self.reports = []

        self.markers = build_markers(self.reports)

        if self.weather_client is not None:
            lat, lon = self.map_config.center
            self.weather = await self.weather_client.get_current_weather_safe(
                lat, lon, city="Karachi"
            )

        self.status = ViewStatus.POPULATED if self.reports else ViewStatus.EMPTY

    @property
    def flood_risk(self):
        return self.weather.flood_risk if self.weather else None

    def render_map(self) -> folium.Map:
        return create_report_map(self.markers, config=self.map_config)
