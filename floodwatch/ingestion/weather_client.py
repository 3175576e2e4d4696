"""
FloodWatch - Weather Client
Fetches current rainfall from Open-Meteo API (free, no authentication required).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from floodwatch.core.constants import FLOOD_RISK_DEFAULT, FLOOD_RISK_THRESHOLDS

logger = logging.getLogger(__name__)


@dataclass
class FloodRisk:
    """Flood risk banner derived from rainfall."""
    level: str
    text: str
    rainfall_mm: float

    @property
    def css_class(self) -> str:
        return f"risk-{self.level.lower()}"

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level, "text": self.text, "rainfall_mm": self.rainfall_mm}


def classify_flood_risk(rainfall_mm: float) -> FloodRisk:
    """
    Classify flood risk from rainfall.

    Args:
        rainfall_mm: Rainfall in millimetres

    Returns:
        FloodRisk (High above 30 mm, Moderate above 15 mm, otherwise Low)
    """
    for threshold, level, text in FLOOD_RISK_THRESHOLDS:
        if rainfall_mm > threshold:
            return FloodRisk(level=level, text=text, rainfall_mm=rainfall_mm)
    level, text = FLOOD_RISK_DEFAULT
    return FloodRisk(level=level, text=text, rainfall_mm=rainfall_mm)


@dataclass
class CurrentWeather:
    """Current weather conditions at a location."""
    latitude: float
    longitude: float
    timestamp: datetime
    temperature_celsius: float
    humidity_percent: float
    precipitation_mm: float = 0.0
    rain_mm: float = 0.0
    city: Optional[str] = None

    @property
    def condition(self) -> str:
        if self.precipitation_mm >= 7.5:
            return "Heavy Rain"
        if self.precipitation_mm > 0:
            return "Rainy"
        return "Dry"

    @property
    def flood_risk(self) -> FloodRisk:
        return classify_flood_risk(self.precipitation_mm)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "city": self.city,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.timestamp.isoformat(),
            "temperature_celsius": self.temperature_celsius,
            "humidity_percent": self.humidity_percent,
            "precipitation_mm": self.precipitation_mm,
            "rain_mm": self.rain_mm,
            "condition": self.condition,
            "flood_risk": self.flood_risk.to_dict(),
        }


class WeatherClient:
    """
    Client for Open-Meteo weather API.
    Free API with no authentication required.
    Documentation: https://open-meteo.com/en/docs
    """

    BASE_URL = "https://api.open-meteo.com/v1/forecast"

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the weather client.

        Args:
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.timeout = timeout
        self._transport = transport

    async def get_current_weather(
        self,
        latitude: float,
        longitude: float,
        city: Optional[str] = None
    ) -> CurrentWeather:
        """
        Get current weather conditions for a location.

        Args:
            latitude: Location latitude (-90 to 90)
            longitude: Location longitude (-180 to 180)
            city: Display name for the location

        Returns:
            CurrentWeather object with current conditions
        """
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join([
                "temperature_2m",
                "relative_humidity_2m",
                "precipitation",
                "rain",
            ]),
            "timezone": "auto",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(self.BASE_URL, params=params)
            response.raise_for_status()
            data = response.json()

        current = data.get("current", {})

        return CurrentWeather(
            latitude=data.get("latitude", latitude),
            longitude=data.get("longitude", longitude),
            timestamp=datetime.fromisoformat(
                current.get("time", datetime.now(timezone.utc).isoformat())
            ),
            temperature_celsius=current.get("temperature_2m", 0),
            humidity_percent=current.get("relative_humidity_2m", 0),
            precipitation_mm=current.get("precipitation", 0) or 0,
            rain_mm=current.get("rain", 0) or 0,
            city=city,
        )

    async def get_current_weather_safe(
        self,
        latitude: float,
        longitude: float,
        city: Optional[str] = None
    ) -> Optional[CurrentWeather]:
        """
        Current weather for the risk banner; None when the API is unavailable.
        """
        try:
            return await self.get_current_weather(latitude, longitude, city=city)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.warning(f"Weather unavailable for ({latitude}, {longitude}): {e}")
            return None
