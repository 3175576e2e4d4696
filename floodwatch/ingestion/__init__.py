"""
FloodWatch - Ingestion Module
External data feeds (current rainfall for the flood risk banner).
"""

from floodwatch.ingestion.weather_client import (
    WeatherClient,
    CurrentWeather,
    FloodRisk,
    classify_flood_risk,
)

__all__ = [
    "WeatherClient",
    "CurrentWeather",
    "FloodRisk",
    "classify_flood_risk",
]
