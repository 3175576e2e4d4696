"""
FloodWatch - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    log_level: str = "INFO"

    # Supabase (hosted auth + PostgREST tables)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Public URL of this site, used for the sign-up confirmation redirect
    site_url: str = "http://localhost:8000"
    # Signed session cookie (context id + Supabase tokens)
    session_cookie_name: str = "floodwatch_sid"
    session_secret_key: str = "CHANGE-ME-IN-PRODUCTION"
    session_max_age_seconds: int = 14 * 24 * 3600

    # In-process client contexts
    session_max_contexts: int = 1000
    session_idle_seconds: float = 1800.0

    # Live map defaults (Karachi)
    map_center_lat: float = 24.8607
    map_center_lon: float = 67.0099
    map_zoom: int = 11
    map_pitch: int = 45
    map_style: str = "light"

    # Eco impact
    eco_credit_per_report: float = 1.5
    co2_goal_kg: float = 50.0

    # Weather banner (Open-Meteo)
    weather_enabled: bool = True
    weather_timeout_seconds: float = 10.0

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @model_validator(mode="after")
    def check_production_secret(self):
        """Refuse the placeholder cookie secret in production."""
        if self.is_production and "CHANGE-ME" in self.session_secret_key:
            raise ValueError("SESSION_SECRET_KEY must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
