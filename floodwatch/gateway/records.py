"""
Typed records for the four store tables.

Rows coming back from the store are validated into these models at the gateway
boundary; anything that does not fit is logged and dropped there.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from floodwatch.forms.validation import RainLevel

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """Authenticated user reference held for the session."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None


class Profile(BaseModel):
    """One per identity; carries the CO2 accumulator."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: Optional[str] = None
    total_co2_saved: float = 0.0
    created_at: Optional[datetime] = None

    @field_validator("total_co2_saved", mode="before")
    @classmethod
    def _null_total_is_zero(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("total_co2_saved")
    @classmethod
    def _flag_negative_total(cls, value: float) -> float:
        # Logged, not rejected
        if value < 0:
            logger.warning(f"Profile has a negative CO2 total ({value}); keeping it as stored")
        return value

    @property
    def display_name(self) -> str:
        return self.username or "Community Member"


class RoadReport(BaseModel):
    """A crowdsourced road condition report."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    user_id: str
    location: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    description: str
    rain_level: RainLevel
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "description": self.description,
            "rain_level": self.rain_level.value,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class EcoStat(BaseModel):
    """Append-only CO2 credit for one user action."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    user_id: str
    co2_saved: float = Field(ge=0)
    action_type: str
    created_at: Optional[datetime] = None


class EcoTip(BaseModel):
    """Read-only advice shown on the dashboard."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[int, str]] = None
    tip: str
    category: Optional[str] = None
