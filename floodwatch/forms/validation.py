"""
Form validation for the two mutating flows: authentication and report submission.

Runs locally and synchronously before any request is built. The first violated
rule (in field declaration order) is raised as a FormValidationError.
"""

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from floodwatch.core.constants import (
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    LATITUDE_RANGE,
    LOCATION_MAX_LENGTH,
    LONGITUDE_RANGE,
    PASSWORD_MIN_LENGTH,
    RAIN_LEVELS,
)
from floodwatch.core.exceptions import FormValidationError

logger = logging.getLogger(__name__)


class RainLevel(str, Enum):
    """Observed rain/flood level at a reported location."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class AuthForm(BaseModel):
    """Credentials for sign-in and sign-up."""

    model_config = ConfigDict(frozen=True)

    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        text = str(value or "").strip()
        try:
            return validate_email(text, check_deliverability=False).normalized
        except EmailNotValidError:
            raise PydanticCustomError("invalid_email", "Invalid email address")

    @field_validator("password", mode="before")
    @classmethod
    def _check_password(cls, value: Any) -> str:
        text = "" if value is None else str(value)
        if len(text) < PASSWORD_MIN_LENGTH:
            raise PydanticCustomError(
                "password_too_short",
                "Password must be at least {min_length} characters",
                {"min_length": PASSWORD_MIN_LENGTH},
            )
        return text


class ReportForm(BaseModel):
    """Normalized road report input, ready for the data gateway."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    location: str
    description: str
    latitude: float
    longitude: float
    rain_level: RainLevel
    image_url: Optional[str] = None

    @field_validator("location")
    @classmethod
    def _check_location(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("location_required", "Location is required")
        if len(value) > LOCATION_MAX_LENGTH:
            raise PydanticCustomError(
                "location_too_long",
                "Location must be at most {max_length} characters",
                {"max_length": LOCATION_MAX_LENGTH},
            )
        return value

    @field_validator("description")
    @classmethod
    def _check_description(cls, value: str) -> str:
        if len(value) < DESCRIPTION_MIN_LENGTH:
            raise PydanticCustomError(
                "description_too_short",
                "Description must be at least {min_length} characters",
                {"min_length": DESCRIPTION_MIN_LENGTH},
            )
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise PydanticCustomError(
                "description_too_long",
                "Description must be at most {max_length} characters",
                {"max_length": DESCRIPTION_MAX_LENGTH},
            )
        return value

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        low, high = LATITUDE_RANGE
        # NaN fails both comparisons
        if not low <= value <= high:
            raise PydanticCustomError(
                "latitude_out_of_bounds",
                "Latitude must be between {low} and {high}",
                {"low": int(low), "high": int(high)},
            )
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        low, high = LONGITUDE_RANGE
        if not low <= value <= high:
            raise PydanticCustomError(
                "longitude_out_of_bounds",
                "Longitude must be between {low} and {high}",
                {"low": int(low), "high": int(high)},
            )
        return value

    @field_validator("rain_level", mode="before")
    @classmethod
    def _check_rain_level(cls, value: Any) -> str:
        text = str(value.value if isinstance(value, RainLevel) else value or "").strip().lower()
        if text not in RAIN_LEVELS:
            raise PydanticCustomError(
                "rain_level_invalid",
                "Rain level must be one of: {choices}",
                {"choices": ", ".join(RAIN_LEVELS)},
            )
        return text

    @field_validator("image_url", mode="before")
    @classmethod
    def _check_image_url(cls, value: Any) -> Optional[str]:
        text = str(value or "").strip()
        if not text:
            return None
        if not text.lower().startswith(("http://", "https://")):
            raise PydanticCustomError(
                "image_url_invalid",
                "Image URL must start with http:// or https://",
            )
        return text


RULE_ERROR_TYPES = frozenset({
    "invalid_email",
    "password_too_short",
    "location_required",
    "location_too_long",
    "description_too_short",
    "description_too_long",
    "latitude_out_of_bounds",
    "longitude_out_of_bounds",
    "rain_level_invalid",
    "image_url_invalid",
})

FIELD_LABELS = {
    "email": "Email",
    "password": "Password",
    "location": "Location",
    "description": "Description",
    "latitude": "Latitude",
    "longitude": "Longitude",
    "rain_level": "Rain level",
    "image_url": "Image URL",
}


def _first_error(exc: ValidationError) -> FormValidationError:
    """Turn the first pydantic error into a user-facing message."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error.get("loc") else None
    message = error["msg"]

    # Built-in errors (missing field, non-numeric coordinate) get a field prefix
    if error["type"] not in RULE_ERROR_TYPES:
        label = FIELD_LABELS.get(field, field or "Input")
        if error["type"] == "missing":
            message = f"{label} is required"
        else:
            message = f"{label}: {message}"

    return FormValidationError(message, field=field)


def validate_auth_form(fields: Mapping[str, Any]) -> AuthForm:
    """
    Validate sign-in / sign-up input.

    Args:
        fields: Raw form values (email, password)

    Returns:
        AuthForm with the normalized email

    Raises:
        FormValidationError: first violated rule
    """
    try:
        return AuthForm(
            email=fields.get("email"),
            password=fields.get("password"),
        )
    except ValidationError as e:
        error = _first_error(e)
        logger.info(f"Auth form rejected: {error.field}")
        raise error from None


def validate_report_form(fields: Mapping[str, Any]) -> ReportForm:
    """
    Validate road report input.

    Args:
        fields: Raw form values (location, description, latitude, longitude,
            rain_level, optional image_url). Coordinates may be strings.

    Returns:
        ReportForm with trimmed strings and typed coordinates

    Raises:
        FormValidationError: first violated rule
    """
    try:
        return ReportForm(
            location=fields.get("location") or "",
            description=fields.get("description") or "",
            latitude=fields.get("latitude"),
            longitude=fields.get("longitude"),
            rain_level=fields.get("rain_level"),
            image_url=fields.get("image_url"),
        )
    except ValidationError as e:
        error = _first_error(e)
        logger.info(f"Report form rejected: {error.field} ({error.message})")
        raise error from None
