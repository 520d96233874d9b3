from __future__ import annotations

from typing import Any, Mapping

from ..core.constants import MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_float_in_range(value: Any, field_name: str, low: float, high: float) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not low <= number <= high:
        raise ValidationError(f"{field_name} must be between {low:g} and {high:g}")
    return number


def require_location_fields(payload: Mapping[str, Any]) -> tuple[float, float, str]:
    """Validate the ``latitude``/``longitude``/``address`` triple of a request body."""
    latitude = require_float_in_range(payload.get("latitude"), "Latitude", MIN_LATITUDE, MAX_LATITUDE)
    longitude = require_float_in_range(payload.get("longitude"), "Longitude", MIN_LONGITUDE, MAX_LONGITUDE)
    address = payload.get("address") or ""
    if not isinstance(address, str):
        raise ValidationError("Address must be a string")
    return latitude, longitude, address.strip()


def require_positive_int(value: Any, field_name: str, *, default: int | None = None, maximum: int | None = None) -> int:
    if value in (None, ""):
        if default is None:
            raise ValidationError(f"{field_name} is required")
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 1:
        raise ValidationError(f"{field_name} must be positive")
    if maximum is not None:
        number = min(number, maximum)
    return number
