"""Coordinate validation and cache-key quantization"""
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import InvalidCoordinateError


class Coordinate(BaseModel):
    """Validated WGS84 point (degrees)"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)

    def as_tuple(self) -> tuple:
        return (self.latitude, self.longitude)


def _parse_component(value: Any, name: str, latitude: Any, longitude: Any) -> float:
    if value is None:
        raise InvalidCoordinateError(latitude, longitude, f"{name} is missing")
    # bool is an int subclass; True/False are never coordinates
    if isinstance(value, bool):
        raise InvalidCoordinateError(latitude, longitude, f"{name} is not numeric")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidCoordinateError(latitude, longitude, f"{name} is missing")
    try:
        parsed = float(value)
    except OverflowError:
        raise InvalidCoordinateError(latitude, longitude, f"{name} is not a finite number")
    except (TypeError, ValueError):
        raise InvalidCoordinateError(latitude, longitude, f"{name} is not numeric")
    if not math.isfinite(parsed):
        raise InvalidCoordinateError(latitude, longitude, f"{name} is not a finite number")
    return parsed


def validate_coordinate(latitude: Any, longitude: Any) -> Coordinate:
    """
    Parse and validate a latitude/longitude pair.

    Accepts numbers and numeric strings. Raises InvalidCoordinateError when a
    component is missing, non-numeric, NaN/infinite or out of range.
    """
    lat = _parse_component(latitude, "latitude", latitude, longitude)
    lon = _parse_component(longitude, "longitude", latitude, longitude)

    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinateError(latitude, longitude, "latitude outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinateError(latitude, longitude, "longitude outside [-180, 180]")

    return Coordinate(latitude=lat, longitude=lon)


def wrap_longitude(longitude: float) -> float:
    """Wrap an out-of-range longitude into [-180, 180); in-range values are returned as is."""
    longitude = float(longitude)
    if -180.0 <= longitude <= 180.0:
        return longitude
    return ((longitude + 180.0) % 360.0) - 180.0


def _quantize(value: float, precision: int) -> str:
    # Adding 0.0 folds -0.0 into 0.0 so both hemispheres of zero share a key
    return f"{round(value, precision) + 0.0:.{precision}f}"


def make_cache_key(coordinate: Coordinate, precision: int = 4) -> str:
    """
    Quantize a coordinate into a cache key such as "48.8566,2.3522".

    Coordinates that only differ beyond `precision` decimal places collapse
    onto the same key.
    """
    return f"{_quantize(coordinate.latitude, precision)},{_quantize(coordinate.longitude, precision)}"
