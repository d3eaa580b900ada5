"""Models package for pinmap."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import InvalidCoordinateError
from .coordinates import Coordinate, validate_coordinate, make_cache_key, wrap_longitude


class ResolvedLocation(BaseModel):
    """Normalised reverse-geocoding result; both fields are always non-empty"""
    model_config = ConfigDict(frozen=True)

    city: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)

    @property
    def label(self) -> str:
        return f"{self.city}, {self.country}"


class NewPin(BaseModel):
    """A pin that has not been persisted yet"""
    place_name: str = Field(..., min_length=1)
    added_by: str = Field(..., min_length=1)
    notes: str = ""
    date: datetime = Field(default_factory=datetime.now)
    latitude: float
    longitude: float
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def check_coordinate(self):
        try:
            validate_coordinate(self.latitude, self.longitude)
        except InvalidCoordinateError as e:
            raise ValueError(e.reason) from e
        return self

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    @classmethod
    def from_placement(cls, placement, place_name: str, added_by: str, notes: str = "",
                       image_url: Optional[str] = None) -> "NewPin":
        """Build an unsaved pin at the coordinate of a pin placement request"""
        return cls(
            place_name=place_name,
            added_by=added_by,
            notes=notes,
            latitude=placement.coordinate.latitude,
            longitude=placement.coordinate.longitude,
            image_url=image_url,
        )


class Pin(NewPin):
    """A stored pin as returned by the pin store"""
    id: str
    created_at: datetime


__all__ = [
    "Coordinate",
    "validate_coordinate",
    "make_cache_key",
    "wrap_longitude",
    "ResolvedLocation",
    "NewPin",
    "Pin",
]
