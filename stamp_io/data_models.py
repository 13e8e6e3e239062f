"""
Data models for photo metadata and reverse-geocoded addresses.

Pydantic models shared between the metadata/geocoding adapters and the
stamping pipeline. All models are immutable once built.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from geo_projection import degrees_to_cardinal


class GeoPoint(BaseModel):
    """A WGS84 position in decimal degrees."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0, description="WGS84 latitude in degrees")
    longitude: float = Field(ge=-180.0, le=180.0, description="WGS84 longitude in degrees")


class Direction(BaseModel):
    """Camera heading in degrees clockwise from north."""
    model_config = ConfigDict(frozen=True)

    degrees: float = Field(description="Heading in degrees (0=North, 90=East)")
    reference: str = Field(default="True North", description="'True North' or 'Magnetic North'")

    @property
    def cardinal(self) -> str:
        return degrees_to_cardinal(self.degrees)


class AddressInfo(BaseModel):
    """Reverse-geocoded address. Every field may be missing."""
    model_config = ConfigDict(frozen=True)

    street: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postcode: Optional[str] = None
    display_name: Optional[str] = None


class PhotoMetadata(BaseModel):
    """Fields the stamper needs from a photo's EXIF block."""
    model_config = ConfigDict(frozen=True)

    gps_point: Optional[GeoPoint] = None
    direction: Optional[Direction] = None
    taken_at: Optional[Union[datetime, str]] = Field(
        default=None, description="DateTimeOriginal, raw EXIF string or datetime"
    )
    orientation: int = Field(default=1, ge=1, le=8)

    @property
    def has_gps(self) -> bool:
        return self.gps_point is not None
