"""
Collaborators of the stamping pipeline.

Adapters for reading photo metadata, reverse geocoding, image encoding and
SVG rasterization, plus the data models they exchange.
"""

from stamp_io.data_models import (
    GeoPoint,
    Direction,
    AddressInfo,
    PhotoMetadata,
)
from stamp_io.metadata import ExifMetadataProvider
from stamp_io.geocoder import NominatimGeocoder
from stamp_io.rasterizer import SvgRasterizer

__all__ = [
    "GeoPoint",
    "Direction",
    "AddressInfo",
    "PhotoMetadata",
    "ExifMetadataProvider",
    "NominatimGeocoder",
    "SvgRasterizer",
]
