"""
Web Mercator (EPSG:3857) projection helpers.

Pure functions that turn WGS84 coordinates into slippy-map tile indices and
pixel offsets, plus compass labels and EXIF-style coordinate parsing.
"""

import math
import re
from dataclasses import dataclass
from typing import Union

from constants import TILE_SIZE, MAX_LATITUDE, CARDINALS


@dataclass(frozen=True)
class TileCoordinate:
    """Integer tile index in the global grid at a zoom level."""
    x: int
    y: int
    zoom: int


@dataclass(frozen=True)
class TileFraction:
    """Sub-tile precision position in the global grid."""
    x: float
    y: float
    zoom: int


@dataclass(frozen=True)
class PixelOffset:
    """Pixel position inside a single 256px tile."""
    x: int
    y: int


_DMS_PATTERN = re.compile(r"(\d+)\s*deg\s*(\d+)'\s*([\d.]+)\"\s*([NSEW])?", re.IGNORECASE)
_DECIMAL_PATTERN = re.compile(r"^-?[\d.]+$")


def to_tile_fraction(lat: float, lng: float, zoom: int) -> TileFraction:
    """Convert lat/lon to fractional tile coordinates at given zoom level."""
    n = 2 ** zoom
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    lat_rad = math.radians(lat)
    x = (lng + 180.0) / 360.0 * n
    # asinh(tan(lat)) == ln(tan(lat) + sec(lat))
    y = (1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n
    return TileFraction(x, y, zoom)


def to_tile(lat: float, lng: float, zoom: int) -> TileCoordinate:
    """Convert lat/lon to the integer tile containing the point."""
    fraction = to_tile_fraction(lat, lng, zoom)
    return TileCoordinate(math.floor(fraction.x), math.floor(fraction.y), zoom)


def pixel_offset_in_tile(lat: float, lng: float, zoom: int) -> PixelOffset:
    """Pixel position of the point inside its tile, always in [0, TILE_SIZE)."""
    fraction = to_tile_fraction(lat, lng, zoom)
    tile = to_tile(lat, lng, zoom)

    def to_pixel(value: float) -> int:
        # Round half up, but never spill into the next tile
        return min(math.floor(value * TILE_SIZE + 0.5), TILE_SIZE - 1)

    return PixelOffset(to_pixel(fraction.x - tile.x), to_pixel(fraction.y - tile.y))


def degrees_to_cardinal(degrees: float) -> str:
    """Convert a heading to one of 16 compass labels (N, NNE, NE, ...)."""
    normalized = degrees % 360
    index = int((normalized + 11.25) / 22.5) % 16
    return CARDINALS[index]


def dms_to_degrees(degrees: float, minutes: float, seconds: float) -> float:
    return float(degrees) + float(minutes) / 60.0 + float(seconds) / 3600.0


def parse_coordinate(value: Union[str, float, int]) -> float:
    """Parse a coordinate in decimal degrees or EXIF DMS notation.

    Accepts numbers, decimal strings ("-25.4086") and DMS strings such as
    ``25 deg 24' 31.00" S``. A trailing S or W hemisphere letter negates the
    result. Anything unparseable yields 0.0.
    """
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    match = _DMS_PATTERN.search(text)
    if match:
        result = dms_to_degrees(match.group(1), match.group(2), match.group(3))
        hemisphere = (match.group(4) or "").upper()
        return -result if hemisphere in ("S", "W") else result

    if _DECIMAL_PATTERN.match(text):
        try:
            return float(text)
        except ValueError:
            return 0.0

    return 0.0
