"""
EXIF metadata adapter built on Pillow.

Reads only what the stamper needs: GPS position, image direction, capture
time and orientation.
"""

import logging
from typing import Any, Mapping, Optional

from PIL import Image, ExifTags, UnidentifiedImageError

from errors import MetadataReadError
from geo_projection import dms_to_degrees, parse_coordinate
from stamp_io.data_models import Direction, GeoPoint, PhotoMetadata

logger = logging.getLogger(__name__)

_REFERENCE_LABELS = {
    "T": "True North",
    "TRUE NORTH": "True North",
    "M": "Magnetic North",
    "MAGNETIC NORTH": "Magnetic North",
}


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    return str(value).strip("\x00 ").upper()


def _coordinate(value: Any) -> float:
    """EXIF coordinates arrive as (deg, min, sec) rationals, numbers or DMS strings."""
    if isinstance(value, (tuple, list)) and len(value) == 3:
        return dms_to_degrees(*(float(part) for part in value))
    if isinstance(value, (tuple, list)) and len(value) == 1:
        return float(value[0])
    try:
        return float(value)
    except (TypeError, ValueError):
        return parse_coordinate(str(value))


def metadata_from_exif(gps: Mapping[int, Any], exif: Mapping[int, Any],
                       orientation: int = 1) -> PhotoMetadata:
    """
    Build PhotoMetadata from decoded EXIF directories.

    Args:
        gps: GPS IFD keyed by numeric tag
        exif: Exif IFD keyed by numeric tag
        orientation: Orientation tag from IFD0

    Returns:
        PhotoMetadata; gps_point is None unless both latitude and longitude exist
    """
    gps_point: Optional[GeoPoint] = None
    lat_raw = gps.get(ExifTags.GPS.GPSLatitude)
    lon_raw = gps.get(ExifTags.GPS.GPSLongitude)
    if lat_raw is not None and lon_raw is not None:
        lat = _coordinate(lat_raw)
        lon = _coordinate(lon_raw)
        if _text(gps.get(ExifTags.GPS.GPSLatitudeRef, "N")).startswith("S"):
            lat = -abs(lat)
        if _text(gps.get(ExifTags.GPS.GPSLongitudeRef, "E")).startswith("W"):
            lon = -abs(lon)
        try:
            gps_point = GeoPoint(latitude=round(lat, 6), longitude=round(lon, 6))
        except ValueError:
            logger.warning(f"Ignoring out-of-range GPS position {lat}, {lon}")

    direction: Optional[Direction] = None
    heading = gps.get(ExifTags.GPS.GPSImgDirection)
    if heading is not None:
        reference = _text(gps.get(ExifTags.GPS.GPSImgDirectionRef, "T"))
        direction = Direction(
            degrees=round(float(heading), 2),
            reference=_REFERENCE_LABELS.get(reference, reference.title()),
        )

    taken_at = exif.get(ExifTags.Base.DateTimeOriginal)
    if isinstance(taken_at, bytes):
        taken_at = taken_at.decode("ascii", errors="ignore")

    return PhotoMetadata(
        gps_point=gps_point,
        direction=direction,
        taken_at=taken_at or None,
        orientation=orientation if 1 <= orientation <= 8 else 1,
    )


class ExifMetadataProvider:
    """Reads PhotoMetadata from the EXIF block of an image file."""

    def read(self, path: str) -> PhotoMetadata:
        try:
            with Image.open(path) as image:
                exif = image.getexif()
                gps = dict(exif.get_ifd(ExifTags.IFD.GPSInfo))
                exif_ifd = dict(exif.get_ifd(ExifTags.IFD.Exif))
                orientation = int(exif.get(ExifTags.Base.Orientation, 1))
        except (OSError, UnidentifiedImageError) as e:
            raise MetadataReadError(path, str(e)) from e

        metadata = metadata_from_exif(gps, exif_ifd, orientation)
        logger.debug(f"Metadata for {path}: {metadata}")
        return metadata
