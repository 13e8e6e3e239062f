"""
Caption text construction.

Pure functions that turn direction, address and capture time into the
lines of the caption bar. No drawing happens here.
"""

import re
from datetime import datetime
from typing import List, Optional, Union

from constants import DIRECTION_SEPARATOR, LOCALITY_SEPARATOR, MONTHS_PT
from geo_projection import degrees_to_cardinal
from stamp_io.data_models import AddressInfo, Direction

# "2025:01:15 23:49:08" (EXIF) or "2025-01-15T23:49:08" (ISO 8601)
_TIMESTAMP_PATTERN = re.compile(r"(\d{4})[:-](\d{2})[:-](\d{2})[\sT]+(\d{2}):(\d{2}):(\d{2})")


def _format_parts(year: int, month: int, day: int, hour: int, minute: int, second: int) -> str:
    return f"{day:02d} de {MONTHS_PT[month - 1]} de {year} {hour:02d}:{minute:02d}:{second:02d}"


def format_datetime(value: Union[datetime, str, None]) -> Optional[str]:
    """Format a capture time as ``15 de jan de 2025 23:49:08``.

    Accepts datetime objects, EXIF timestamps and ISO 8601 timestamps.
    Unrecognized strings are returned unchanged; None and empty strings
    yield None.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _format_parts(value.year, value.month, value.day,
                             value.hour, value.minute, value.second)

    text = str(value).strip()
    if not text:
        return None

    match = _TIMESTAMP_PATTERN.search(text)
    if match:
        year, month, day, hour, minute, second = (int(part) for part in match.groups())
        if 1 <= month <= 12:
            return _format_parts(year, month, day, hour, minute, second)
    return text


def format_direction(degrees: Optional[float]) -> Optional[str]:
    """Format a heading as ``135.00° SE``."""
    if degrees is None:
        return None
    return f"{degrees:.2f}° {degrees_to_cardinal(degrees)}"


def layout(
    direction: Optional[Direction],
    address: Optional[AddressInfo],
    taken_at: Union[datetime, str, None],
    is_landscape: bool,
) -> List[str]:
    """
    Build caption lines, top to bottom.

    Line 1 holds the capture time and heading, line 2 the street address
    and line 3 the neighborhood and city. Missing parts are dropped and
    lines left empty are omitted, so the result may have zero to three
    lines.

    Args:
        direction: Camera heading, if known
        address: Reverse-geocoded address, if known
        taken_at: Capture time (datetime or EXIF/ISO string)
        is_landscape: Photo orientation. Both orientations currently share
            the same three-line layout.

    Returns:
        Caption lines
    """
    lines: List[str] = []

    first = [part for part in (format_datetime(taken_at),
                               format_direction(direction.degrees if direction else None))
             if part]
    if first:
        lines.append(DIRECTION_SEPARATOR.join(first))

    if address is not None:
        if address.street:
            street = address.street
            if address.number:
                street = f"{address.number} {street}"
            lines.append(street)

        locality = []
        if address.neighborhood:
            locality.append(address.neighborhood)
        if address.city:
            city = address.city
            if address.state:
                city = f"{city}, {address.state}"
            locality.append(city)
        if locality:
            lines.append(LOCALITY_SEPARATOR.join(locality))

    return lines
