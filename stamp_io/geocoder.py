"""
Reverse geocoding against OpenStreetMap Nominatim.

Geocoding is best effort: ``reverse_geocode`` never raises, it logs a warning
and returns None so the caption simply omits the address lines.
"""

import logging
from typing import Any, Dict, Optional

import requests

from constants import NOMINATIM_URL, USER_AGENT
from errors import GeocodingFailure
from stamp_io.data_models import AddressInfo
from stamp_io.http_client import get_with_retry

logger = logging.getLogger(__name__)


def _first(address: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        if address.get(key):
            return address[key]
    return None


def parse_nominatim_response(data: Dict[str, Any]) -> Optional[AddressInfo]:
    """Map a Nominatim JSON payload onto AddressInfo (None for error payloads)."""
    if data.get("error"):
        return None

    address = data.get("address") or {}
    return AddressInfo(
        street=_first(address, "road", "pedestrian", "footway"),
        number=address.get("house_number"),
        neighborhood=_first(address, "suburb", "neighbourhood", "district"),
        city=_first(address, "city", "town", "village", "municipality"),
        state=address.get("state"),
        country=address.get("country"),
        postcode=address.get("postcode"),
        display_name=data.get("display_name"),
    )


class NominatimGeocoder:
    """Looks up the street address nearest to a coordinate."""

    def __init__(self, base_url: str = NOMINATIM_URL, user_agent: str = USER_AGENT):
        self.base_url = base_url
        self.user_agent = user_agent

    def reverse_geocode(self, lat: float, lng: float) -> Optional[AddressInfo]:
        """Best-effort lookup; any failure is logged and yields None."""
        try:
            return self._reverse(lat, lng)
        except GeocodingFailure as e:
            logger.warning(f"Could not fetch address: {e}")
            return None

    def _reverse(self, lat: float, lng: float) -> Optional[AddressInfo]:
        params = {
            "lat": lat,
            "lon": lng,
            "format": "json",
            "addressdetails": 1,
            "zoom": 18,
        }
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        try:
            response = get_with_retry(self.base_url, params=params, headers=headers)
        except requests.RequestException as e:
            raise GeocodingFailure(f"Connection failed: {e}") from e

        if not response.ok:
            raise GeocodingFailure(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodingFailure(f"Invalid response: {e}") from e
        if not isinstance(data, dict):
            raise GeocodingFailure(f"Invalid response: expected an object, got {type(data).__name__}")

        address = parse_nominatim_response(data)
        logger.debug(f"Reverse geocoded {lat}, {lng}: {address}")
        return address
