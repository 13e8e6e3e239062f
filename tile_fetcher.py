"""
Slippy-map tile fetching.

Downloads and decodes single 256px raster tiles from a ``{z}/{x}/{y}`` URL
template. Stateless per call, so one fetcher can serve a pool of worker
threads.
"""

import logging

import requests
from PIL import Image, UnidentifiedImageError

from constants import DEFAULT_TILE_SERVER, USER_AGENT
from errors import TileFetchFailure
from geo_projection import TileCoordinate
from stamp_io import codec
from stamp_io.http_client import get_with_retry

logger = logging.getLogger(__name__)


class TileFetcher:
    """Fetches map tiles from a tile server.

    Args:
        url_template: Tile URL with ``{z}``, ``{x}`` and ``{y}`` placeholders
        user_agent: User-Agent header sent with every request (tile servers
            such as OpenStreetMap reject anonymous clients)
    """

    def __init__(self, url_template: str = DEFAULT_TILE_SERVER, user_agent: str = USER_AGENT):
        self.url_template = url_template
        self.user_agent = user_agent

    def tile_url(self, tile: TileCoordinate) -> str:
        return self.url_template.format(z=tile.zoom, x=tile.x, y=tile.y)

    def fetch(self, tile: TileCoordinate) -> Image.Image:
        """Fetch and decode one tile.

        Returns:
            RGBA tile bitmap

        Raises:
            TileFetchFailure: On a non-2xx response, exhausted retries or
                bytes that do not decode as an image
        """
        url = self.tile_url(tile)
        headers = {"User-Agent": self.user_agent}

        try:
            response = get_with_retry(url, headers=headers)
        except requests.RequestException as e:
            raise TileFetchFailure(url, str(e)) from e

        if not response.ok:
            raise TileFetchFailure(url, f"HTTP {response.status_code}")

        try:
            image = codec.decode(response.content)
        except (UnidentifiedImageError, OSError) as e:
            raise TileFetchFailure(url, f"Invalid image data: {e}") from e

        logger.debug(f"Fetched tile {tile.zoom}/{tile.x}/{tile.y}")
        return image
