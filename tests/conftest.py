"""
Pytest configuration and fixtures for geostamp tests.

Provides fakes for the network and asset collaborators (tile server,
rasterizer, geocoder, metadata reader) and sample photos on disk.
"""

import pytest
import numpy as np
from typing import List, Optional
from unittest.mock import MagicMock
from PIL import Image

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from constants import TILE_SIZE
from errors import AssetMissing, TileFetchFailure
from geo_projection import TileCoordinate
from stamp_io.data_models import AddressInfo, Direction, GeoPoint, PhotoMetadata


class FakeTileFetcher:
    """Tile source that encodes positions into pixel colors.

    Every tile pixel is (local_x, local_y, (tile.x + tile.y) % 256, 255), so
    a canvas pixel tells which tile and which tile pixel it came from.
    """

    def __init__(self):
        self.fetched: List[TileCoordinate] = []

    def fetch(self, tile: TileCoordinate) -> Image.Image:
        self.fetched.append(tile)
        ys, xs = np.mgrid[0:TILE_SIZE, 0:TILE_SIZE]
        pixels = np.zeros((TILE_SIZE, TILE_SIZE, 4), dtype=np.uint8)
        pixels[..., 0] = xs
        pixels[..., 1] = ys
        pixels[..., 2] = (tile.x + tile.y) % 256
        pixels[..., 3] = 255
        return Image.fromarray(pixels, "RGBA")


class FailingTileFetcher:
    """Tile source whose every fetch fails."""

    def fetch(self, tile: TileCoordinate) -> Image.Image:
        raise TileFetchFailure(f"https://tiles.test/{tile.zoom}/{tile.x}/{tile.y}.png", "HTTP 503")


class FakeRasterizer:
    """Rasterizer drawing a solid square instead of the SVG.

    Raises AssetMissing like the real one when the file does not exist.
    """

    def __init__(self, color=(255, 0, 255, 255)):
        self.color = color
        self.calls = []

    def rasterize(self, svg_path: str, size: int) -> Image.Image:
        self.calls.append((svg_path, size))
        if not os.path.exists(svg_path):
            raise AssetMissing(svg_path)
        return Image.new("RGBA", (size, size), self.color)


class FakeMetadataProvider:
    def __init__(self, metadata: PhotoMetadata):
        self.metadata = metadata
        self.paths: List[str] = []

    def read(self, path: str) -> PhotoMetadata:
        self.paths.append(path)
        return self.metadata


class FakeGeocoder:
    def __init__(self, address: Optional[AddressInfo] = None):
        self.address = address
        self.calls = []

    def reverse_geocode(self, lat: float, lng: float) -> Optional[AddressInfo]:
        self.calls.append((lat, lng))
        return self.address


@pytest.fixture
def tile_fetcher():
    """Fixture providing a position-encoding fake tile source."""
    return FakeTileFetcher()


@pytest.fixture
def failing_tile_fetcher():
    return FailingTileFetcher()


@pytest.fixture
def rasterizer():
    """Fixture providing a fake SVG rasterizer."""
    return FakeRasterizer()


@pytest.fixture
def sample_point() -> GeoPoint:
    """Fixture providing a GPS position (Curitiba, Brazil)."""
    return GeoPoint(latitude=-25.4284, longitude=-49.2733)


@pytest.fixture
def sample_address() -> AddressInfo:
    return AddressInfo(
        street="Rua XV de Novembro",
        number="100",
        neighborhood="Centro",
        city="Curitiba",
        state="Paraná",
        country="Brasil",
        postcode="80020-310",
    )


@pytest.fixture
def sample_metadata(sample_point) -> PhotoMetadata:
    """Fixture providing metadata with position, heading and capture time."""
    return PhotoMetadata(
        gps_point=sample_point,
        direction=Direction(degrees=90.0),
        taken_at="2025:01:15 23:49:08",
    )


@pytest.fixture
def metadata_provider(sample_metadata):
    return FakeMetadataProvider(sample_metadata)


@pytest.fixture
def geocoder(sample_address):
    return FakeGeocoder(sample_address)


@pytest.fixture
def sample_photo(tmp_path) -> str:
    """Fixture providing a 400x300 mid-gray JPEG on disk."""
    path = tmp_path / "photo.jpg"
    Image.new("RGB", (400, 300), (128, 128, 128)).save(path, format="JPEG")
    return str(path)


@pytest.fixture
def sample_png(tmp_path) -> str:
    """Fixture providing a 300x400 (portrait) mid-gray PNG on disk."""
    path = tmp_path / "photo.png"
    Image.new("RGB", (300, 400), (128, 128, 128)).save(path, format="PNG")
    return str(path)


@pytest.fixture
def canvas():
    """Fixture providing an opaque black 200x200 RGBA canvas."""
    return Image.new("RGBA", (200, 200), (0, 0, 0, 255))


@pytest.fixture
def mock_response():
    """Fixture providing a mock requests.Response factory."""
    def make(status_code: int = 200, content: bytes = b"", json_data=None):
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.content = content
        if json_data is not None:
            response.json.return_value = json_data
        else:
            response.json.side_effect = ValueError("No JSON object could be decoded")
        return response
    return make
