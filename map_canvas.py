"""
Minimap canvas composition.

Stitches 256px map tiles into a square canvas whose center pixel is exactly
the GPS position, then marks that position with a pin. Tiles are fetched in
parallel on a bounded thread pool.
"""

import logging
import math
import os
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Optional, Tuple

from PIL import Image, ImageDraw

from constants import (
    COLORS,
    TILE_SIZE, ASSET_DIR, PIN_ASSET, TILE_WORKERS,
    PIN_SIZE, PIN_HEAD_RADIUS, PIN_HEAD_OFFSET, PIN_DOT_RADIUS,
    MINIMAP_WIDTH, MINIMAP_HEIGHT, MINIMAP_ZOOM, MINIMAP_OPACITY, MINIMAP_BORDER_RADIUS,
)
from errors import AssetMissing
from geo_projection import PixelOffset, TileCoordinate, pixel_offset_in_tile, to_tile
from overlays import Overlay, composite_over, new_bitmap, paste_clipped
from stamp_io import codec
from stamp_io.data_models import GeoPoint
from tile_fetcher import TileFetcher

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def tile_window(offset: PixelOffset, size: int) -> Tuple[int, int, int, int]:
    """Signed tile deltas whose footprint can intersect the canvas window.

    The window spans ``offset - size//2`` to ``offset + size//2`` pixels
    around the center tile's origin, in both axes.

    Returns:
        Inclusive (min_dx, max_dx, min_dy, max_dy)
    """
    half = size // 2
    min_dx = math.floor((offset.x - half) / TILE_SIZE)
    max_dx = math.ceil((offset.x + half) / TILE_SIZE)
    min_dy = math.floor((offset.y - half) / TILE_SIZE)
    max_dy = math.ceil((offset.y + half) / TILE_SIZE)
    return min_dx, max_dx, min_dy, max_dy


# =============================================================================
# Pin markers
# =============================================================================

class PinRenderer(ABC):
    """Draws a location pin whose tip sits on a given canvas pixel."""

    @abstractmethod
    def draw(self, canvas: Image.Image, tip_x: int, tip_y: int) -> None:
        pass


class ProceduralPinRenderer(PinRenderer):
    """Teardrop pin made of fill operations only: bordered head, tapering body, dark dot."""

    def draw(self, canvas: Image.Image, tip_x: int, tip_y: int) -> None:
        draw = ImageDraw.Draw(canvas)
        head_y = tip_y - PIN_HEAD_OFFSET
        r = PIN_HEAD_RADIUS

        draw.ellipse((tip_x - r - 1, head_y - r - 1, tip_x + r + 1, head_y + r + 1),
                     fill=COLORS.PIN_BORDER)
        draw.ellipse((tip_x - r + 1, head_y - r + 1, tip_x + r - 1, head_y + r - 1),
                     fill=COLORS.PIN_RED)

        body_top = head_y + r - 2
        draw.polygon([(tip_x - r, body_top), (tip_x + r, body_top), (tip_x, tip_y)],
                     fill=COLORS.PIN_RED)

        d = PIN_DOT_RADIUS
        draw.ellipse((tip_x - d, head_y - d, tip_x + d, head_y + d), fill=COLORS.PIN_DOT)


class SvgPinRenderer(PinRenderer):
    """Rasterized SVG pin, anchored bottom-center on the tip and "over"-blended.

    Falls back to the procedural pin if the asset disappears before drawing.
    """

    def __init__(self, rasterizer, asset_path: str, size: int = PIN_SIZE):
        self.rasterizer = rasterizer
        self.asset_path = asset_path
        self.size = size
        self._fallback = ProceduralPinRenderer()

    def draw(self, canvas: Image.Image, tip_x: int, tip_y: int) -> None:
        try:
            pin = self.rasterizer.rasterize(self.asset_path, self.size)
        except AssetMissing as e:
            logger.warning(f"{e}, drawing procedural pin")
            self._fallback.draw(canvas, tip_x, tip_y)
            return

        try:
            composite_over(canvas, pin, tip_x - pin.width // 2, tip_y - pin.height)
        finally:
            pin.close()


def select_pin_renderer(rasterizer, asset_path: str) -> PinRenderer:
    """SVG pin when a rasterizer is available and the asset exists, else procedural."""
    if rasterizer is not None and os.path.exists(asset_path):
        return SvgPinRenderer(rasterizer, asset_path)
    logger.debug(f"Using procedural pin (asset {asset_path}, rasterizer {rasterizer!r})")
    return ProceduralPinRenderer()


# =============================================================================
# Canvas composer
# =============================================================================

class MapCanvasComposer:
    """Builds square map canvases centered on a GPS position.

    Args:
        tile_fetcher: Object with ``fetch(TileCoordinate) -> Image``
        rasterizer: SVG rasterizer for the pin, or None for the procedural pin
        pin_asset: Path of the pin SVG
        max_workers: Upper bound on concurrent tile downloads
        background: Fill color for areas with no tile (beyond the poles)
    """

    def __init__(
        self,
        tile_fetcher: Optional[TileFetcher] = None,
        rasterizer=None,
        pin_asset: str = os.path.join(ASSET_DIR, PIN_ASSET),
        max_workers: int = TILE_WORKERS,
        background: Tuple[int, int, int, int] = COLORS.WHITE,
    ):
        self.tile_fetcher = tile_fetcher or TileFetcher()
        self.max_workers = max(1, max_workers)
        self.background = background
        self.pin_renderer = select_pin_renderer(rasterizer, pin_asset)

    def compose_tiles(self, point: GeoPoint, size: int, zoom: int,
                      progress_callback: Optional[ProgressCallback] = None) -> Image.Image:
        """Stitch the tiles around ``point`` into a size x size canvas.

        The pixel of ``point`` lands on canvas pixel (size//2, size//2).

        Raises:
            TileFetchFailure: If any tile cannot be fetched
        """
        canvas = new_bitmap(size, size, self.background)
        center = to_tile(point.latitude, point.longitude, zoom)
        offset = pixel_offset_in_tile(point.latitude, point.longitude, zoom)
        min_dx, max_dx, min_dy, max_dy = tile_window(offset, size)

        n = 2 ** zoom
        wanted: Dict[Tuple[int, int], TileCoordinate] = {}
        for dy in range(min_dy, max_dy + 1):
            tile_y = center.y + dy
            if not 0 <= tile_y < n:
                continue
            for dx in range(min_dx, max_dx + 1):
                # Wrap around the antimeridian
                wanted[(dx, dy)] = TileCoordinate((center.x + dx) % n, tile_y, zoom)

        logger.debug(f"Composing {size}px canvas at z{zoom} from {len(wanted)} tiles "
                     f"around {center.x}/{center.y}, offset {offset.x},{offset.y}")

        tiles = self._fetch_all(wanted, progress_callback)
        half = size // 2
        try:
            for (dx, dy), tile in tiles.items():
                dest_x = half - offset.x + dx * TILE_SIZE
                dest_y = half - offset.y + dy * TILE_SIZE
                paste_clipped(canvas, tile, dest_x, dest_y)
        finally:
            for tile in tiles.values():
                tile.close()

        return canvas

    def compose(self, point: GeoPoint, size: int, zoom: int,
                progress_callback: Optional[ProgressCallback] = None) -> Image.Image:
        """Map canvas with the pin tip on the center pixel."""
        canvas = self.compose_tiles(point, size, zoom, progress_callback)
        self.pin_renderer.draw(canvas, size // 2, size // 2)
        return canvas

    def _fetch_all(self, wanted: Dict[Tuple[int, int], TileCoordinate],
                   progress_callback: Optional[ProgressCallback]) -> Dict[Tuple[int, int], Image.Image]:
        results: Dict[Tuple[int, int], Image.Image] = {}
        if not wanted:
            return results

        total = len(wanted)
        workers = min(self.max_workers, total)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.tile_fetcher.fetch, tile): key
                       for key, tile in wanted.items()}
            try:
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
                    if progress_callback:
                        progress_callback(len(results), total)
            except Exception:
                # Wait for fetches already running so every delivered tile gets released
                executor.shutdown(wait=True, cancel_futures=True)
                for future in futures:
                    if future.cancelled() or future.exception() is not None:
                        continue
                    future.result().close()
                raise

        return results


class MinimapOverlay(Overlay):
    """Map overlay centered on the photo's GPS position.

    The canvas is composed at max(width, height) and resized when the
    requested shape is not square.
    """

    def __init__(
        self,
        composer: MapCanvasComposer,
        width: int = MINIMAP_WIDTH,
        height: int = MINIMAP_HEIGHT,
        zoom: int = MINIMAP_ZOOM,
        position: Tuple[int, int] = (0, 0),
        opacity: float = MINIMAP_OPACITY,
        border_radius: int = MINIMAP_BORDER_RADIUS,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        super().__init__(position=position, opacity=opacity, border_radius=border_radius)
        self.composer = composer
        self.width = width
        self.height = height
        self.zoom = zoom
        self.progress_callback = progress_callback

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def render(self, data) -> Image.Image:
        """Render the map for ``data.point``."""
        side = max(self.width, self.height)
        canvas = self.composer.compose(data.point, side, self.zoom, self.progress_callback)
        if canvas.size == self.size:
            return canvas
        try:
            return codec.resize(canvas, self.size)
        finally:
            canvas.close()
