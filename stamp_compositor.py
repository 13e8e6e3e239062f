"""
Stamping pipeline.

StampCompositor validates a photo, gathers its location, heading, address
and capture time, and merges the minimap, compass and caption bar onto it
in a fixed order before writing the stamped copy.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from PIL import Image

from constants import ASSET_DIR, PIN_ASSET, STAMPED_SUFFIX, SUPPORTED_FORMATS
from caption_bar import CaptionBarOverlay, caption_bar_height
from caption_layout import layout
from compass import CompassOverlay, CompassRenderer
from errors import NoLocationData, SourceNotFound, UnsupportedFormat
from map_canvas import MapCanvasComposer, MinimapOverlay, ProgressCallback
from overlays import OverlayRegistry
from stamp_io import codec
from stamp_io.data_models import AddressInfo, Direction, GeoPoint, PhotoMetadata
from stamp_io.geocoder import NominatimGeocoder
from stamp_io.metadata import ExifMetadataProvider
from stamp_io.rasterizer import SvgRasterizer
from stamp_options import StampOptions
from tile_fetcher import TileFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StampContext:
    """Per-run data handed to every overlay's render()."""
    point: GeoPoint
    direction: Optional[Direction] = None
    address: Optional[AddressInfo] = None
    taken_at: Union[datetime, str, None] = None
    caption_lines: List[str] = field(default_factory=list)


class StampCompositor:
    """
    Stamps one photo with a minimap, a compass and a caption bar.

    The photo is validated when the compositor is built: it must exist,
    have a supported raster extension and carry GPS coordinates.

    Args:
        image_path: Source photo
        options: Stamping options (defaults when None)
        metadata_provider: Object with ``read(path) -> PhotoMetadata``
        geocoder: Object with ``reverse_geocode(lat, lng)``; defaults to
            Nominatim when geocoding is enabled
        tile_fetcher: Object with ``fetch(TileCoordinate)``
        rasterizer: SVG rasterizer for the pin and compass assets
        asset_dir: Directory holding the bundled SVG assets
        progress_callback: Called with (done, total) as map tiles arrive

    Raises:
        SourceNotFound: The photo does not exist
        UnsupportedFormat: The extension is not a supported raster format
        NoLocationData: The photo has no GPS coordinates
    """

    def __init__(
        self,
        image_path: str,
        options: Optional[StampOptions] = None,
        metadata_provider=None,
        geocoder=None,
        tile_fetcher=None,
        rasterizer=None,
        asset_dir: str = ASSET_DIR,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        self.image_path = os.path.abspath(image_path)
        self.options = options or StampOptions()
        self.asset_dir = asset_dir
        self.progress_callback = progress_callback

        if not os.path.isfile(self.image_path):
            raise SourceNotFound(self.image_path)
        if os.path.splitext(self.image_path)[1].lower() not in SUPPORTED_FORMATS:
            raise UnsupportedFormat(self.image_path)

        provider = metadata_provider or ExifMetadataProvider()
        self.metadata: PhotoMetadata = provider.read(self.image_path)
        if not self.metadata.has_gps:
            raise NoLocationData(self.image_path)

        if geocoder is None and self.options.geocoding_enabled:
            geocoder = NominatimGeocoder()
        self.geocoder = geocoder
        self.tile_fetcher = tile_fetcher or TileFetcher(self.options.tile_server)
        self.rasterizer = rasterizer if rasterizer is not None else SvgRasterizer()
        self.overlay_names: List[str] = []

    def default_output_path(self) -> str:
        """``<base>_stamped<ext>`` next to the source."""
        base, ext = os.path.splitext(self.image_path)
        return f"{base}{STAMPED_SUFFIX}{ext}"

    def stamp(self, output_path: Optional[str] = None) -> str:
        """
        Stamp the photo and write the result.

        The output keeps the source's container format and EXIF block.

        Args:
            output_path: Destination, defaults to default_output_path()

        Returns:
            Absolute path of the written file

        Raises:
            TileFetchFailure: If a map tile cannot be fetched
        """
        output_path = os.path.abspath(output_path or self.default_output_path())

        image, fmt, exif = codec.open_oriented(self.image_path)
        try:
            self.render(image)
            codec.save(image, output_path, fmt, exif)
        finally:
            image.close()

        logger.info(f"Stamped image written to {output_path}")
        return output_path

    def render(self, image: Image.Image) -> Image.Image:
        """Merge all enabled overlays onto an oriented RGBA image, in place."""
        context = self.build_context(image.size)
        registry = self.build_registry(image.size, context.caption_lines)
        self.overlay_names = [name for name, _ in registry]
        logger.debug(f"Composing overlays: {self.overlay_names}")
        return registry.compose_all(image, context)

    def build_context(self, image_size: Tuple[int, int]) -> StampContext:
        point = self.metadata.gps_point
        direction = self.metadata.direction

        address = None
        if self.options.geocoding_enabled and self.geocoder is not None:
            address = self.geocoder.reverse_geocode(point.latitude, point.longitude)

        lines: List[str] = []
        if self.options.show_info:
            width, height = image_size
            lines = layout(direction, address, self.metadata.taken_at, width > height)

        return StampContext(
            point=point,
            direction=direction,
            address=address,
            taken_at=self.metadata.taken_at,
            caption_lines=lines,
        )

    def build_registry(self, image_size: Tuple[int, int], lines: List[str]) -> OverlayRegistry:
        """
        Register the enabled overlays in composition order.

        Minimap first (bottom-left, lifted above the caption bar), then the
        compass (top-left), then the caption bar (bottom, full width inside
        the margins).
        """
        opts = self.options
        width, height = image_size
        margin = opts.margin
        registry = OverlayRegistry()

        bar_height = caption_bar_height(lines, opts.info_font_size) if opts.show_info else 0

        if opts.show_minimap:
            lift = bar_height + margin if bar_height else 0
            composer = MapCanvasComposer(
                tile_fetcher=self.tile_fetcher,
                rasterizer=self.rasterizer,
                pin_asset=os.path.join(self.asset_dir, PIN_ASSET),
                max_workers=opts.tile_workers,
            )
            registry.register("minimap", MinimapOverlay(
                composer,
                width=opts.minimap_width,
                height=opts.minimap_height,
                zoom=opts.minimap_zoom,
                position=(margin, height - opts.minimap_height - margin - lift),
                opacity=opts.minimap_opacity,
                border_radius=opts.minimap_border_radius,
                progress_callback=self.progress_callback,
            ))

        if opts.show_compass:
            renderer = CompassRenderer(
                width=opts.compass_width,
                height=opts.compass_height,
                style=opts.compass_style,
                arrow_color=opts.compass_arrow_color,
                marker=opts.compass_marker,
                rasterizer=self.rasterizer,
                asset_dir=self.asset_dir,
            )
            registry.register("compass", CompassOverlay(renderer, position=(margin, margin)))

        bar_width = width - 2 * margin
        if bar_height and bar_width > 0:
            registry.register("caption", CaptionBarOverlay(
                lines,
                width=bar_width,
                font_size=opts.info_font_size,
                font_family=opts.info_font_family,
                font_color=opts.info_font_color,
                bg_color=opts.info_bg_color,
                bg_opacity=opts.info_bg_opacity,
                border_radius=opts.info_border_radius,
                position=(margin, height - bar_height - margin),
            ))

        return registry
