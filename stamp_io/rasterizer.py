"""
SVG asset rasterization via cairosvg.
"""

import io
import logging
import os

from PIL import Image

from constants import ASSET_DPI
from errors import AssetMissing

logger = logging.getLogger(__name__)


class SvgRasterizer:
    """Renders SVG assets into square RGBA bitmaps with a transparent background."""

    def __init__(self, dpi: int = ASSET_DPI):
        self.dpi = dpi

    def rasterize(self, svg_path: str, size: int) -> Image.Image:
        """
        Rasterize an SVG file into a size x size bitmap.

        Raises:
            AssetMissing: If the SVG file does not exist or cannot be rendered
                (malformed SVG, cairo library unavailable)
        """
        if not os.path.exists(svg_path):
            raise AssetMissing(svg_path)

        try:
            # cairosvg needs the native cairo library; only load it when an asset is drawn
            import cairosvg

            png_bytes = cairosvg.svg2png(
                url=svg_path,
                output_width=size,
                output_height=size,
                dpi=self.dpi,
            )
            with Image.open(io.BytesIO(png_bytes)) as rendered:
                bitmap = rendered.convert("RGBA")
        except (ImportError, OSError, ValueError, SyntaxError) as e:
            # xml ParseError is a SyntaxError; UnidentifiedImageError is an OSError
            raise AssetMissing(svg_path, str(e) or type(e).__name__) from e

        logger.debug(f"Rasterized {os.path.basename(svg_path)} at {size}px")
        return bitmap
