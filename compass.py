"""
Compass overlay rendering.

The compass face rotates and the marker stays fixed: the marker always
points up (the camera's heading) and the dial is turned so that the
heading's label sits under it. Heading 90 (East) therefore shows "E" at
the top.
"""

import logging
import math
import os
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from PIL import Image, ImageColor, ImageDraw

from constants import (
    COLORS,
    ASSET_DIR, COMPASS_ASSETS,
    COMPASS_WIDTH, COMPASS_HEIGHT, COMPASS_STYLE, COMPASS_ARROW_COLOR,
    MARKER_TOP_RATIO, MARKER_HALF_WIDTH_RATIO,
    COMPASS_LABEL_SIZE, COMPASS_LABEL_INSET,
)
from errors import AssetMissing
from fonts import get_font
from overlays import Overlay, composite_over, new_bitmap
from stamp_io import codec
from stamp_io.data_models import Direction

logger = logging.getLogger(__name__)

MARKERS = ("triangle", "arrow")


def to_rgba(color: str) -> Tuple[int, int, int, int]:
    """Parse any PIL color string into an RGBA tuple."""
    rgb = ImageColor.getrgb(color)
    return rgb if len(rgb) == 4 else (*rgb, 255)


def draw_marker(canvas: Image.Image, marker: str, color: Tuple[int, int, int, int]) -> None:
    """Draw the fixed up-pointing heading marker on a square dial.

    ``triangle`` is an elongated isosceles triangle from near the top edge
    to just below the center. ``arrow`` is a shaft with an arrowhead over
    the same span.
    """
    size = canvas.width
    center = size // 2
    top = round(size * MARKER_TOP_RATIO)
    bottom = center + 2
    half_width = round(size * MARKER_HALF_WIDTH_RATIO)
    draw = ImageDraw.Draw(canvas)

    if marker == "arrow":
        head_base = top + 2 * half_width + 1
        shaft = max(1, half_width // 3)
        draw.rectangle((center - shaft, head_base, center + shaft, bottom), fill=color)
        draw.polygon([(center, top), (center - half_width, head_base),
                      (center + half_width, head_base)], fill=color)
    else:
        draw.polygon([(center, top), (center - half_width, bottom),
                      (center + half_width, bottom)], fill=color)


class CompassFace(ABC):
    """Renders a square compass dial oriented for a heading."""

    @abstractmethod
    def render(self, size: int, direction: Optional[Direction]) -> Image.Image:
        pass


class ProceduralCompassFace(CompassFace):
    """Dark translucent disc with N/S/E/W labels and a heading line."""

    def __init__(self, arrow_color: str = COMPASS_ARROW_COLOR):
        self.arrow_color = to_rgba(arrow_color)

    def render(self, size: int, direction: Optional[Direction]) -> Image.Image:
        canvas = new_bitmap(size, size)
        draw = ImageDraw.Draw(canvas)
        center = size // 2

        draw.ellipse((3, 3, size - 3, size - 3), fill=COLORS.COMPASS_FACE,
                     outline=COLORS.COMPASS_RIM, width=2)

        font = get_font(COMPASS_LABEL_SIZE)
        inset = COMPASS_LABEL_INSET
        for label in ("N", "S", "E", "W"):
            left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
            w, h = right - left, bottom - top
            x, y = {
                "N": (center - w // 2, inset),
                "S": (center - w // 2, size - inset - h),
                "E": (size - inset - w, center - h // 2),
                "W": (inset, center - h // 2),
            }[label]
            draw.text((x - left, y - top), label, font=font, fill=COLORS.COMPASS_LABEL)

        if direction is not None:
            theta = math.radians(direction.degrees - 90)
            length = size // 3
            end_x = round(center + length * math.cos(theta))
            end_y = round(center + length * math.sin(theta))
            draw.line((center, center, end_x, end_y), fill=self.arrow_color, width=3)

        return canvas


class SvgCompassFace(CompassFace):
    """Rasterized SVG dial, rotated under a fixed marker.

    Degrades to the procedural face when the asset cannot be rasterized.
    """

    def __init__(self, rasterizer, asset_path: str,
                 arrow_color: str = COMPASS_ARROW_COLOR, marker: str = "triangle"):
        self.rasterizer = rasterizer
        self.asset_path = asset_path
        self.arrow_color = to_rgba(arrow_color)
        self.marker = marker
        self._fallback = ProceduralCompassFace(arrow_color)

    def render(self, size: int, direction: Optional[Direction]) -> Image.Image:
        try:
            face = self.rasterizer.rasterize(self.asset_path, size)
        except AssetMissing as e:
            logger.warning(f"{e}, drawing procedural compass")
            return self._fallback.render(size, direction)

        canvas = new_bitmap(size, size)
        try:
            composite_over(canvas, face, (size - face.width) // 2, (size - face.height) // 2)
        finally:
            face.close()

        if direction is not None:
            canvas = self._rotate(canvas, direction.degrees)

        draw_marker(canvas, self.marker, self.arrow_color)
        return canvas

    @staticmethod
    def _rotate(canvas: Image.Image, degrees: float) -> Image.Image:
        """Turn the dial counter-clockwise by the heading and crop back to size."""
        size = canvas.width
        rotated = codec.rotate(canvas, degrees)
        canvas.close()
        left = (rotated.width - size) // 2
        top = (rotated.height - size) // 2
        try:
            return rotated.crop((left, top, left + size, top + size))
        finally:
            rotated.close()


def select_compass_face(style: int, rasterizer, asset_dir: str = ASSET_DIR,
                        arrow_color: str = COMPASS_ARROW_COLOR,
                        marker: str = "triangle") -> CompassFace:
    """SVG face when the style's asset exists and a rasterizer is given, else procedural."""
    if style not in COMPASS_ASSETS:
        raise ValueError(f"Unknown compass style {style}, expected one of {sorted(COMPASS_ASSETS)}")
    if marker not in MARKERS:
        raise ValueError(f"Unknown compass marker {marker!r}, expected one of {MARKERS}")

    asset_path = os.path.join(asset_dir, COMPASS_ASSETS[style])
    if rasterizer is not None and os.path.exists(asset_path):
        return SvgCompassFace(rasterizer, asset_path, arrow_color, marker)
    logger.debug(f"Using procedural compass (asset {asset_path}, rasterizer {rasterizer!r})")
    return ProceduralCompassFace(arrow_color)


class CompassRenderer:
    """Renders compass bitmaps of a fixed size.

    The dial is drawn as a square of side max(width, height), then resized
    to width x height when those differ.
    """

    def __init__(
        self,
        width: int = COMPASS_WIDTH,
        height: int = COMPASS_HEIGHT,
        style: int = COMPASS_STYLE,
        arrow_color: str = COMPASS_ARROW_COLOR,
        marker: str = "triangle",
        rasterizer=None,
        asset_dir: str = ASSET_DIR,
    ):
        self.width = width
        self.height = height
        self.face = select_compass_face(style, rasterizer, asset_dir, arrow_color, marker)

    def render(self, direction: Optional[Direction]) -> Image.Image:
        side = max(self.width, self.height)
        dial = self.face.render(side, direction)
        if dial.size == (self.width, self.height):
            return dial
        try:
            return codec.resize(dial, (self.width, self.height))
        finally:
            dial.close()


class CompassOverlay(Overlay):
    """Registry adapter for CompassRenderer; renders ``data.direction``."""

    def __init__(self, renderer: CompassRenderer, position: Tuple[int, int] = (0, 0),
                 opacity: float = 1.0):
        super().__init__(position=position, opacity=opacity)
        self.renderer = renderer

    @property
    def size(self) -> Tuple[int, int]:
        return (self.renderer.width, self.renderer.height)

    def render(self, data) -> Image.Image:
        return self.renderer.render(data.direction)
