"""
Caption bar overlay: a translucent rounded bar with lines of text.
"""

import logging
from typing import List, Sequence, Tuple

from PIL import Image, ImageColor, ImageDraw

from constants import (
    INFO_FONT_SIZE, INFO_FONT_FAMILY, INFO_FONT_COLOR,
    INFO_BG_COLOR, INFO_BG_OPACITY, INFO_BORDER_RADIUS,
    INFO_LINE_SPACING, INFO_PADDING_V, INFO_PADDING_H,
)
from fonts import get_font
from overlays import Overlay, apply_rounded_corners, new_bitmap

logger = logging.getLogger(__name__)


def line_height(font_size: int) -> int:
    return font_size + INFO_LINE_SPACING


def caption_bar_height(lines: Sequence[str], font_size: int = INFO_FONT_SIZE) -> int:
    """Height of the bar needed for ``lines``; 0 when there is nothing to show."""
    if not lines:
        return 0
    return len(lines) * line_height(font_size) + 2 * INFO_PADDING_V


class CaptionBarOverlay(Overlay):
    """Full-width caption bar.

    The background carries its own translucency (``bg_opacity``) while the
    text stays fully opaque, so the overlay itself is composited at
    opacity 1. Corners are rounded on the background only; text drawn
    afterwards is never clipped by them.

    Args:
        lines: Caption lines, top to bottom
        width: Bar width in pixels
        font_size: Text size; also drives line height
        font_family: TrueType font file name or path
        font_color: Any PIL color string
        bg_color: Any PIL color string
        bg_opacity: Alpha of the background, 0-1
        border_radius: Corner radius of the bar
        position: Top-left of the bar on the photo
    """

    def __init__(
        self,
        lines: List[str],
        width: int,
        font_size: int = INFO_FONT_SIZE,
        font_family: str = INFO_FONT_FAMILY,
        font_color: str = INFO_FONT_COLOR,
        bg_color: str = INFO_BG_COLOR,
        bg_opacity: float = INFO_BG_OPACITY,
        border_radius: int = INFO_BORDER_RADIUS,
        position: Tuple[int, int] = (0, 0),
    ):
        super().__init__(position=position, opacity=1.0)
        if not 0.0 <= bg_opacity <= 1.0:
            raise ValueError(f"Background opacity must be within [0, 1], got {bg_opacity}")
        self.lines = list(lines)
        self.width = width
        self.font_size = font_size
        self.font_family = font_family
        self.font_color = ImageColor.getrgb(font_color)
        self.bg_color = ImageColor.getrgb(bg_color)[:3] + (round(bg_opacity * 255),)
        self.corner_radius = max(0, border_radius)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, caption_bar_height(self.lines, self.font_size))

    def render(self, data=None) -> Image.Image:
        """Draw the bar, then the text on top of it."""
        width, height = self.size
        bar = new_bitmap(width, height, self.bg_color)
        if self.corner_radius:
            background = bar
            bar = apply_rounded_corners(background, self.corner_radius)
            background.close()

        draw = ImageDraw.Draw(bar)
        font = get_font(self.font_size, self.font_family)
        step = line_height(self.font_size)
        for index, line in enumerate(self.lines):
            draw.text((INFO_PADDING_H, INFO_PADDING_V + index * step), line,
                      font=font, fill=self.font_color)

        logger.debug(f"Rendered caption bar {width}x{height} with {len(self.lines)} lines")
        return bar
