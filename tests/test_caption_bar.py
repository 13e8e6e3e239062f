"""
Tests for the caption bar overlay.
"""

import pytest
import numpy as np
from PIL import Image

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from caption_bar import CaptionBarOverlay, caption_bar_height, line_height

LINES = ["15 de jan de 2025 23:49:08   90.00° E", "100 Rua XV de Novembro", "Centro / Curitiba, Paraná"]


class TestBarHeight:
    """Tests for bar height computation."""

    def test_three_lines_default_font(self):
        # 3 x (10 + 4) + 2 x 8
        assert caption_bar_height(LINES, 10) == 58

    def test_single_line(self):
        assert caption_bar_height(["x"], 20) == 24 + 16

    def test_no_lines(self):
        assert caption_bar_height([], 10) == 0

    def test_line_height(self):
        assert line_height(16) == 20


class TestCaptionBarOverlay:
    """Tests for caption bar rendering."""

    def test_size(self):
        bar = CaptionBarOverlay(LINES, width=380)
        assert bar.size == (380, 58)

    def test_background_alpha_from_opacity(self):
        bar = CaptionBarOverlay(["x"], width=200, bg_color="#102030", bg_opacity=0.5,
                                border_radius=0)
        image = bar.render()
        assert image.getpixel((199, 39)) == (16, 32, 48, 128)

    def test_text_drawn_opaque_in_font_color(self):
        bar = CaptionBarOverlay(["MMMM"], width=200, font_size=20, font_color="#ff0000")
        pixels = np.asarray(bar.render())
        text_area = pixels[8:28, 14:80]
        red = (text_area[..., 0] == 255) & (text_area[..., 1] == 0) & (text_area[..., 3] == 255)
        assert red.any()

    def test_text_starts_inside_padding(self):
        bar = CaptionBarOverlay(["MMMM"], width=200, font_size=20, font_color="#ff0000",
                                bg_opacity=0.0)
        pixels = np.asarray(bar.render())
        # Nothing drawn left of the horizontal padding
        assert np.all(pixels[:, :14, 3] == 0)

    def test_compose_rounds_corners(self):
        canvas = Image.new("RGBA", (300, 100), (255, 255, 255, 255))
        bar = CaptionBarOverlay(["x"], width=200, bg_opacity=1.0, border_radius=8, position=(10, 10))
        bar.compose(canvas, None)
        assert canvas.getpixel((10, 10)) == (255, 255, 255, 255)
        assert canvas.getpixel((110, 45)) == (0, 0, 0, 255)

    def test_translucent_background_blends(self):
        canvas = Image.new("RGBA", (300, 100), (255, 255, 255, 255))
        bar = CaptionBarOverlay(["x"], width=200, bg_opacity=0.5, border_radius=0, position=(0, 0))
        bar.compose(canvas, None)
        r, g, b, a = canvas.getpixel((199, 39))
        assert abs(r - 127) <= 1
        assert a == 255

    def test_invalid_opacity(self):
        with pytest.raises(ValueError):
            CaptionBarOverlay(["x"], width=100, bg_opacity=1.5)

    def test_corner_radius_does_not_clip_text(self):
        """Rounded corners apply to the background; glyphs near them stay whole."""
        lines = ["MMMM"] * 8

        def red_text(radius):
            bar = CaptionBarOverlay(lines, width=200, font_size=20, font_color="#ff0000",
                                    bg_opacity=1.0, border_radius=radius)
            pixels = np.asarray(bar.render())
            return (pixels[..., 0] == 255) & (pixels[..., 1] == 0) & (pixels[..., 3] == 255)

        square = red_text(0)
        assert square.any()
        # 8 lines make a 208px bar, so the radius clamps to 100 and the
        # corner arcs reach into the first and last lines
        assert np.array_equal(red_text(100), square)

    def test_corner_radius_masks_background(self):
        bar = CaptionBarOverlay(["x"], width=200, bg_opacity=1.0, border_radius=8)
        image = bar.render()
        assert image.getpixel((0, 0))[3] == 0
        assert image.getpixel((100, 20))[3] == 255
