"""
Constants for the geostamp photo stamper.

Centralized definitions for projection, network, overlay layout and colors.
"""

import os
from typing import Tuple
from dataclasses import dataclass


# =============================================================================
# Colors (RGBA format for Pillow)
# =============================================================================

@dataclass(frozen=True)
class Colors:
    """Common colors in RGBA format."""
    WHITE: Tuple[int, int, int, int] = (255, 255, 255, 255)
    BLACK: Tuple[int, int, int, int] = (0, 0, 0, 255)
    TRANSPARENT: Tuple[int, int, int, int] = (0, 0, 0, 0)

    # Pin marker (procedural fallback)
    PIN_RED: Tuple[int, int, int, int] = (220, 53, 69, 255)
    PIN_BORDER: Tuple[int, int, int, int] = (90, 0, 0, 255)
    PIN_DOT: Tuple[int, int, int, int] = (14, 35, 46, 255)

    # Compass (procedural fallback)
    COMPASS_FACE: Tuple[int, int, int, int] = (30, 30, 30, 220)
    COMPASS_RIM: Tuple[int, int, int, int] = (60, 60, 60, 255)
    COMPASS_LABEL: Tuple[int, int, int, int] = (255, 255, 255, 255)


COLORS = Colors()


# =============================================================================
# Web Mercator / Tiles
# =============================================================================

TILE_SIZE = 256
MAX_ZOOM = 19
MAX_LATITUDE = 85.05112878  # Web Mercator cut-off, keeps tan() finite

CARDINALS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


# =============================================================================
# Network
# =============================================================================

VERSION = "0.3.0"
USER_AGENT = f"geostamp/{VERSION}"

DEFAULT_TILE_SERVER = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/reverse"

CONNECT_TIMEOUT = 10.0  # seconds
READ_TIMEOUT = 10.0     # seconds
HTTP_RETRIES = 2        # additional attempts after the first
RETRY_BACKOFF = 1.0     # fixed sleep between attempts, seconds


# =============================================================================
# Assets
# =============================================================================

ASSET_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "stamp_io", "assets")
PIN_ASSET = "map-pin.svg"
COMPASS_ASSETS = {
    1: "compass-style1.svg",
    2: "compass-style2.svg",
    3: "compass-style3.svg",
}
ASSET_DPI = 300


# =============================================================================
# Minimap
# =============================================================================

MINIMAP_WIDTH = 150
MINIMAP_HEIGHT = 150
MINIMAP_ZOOM = 16
MINIMAP_OPACITY = 0.6
MINIMAP_BORDER_RADIUS = 8
TILE_WORKERS = 8

PIN_SIZE = 32          # Rasterized pin asset, pixels
PIN_HEAD_RADIUS = 8    # Procedural pin
PIN_HEAD_OFFSET = 20   # Procedural pin head center above the tip
PIN_DOT_RADIUS = 4


# =============================================================================
# Compass
# =============================================================================

COMPASS_WIDTH = 90
COMPASS_HEIGHT = 90
COMPASS_STYLE = 1
COMPASS_ARROW_COLOR = "#00d4d4"

# Fixed marker geometry as fractions of the compass size
MARKER_TOP_RATIO = 0.12
MARKER_HALF_WIDTH_RATIO = 0.06

COMPASS_LABEL_SIZE = 12
COMPASS_LABEL_INSET = 8


# =============================================================================
# Caption Bar
# =============================================================================

INFO_FONT_SIZE = 10
INFO_FONT_FAMILY = "DejaVuSansMono.ttf"
INFO_FONT_COLOR = "#ffffff"
INFO_BG_COLOR = "#000000"
INFO_BG_OPACITY = 0.5
INFO_BORDER_RADIUS = 8
INFO_LINE_SPACING = 4   # Added to font size to get the line height
INFO_PADDING_V = 8
INFO_PADDING_H = 14

DIRECTION_SEPARATOR = "   "
LOCALITY_SEPARATOR = " / "

# Brazilian month abbreviations used in captions
MONTHS_PT = ("jan", "fev", "mar", "abr", "mai", "jun",
             "jul", "ago", "set", "out", "nov", "dez")


# =============================================================================
# General
# =============================================================================

MARGIN = 10
STAMPED_SUFFIX = "_stamped"

SUPPORTED_FORMATS = frozenset({
    ".jpg", ".jpeg", ".png", ".tif", ".tiff", ".webp", ".bmp", ".gif",
})
