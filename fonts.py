"""
Cached TrueType font loading with system fallbacks.
"""

import logging
from typing import Dict, Optional, Tuple, Union

from PIL import ImageFont

logger = logging.getLogger(__name__)

FALLBACK_FONTS = ("DejaVuSansMono.ttf", "DejaVuSans.ttf", "Arial.ttf", "Helvetica.ttf",
                  "/System/Library/Fonts/Helvetica.ttc")

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# Font cache
_font_cache: Dict[Tuple[Optional[str], int], Font] = {}


def get_font(size: float = 12, family: Optional[str] = None) -> Font:
    """Get a cached font instance.

    Tries ``family`` first, then common system fonts, then Pillow's
    built-in default.
    """
    int_size = max(1, int(size))
    key = (family, int_size)

    if key in _font_cache:
        return _font_cache[key]

    candidates = ((family,) if family else ()) + FALLBACK_FONTS
    font: Optional[Font] = None
    for font_name in candidates:
        try:
            font = ImageFont.truetype(font_name, int_size)
            break
        except (OSError, IOError):
            continue

    if font is None:
        logger.debug(f"No TrueType font found for {family!r}, using default font")
        font = ImageFont.load_default(int_size)

    _font_cache[key] = font
    return font
