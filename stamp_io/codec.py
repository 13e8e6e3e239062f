"""
Pillow-backed image codec.

Decoding, encoding and the few raster primitives (resize, rotate) the
stamping pipeline needs. Every decoded bitmap is returned in RGBA mode.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, ImageOps

logger = logging.getLogger(__name__)

# Containers that cannot store an alpha channel
_OPAQUE_FORMATS = frozenset({"JPEG", "BMP", "GIF"})
_EXIF_FORMATS = frozenset({"JPEG", "PNG", "WEBP", "TIFF"})


def decode(data: bytes) -> Image.Image:
    """Decode encoded image bytes into an RGBA bitmap."""
    with Image.open(io.BytesIO(data)) as image:
        return image.convert("RGBA")


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    """Encode a bitmap into the given container format."""
    buffer = io.BytesIO()
    if fmt.upper() in _OPAQUE_FORMATS and image.mode != "RGB":
        image = image.convert("RGB")
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def open_oriented(path: str) -> Tuple[Image.Image, str, Optional[bytes]]:
    """
    Open a photo and apply its EXIF orientation.

    Returns:
        (RGBA bitmap, container format name, EXIF bytes with the
        orientation tag reset, or None when the file has no EXIF)
    """
    with Image.open(path) as source:
        fmt = source.format or "PNG"
        oriented = ImageOps.exif_transpose(source)

    exif = oriented.info.get("exif")
    if oriented.mode != "RGBA":
        converted = oriented.convert("RGBA")
        oriented.close()
        oriented = converted

    logger.debug(f"Opened {path}: {fmt} {oriented.width}x{oriented.height}")
    return oriented, fmt, exif


def save(image: Image.Image, path: str, fmt: str, exif: Optional[bytes] = None) -> None:
    """Write a bitmap to disk in the given container format."""
    fmt = fmt.upper()
    kwargs = {}
    if exif and fmt in _EXIF_FORMATS:
        kwargs["exif"] = exif
    if fmt == "JPEG":
        kwargs["quality"] = 95

    output = image.convert("RGB") if fmt in _OPAQUE_FORMATS else image
    try:
        output.save(path, format=fmt, **kwargs)
    finally:
        if output is not image:
            output.close()


def resize(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Resize to exactly (width, height), ignoring aspect ratio."""
    return image.resize(size, Image.Resampling.LANCZOS)


def rotate(image: Image.Image, degrees: float) -> Image.Image:
    """Rotate counter-clockwise about the center, expanding the canvas.

    Uncovered corners stay fully transparent for RGBA input.
    """
    return image.rotate(degrees, resample=Image.Resampling.BICUBIC, expand=True)
