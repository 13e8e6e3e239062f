"""
Overlay abstraction layer and in-process compositing primitives.

Provides the bitmap helpers every renderer builds on (allocation, clipped
copy, alpha "over" compositing, opacity, rounded-corner masks) and a base
class for renderable overlays with consistent positioning and composition
behavior.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

import numpy as np
from PIL import Image, ImageChops, ImageDraw

from constants import COLORS

Box = Tuple[int, int, int, int]


def new_bitmap(width: int, height: int, color: Tuple[int, ...] = COLORS.TRANSPARENT) -> Image.Image:
    """Allocate an RGBA bitmap; dimensions must be strictly positive."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Bitmap dimensions must be positive, got {width}x{height}")
    return Image.new("RGBA", (width, height), color)


def clip_box(dest_size: Tuple[int, int], src_size: Tuple[int, int],
             x: int, y: int) -> Optional[Tuple[Box, Tuple[int, int]]]:
    """
    Intersect a source placed at (x, y) with the destination.

    Args:
        dest_size: (width, height) of the destination
        src_size: (width, height) of the source
        x, y: Top-left of the source in destination coordinates (may be negative)

    Returns:
        (source crop box, destination top-left) of the visible part, or None
        when nothing overlaps
    """
    src_x = max(0, -x)
    src_y = max(0, -y)
    dst_x = max(0, x)
    dst_y = max(0, y)
    width = min(src_size[0] - src_x, dest_size[0] - dst_x)
    height = min(src_size[1] - src_y, dest_size[1] - dst_y)
    if width <= 0 or height <= 0:
        return None
    return (src_x, src_y, src_x + width, src_y + height), (dst_x, dst_y)


def paste_clipped(canvas: Image.Image, source: Image.Image, x: int, y: int) -> bool:
    """Copy source pixels into canvas at (x, y), replacing them. Returns False if skipped."""
    region = clip_box(canvas.size, source.size, x, y)
    if region is None:
        return False
    box, dest = region
    with source.crop(box) as visible:
        canvas.paste(visible, dest)
    return True


def composite_over(canvas: Image.Image, overlay: Image.Image, x: int, y: int) -> bool:
    """
    Alpha-composite overlay onto canvas at (x, y), in place, clipped to bounds.

    Standard "over": out = src * srcA + dst * dstA * (1 - srcA), normalized
    by the resulting alpha. Where srcA is 1 the source replaces the
    destination; where it is 0 the destination is untouched.

    Returns:
        False when the overlay lies entirely outside the canvas
    """
    region = clip_box(canvas.size, overlay.size, x, y)
    if region is None:
        return False
    (left, top, right, bottom), (dst_x, dst_y) = region

    src = np.asarray(overlay.convert("RGBA"), dtype=np.float32)[top:bottom, left:right] / 255.0
    roi_box = (dst_x, dst_y, dst_x + right - left, dst_y + bottom - top)
    dst = np.asarray(canvas.crop(roi_box), dtype=np.float32) / 255.0

    src_a = src[..., 3:4]
    dst_a = dst[..., 3:4]
    out_a = src_a + dst_a * (1.0 - src_a)
    out_rgb = src[..., :3] * src_a + dst[..., :3] * dst_a * (1.0 - src_a)
    out_rgb = np.divide(out_rgb, out_a, out=np.zeros_like(out_rgb), where=out_a > 0)

    blended = np.concatenate([out_rgb, out_a], axis=-1)
    blended = np.clip(np.rint(blended * 255.0), 0, 255).astype(np.uint8)
    canvas.paste(Image.fromarray(blended, "RGBA"), (dst_x, dst_y))
    return True


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """Return a copy with the alpha channel multiplied uniformly by opacity."""
    if not 0.0 <= opacity <= 1.0:
        raise ValueError(f"Opacity must be within [0, 1], got {opacity}")
    pixels = np.array(image.convert("RGBA"), dtype=np.float32)
    pixels[..., 3] = np.rint(pixels[..., 3] * opacity)
    return Image.fromarray(pixels.astype(np.uint8), "RGBA")


def clamp_radius(size: Tuple[int, int], radius: int) -> int:
    return max(0, min(radius, min(size) // 2))


def rounded_mask(size: Tuple[int, int], radius: int) -> Image.Image:
    """Grayscale mask with a filled rounded rectangle covering the whole size."""
    width, height = size
    mask = Image.new("L", (width, height), 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, width - 1, height - 1), radius=clamp_radius(size, radius), fill=255
    )
    return mask


def apply_rounded_corners(image: Image.Image, radius: int) -> Image.Image:
    """Return a copy whose alpha is zero outside a rounded rectangle."""
    result = image.convert("RGBA") if image.mode != "RGBA" else image.copy()
    with rounded_mask(result.size, radius) as mask:
        alpha = ImageChops.multiply(result.getchannel("A"), mask)
    result.putalpha(alpha)
    return result


class Overlay(ABC):
    """
    Abstract base class for all overlay renderers.

    Overlays are bitmaps rendered separately and merged onto the stamped
    photo. Each overlay has a size, a top-left position, an opacity applied
    to its alpha channel and an optional corner radius.

    Subclasses must implement:
        - render(data): Generate the overlay bitmap from input data
        - size: Property returning (width, height) tuple

    Example:
        class BadgeOverlay(Overlay):
            @property
            def size(self) -> Tuple[int, int]:
                return (40, 20)

            def render(self, data) -> Image.Image:
                return new_bitmap(40, 20, (255, 0, 0, 255))

        overlay = BadgeOverlay(position=(10, 10), opacity=0.5)
        canvas = overlay.compose(canvas, context)
    """

    def __init__(
        self,
        position: Tuple[int, int] = (0, 0),
        opacity: float = 1.0,
        border_radius: int = 0,
    ):
        """
        Initialize overlay with position and blending settings.

        Args:
            position: (x, y) top-left position on canvas
            opacity: Multiplier for the overlay's alpha channel (0-1)
            border_radius: Corner radius of the clipping mask, 0 for none
        """
        if not 0.0 <= opacity <= 1.0:
            raise ValueError(f"Opacity must be within [0, 1], got {opacity}")
        self._position = position
        self._opacity = opacity
        self._border_radius = max(0, border_radius)

    @property
    def position(self) -> Tuple[int, int]:
        """Top-left (x, y) position on canvas."""
        return self._position

    @position.setter
    def position(self, value: Tuple[int, int]):
        self._position = value

    @property
    def opacity(self) -> float:
        return self._opacity

    @property
    def border_radius(self) -> int:
        return self._border_radius

    @property
    @abstractmethod
    def size(self) -> Tuple[int, int]:
        """Return (width, height) of the overlay."""
        pass

    @abstractmethod
    def render(self, data: Any) -> Image.Image:
        """
        Render the overlay bitmap from input data.

        Args:
            data: Input data for rendering

        Returns:
            RGBA bitmap of exactly ``size``
        """
        pass

    def compose(self, canvas: Image.Image, data: Any) -> Image.Image:
        """
        Render and blend overlay onto canvas.

        The rendered bitmap is released once merged, whether or not the
        merge succeeds.

        Args:
            canvas: Target RGBA image to overlay onto (modified in place)
            data: Input data passed to render()

        Returns:
            Modified canvas with overlay applied
        """
        overlay_img = self.render(data)
        try:
            self._apply_overlay(canvas, overlay_img)
        finally:
            overlay_img.close()
        return canvas

    def _apply_overlay(self, canvas: Image.Image, overlay: Image.Image) -> None:
        """
        Mask, fade and blend overlay onto canvas at the configured position.

        Args:
            canvas: Target image (modified in-place)
            overlay: Overlay bitmap to blend
        """
        staged = [overlay]
        try:
            if self._border_radius > 0:
                staged.append(apply_rounded_corners(staged[-1], self._border_radius))
            if self._opacity < 1.0:
                staged.append(apply_opacity(staged[-1], self._opacity))
            x, y = self._position
            composite_over(canvas, staged[-1], x, y)
        finally:
            for image in staged[1:]:
                image.close()


class OverlayRegistry:
    """
    Registry for managing multiple overlays.

    Provides ordered rendering of overlays onto a canvas. Registration
    order is composition order, so later overlays are drawn on top.

    Example:
        registry = OverlayRegistry()
        registry.register('minimap', MinimapOverlay(...))
        registry.register('compass', CompassOverlay(...))

        canvas = registry.compose_all(canvas, context)
    """

    def __init__(self):
        self._overlays: dict[str, Overlay] = {}
        self._order: list[str] = []

    def register(self, name: str, overlay: Overlay) -> None:
        """
        Register an overlay with a unique name.

        Args:
            name: Unique identifier for this overlay
            overlay: Overlay instance to register
        """
        if name not in self._overlays:
            self._order.append(name)
        self._overlays[name] = overlay

    def unregister(self, name: str) -> Optional[Overlay]:
        """
        Remove an overlay by name.

        Args:
            name: Identifier of overlay to remove

        Returns:
            The removed overlay, or None if not found
        """
        if name in self._overlays:
            self._order.remove(name)
            return self._overlays.pop(name)
        return None

    def get(self, name: str) -> Optional[Overlay]:
        """Get an overlay by name."""
        return self._overlays.get(name)

    def compose_all(self, canvas: Image.Image, data: Any) -> Image.Image:
        """
        Render all registered overlays onto canvas in registration order.

        Args:
            canvas: Target RGBA image
            data: Input data passed to each overlay's render()

        Returns:
            Modified canvas with all overlays applied
        """
        for name in self._order:
            overlay = self._overlays[name]
            overlay.compose(canvas, data)
        return canvas

    def __len__(self) -> int:
        return len(self._overlays)

    def __iter__(self):
        for name in self._order:
            yield name, self._overlays[name]
