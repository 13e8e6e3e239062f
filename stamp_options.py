"""
Typed, validated options for a stamping run.
"""

from typing import Literal

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from constants import (
    DEFAULT_TILE_SERVER, TILE_WORKERS, MARGIN, MAX_ZOOM,
    MINIMAP_WIDTH, MINIMAP_HEIGHT, MINIMAP_ZOOM, MINIMAP_OPACITY, MINIMAP_BORDER_RADIUS,
    COMPASS_WIDTH, COMPASS_HEIGHT, COMPASS_STYLE, COMPASS_ARROW_COLOR,
    INFO_FONT_SIZE, INFO_FONT_FAMILY, INFO_FONT_COLOR,
    INFO_BG_COLOR, INFO_BG_OPACITY, INFO_BORDER_RADIUS,
)
from errors import InvalidOption


class StampOptions(BaseModel):
    """Everything that shapes a stamped image.

    Immutable; unknown keys and out-of-range values are rejected with
    InvalidOption when the options are built.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    show_compass: bool = True
    show_minimap: bool = True
    show_info: bool = True
    geocode: bool = True
    geocoder: Literal["nominatim", "none"] = "nominatim"

    # Minimap
    minimap_width: int = Field(default=MINIMAP_WIDTH, ge=16, le=2048)
    minimap_height: int = Field(default=MINIMAP_HEIGHT, ge=16, le=2048)
    minimap_zoom: int = Field(default=MINIMAP_ZOOM, ge=0, le=MAX_ZOOM)
    minimap_opacity: float = Field(default=MINIMAP_OPACITY, ge=0.0, le=1.0)
    minimap_border_radius: int = Field(default=MINIMAP_BORDER_RADIUS, ge=0)

    # Compass
    compass_width: int = Field(default=COMPASS_WIDTH, ge=16, le=2048)
    compass_height: int = Field(default=COMPASS_HEIGHT, ge=16, le=2048)
    compass_style: int = Field(default=COMPASS_STYLE, ge=1, le=3)
    compass_arrow_color: str = COMPASS_ARROW_COLOR
    compass_marker: Literal["triangle", "arrow"] = "triangle"

    # Caption bar
    info_font_size: int = Field(default=INFO_FONT_SIZE, ge=4, le=200)
    info_font_family: str = INFO_FONT_FAMILY
    info_font_color: str = INFO_FONT_COLOR
    info_bg_color: str = INFO_BG_COLOR
    info_bg_opacity: float = Field(default=INFO_BG_OPACITY, ge=0.0, le=1.0)
    info_border_radius: int = Field(default=INFO_BORDER_RADIUS, ge=0)

    # General
    margin: int = Field(default=MARGIN, ge=0)
    tile_server: str = DEFAULT_TILE_SERVER
    tile_workers: int = Field(default=TILE_WORKERS, ge=1, le=32)

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidOption(str(e)) from e

    @field_validator("compass_arrow_color", "info_font_color", "info_bg_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        try:
            ImageColor.getrgb(value)
        except ValueError as e:
            raise ValueError(f"invalid color {value!r}") from e
        return value

    @field_validator("tile_server")
    @classmethod
    def _check_tile_server(cls, value: str) -> str:
        missing = [key for key in ("{z}", "{x}", "{y}") if key not in value]
        if missing:
            raise ValueError(f"tile server template is missing {', '.join(missing)}")
        return value

    @property
    def geocoding_enabled(self) -> bool:
        return self.geocode and self.geocoder != "none"
