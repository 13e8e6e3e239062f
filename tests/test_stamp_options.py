"""
Tests for StampOptions validation.
"""

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from errors import InvalidOption, StampError
from stamp_options import StampOptions


class TestDefaults:
    """Tests for default option values."""

    def test_defaults(self):
        options = StampOptions()
        assert options.show_compass and options.show_minimap and options.show_info
        assert options.geocode is True
        assert options.geocoder == "nominatim"
        assert (options.minimap_width, options.minimap_height) == (150, 150)
        assert options.minimap_zoom == 16
        assert options.minimap_opacity == 0.6
        assert options.minimap_border_radius == 8
        assert (options.compass_width, options.compass_height) == (90, 90)
        assert options.compass_style == 1
        assert options.compass_arrow_color == "#00d4d4"
        assert options.compass_marker == "triangle"
        assert options.info_font_size == 10
        assert options.info_bg_opacity == 0.5
        assert options.margin == 10
        assert options.tile_server == "https://tile.openstreetmap.org/{z}/{x}/{y}.png"

    def test_frozen(self):
        options = StampOptions()
        with pytest.raises(Exception):
            options.margin = 20


class TestValidation:
    """Tests for rejected values."""

    @pytest.mark.parametrize("field,value", [
        ("minimap_zoom", 20),
        ("minimap_zoom", -1),
        ("minimap_opacity", 1.1),
        ("minimap_opacity", -0.1),
        ("minimap_width", 0),
        ("minimap_border_radius", -1),
        ("compass_style", 4),
        ("compass_style", 0),
        ("compass_marker", "star"),
        ("info_bg_opacity", 2.0),
        ("info_font_size", 0),
        ("margin", -5),
        ("geocoder", "google"),
        ("tile_workers", 0),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(InvalidOption):
            StampOptions(**{field: value})

    def test_unknown_key_rejected(self):
        with pytest.raises(InvalidOption, match="minimap_colour"):
            StampOptions(minimap_colour="red")

    @pytest.mark.parametrize("color", ["#gg0000", "not-a-color", ""])
    def test_bad_colors_rejected(self, color):
        with pytest.raises(InvalidOption):
            StampOptions(info_font_color=color)

    @pytest.mark.parametrize("color", ["#fff", "#00d4d4", "red", "rgb(10,20,30)"])
    def test_good_colors_accepted(self, color):
        assert StampOptions(compass_arrow_color=color).compass_arrow_color == color

    def test_tile_template_needs_placeholders(self):
        with pytest.raises(InvalidOption, match="{y}"):
            StampOptions(tile_server="https://tiles.test/{z}/{x}.png")

    def test_invalid_option_is_value_error(self):
        with pytest.raises(ValueError):
            StampOptions(margin=-1)
        assert issubclass(InvalidOption, StampError)


class TestGeocodingEnabled:
    def test_enabled_by_default(self):
        assert StampOptions().geocoding_enabled

    def test_disabled_by_flag(self):
        assert not StampOptions(geocode=False).geocoding_enabled

    def test_disabled_by_none_geocoder(self):
        assert not StampOptions(geocoder="none").geocoding_enabled
