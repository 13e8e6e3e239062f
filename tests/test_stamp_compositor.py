"""
Tests for the stamping pipeline.

Runs the compositor end to end on photos in tmp_path with fake tile,
geocoding and rasterizing collaborators.
"""

import pytest
from unittest.mock import patch
from PIL import Image

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from errors import NoLocationData, SourceNotFound, TileFetchFailure, UnsupportedFormat
from stamp_compositor import StampCompositor
from stamp_io.data_models import PhotoMetadata
from stamp_io.rasterizer import SvgRasterizer
from stamp_options import StampOptions

from conftest import FakeGeocoder, FakeMetadataProvider


@pytest.fixture
def make_compositor(metadata_provider, geocoder, tile_fetcher, rasterizer):
    """Factory for compositors wired to the fake collaborators."""
    def make(path, **kwargs):
        kwargs.setdefault("metadata_provider", metadata_provider)
        kwargs.setdefault("geocoder", geocoder)
        kwargs.setdefault("tile_fetcher", tile_fetcher)
        kwargs.setdefault("rasterizer", rasterizer)
        return StampCompositor(path, **kwargs)
    return make


class TestValidation:
    """Tests for checks made when the compositor is built."""

    def test_missing_file(self, make_compositor, tmp_path):
        with pytest.raises(SourceNotFound):
            make_compositor(str(tmp_path / "missing.jpg"))

    def test_missing_file_is_file_not_found(self, make_compositor, tmp_path):
        with pytest.raises(FileNotFoundError):
            make_compositor(str(tmp_path / "missing.jpg"))

    def test_unsupported_extension(self, make_compositor, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(UnsupportedFormat, match=".txt"):
            make_compositor(str(path))

    def test_extension_case_insensitive(self, make_compositor, tmp_path):
        path = tmp_path / "PHOTO.JPG"
        Image.new("RGB", (40, 30)).save(path, format="JPEG")
        assert make_compositor(str(path)).image_path.endswith("PHOTO.JPG")

    def test_no_gps(self, make_compositor, sample_photo):
        with pytest.raises(NoLocationData):
            make_compositor(sample_photo, metadata_provider=FakeMetadataProvider(PhotoMetadata()))

    def test_metadata_read_from_absolute_path(self, make_compositor, metadata_provider, sample_photo):
        make_compositor(sample_photo)
        assert metadata_provider.paths == [os.path.abspath(sample_photo)]


class TestOutputPath:
    def test_default_output_path(self, make_compositor, sample_photo):
        compositor = make_compositor(sample_photo)
        expected = os.path.join(os.path.dirname(sample_photo), "photo_stamped.jpg")
        assert compositor.default_output_path() == expected

    def test_stamp_writes_default_path(self, make_compositor, sample_photo):
        written = make_compositor(sample_photo).stamp()
        assert written.endswith("photo_stamped.jpg")
        assert os.path.isfile(written)

    def test_stamp_explicit_path(self, make_compositor, sample_photo, tmp_path):
        target = tmp_path / "out"
        target.mkdir()
        written = make_compositor(sample_photo).stamp(str(target / "result.jpg"))
        assert written == str(target / "result.jpg")


class TestRegistry:
    """Tests for overlay order and placement."""

    def test_order_and_positions_landscape(self, make_compositor, sample_photo):
        compositor = make_compositor(sample_photo)
        context = compositor.build_context((400, 300))
        registry = compositor.build_registry((400, 300), context.caption_lines)

        assert [name for name, _ in registry] == ["minimap", "compass", "caption"]
        # Three caption lines at font size 10 make a 58px bar
        assert registry.get("caption").position == (10, 232)
        assert registry.get("caption").size == (380, 58)
        # Minimap sits above the bar
        assert registry.get("minimap").position == (10, 72)
        assert registry.get("compass").position == (10, 10)

    def test_minimap_not_lifted_without_caption(self, make_compositor, sample_photo):
        compositor = make_compositor(sample_photo, options=StampOptions(show_info=False))
        registry = compositor.build_registry((400, 300), [])
        assert "caption" not in [name for name, _ in registry]
        assert registry.get("minimap").position == (10, 140)

    def test_empty_caption_skipped(self, make_compositor, sample_photo, sample_point):
        provider = FakeMetadataProvider(PhotoMetadata(gps_point=sample_point))
        compositor = make_compositor(sample_photo, metadata_provider=provider,
                                     geocoder=FakeGeocoder(None))
        context = compositor.build_context((400, 300))
        assert context.caption_lines == []
        registry = compositor.build_registry((400, 300), context.caption_lines)
        assert [name for name, _ in registry] == ["minimap", "compass"]

    def test_disabled_overlays(self, make_compositor, sample_photo):
        options = StampOptions(show_minimap=False, show_compass=False)
        compositor = make_compositor(sample_photo, options=options)
        registry = compositor.build_registry((400, 300), ["line"])
        assert [name for name, _ in registry] == ["caption"]

    def test_custom_margin(self, make_compositor, sample_photo):
        compositor = make_compositor(sample_photo, options=StampOptions(margin=20))
        registry = compositor.build_registry((400, 300), ["line"])
        assert registry.get("compass").position == (20, 20)
        assert registry.get("caption").size[0] == 360


class TestContext:
    """Tests for per-run data gathering."""

    def test_geocoded_caption(self, make_compositor, sample_photo, geocoder, sample_point):
        context = make_compositor(sample_photo).build_context((400, 300))
        assert geocoder.calls == [(sample_point.latitude, sample_point.longitude)]
        assert context.caption_lines == [
            "15 de jan de 2025 23:49:08   90.00° E",
            "100 Rua XV de Novembro",
            "Centro / Curitiba, Paraná",
        ]

    @pytest.mark.parametrize("options", [
        StampOptions(geocode=False),
        StampOptions(geocoder="none"),
    ])
    def test_geocoding_disabled(self, make_compositor, sample_photo, geocoder, options):
        context = make_compositor(sample_photo, options=options).build_context((400, 300))
        assert geocoder.calls == []
        assert context.address is None
        assert context.caption_lines == ["15 de jan de 2025 23:49:08   90.00° E"]

    def test_no_default_geocoder_when_disabled(self, metadata_provider, sample_photo):
        compositor = StampCompositor(sample_photo, StampOptions(geocode=False),
                                     metadata_provider=metadata_provider)
        assert compositor.geocoder is None

    def test_failed_geocoding_keeps_other_lines(self, make_compositor, sample_photo):
        compositor = make_compositor(sample_photo, geocoder=FakeGeocoder(None))
        context = compositor.build_context((400, 300))
        assert context.caption_lines == ["15 de jan de 2025 23:49:08   90.00° E"]


class TestStamp:
    """End-to-end stamping tests."""

    def test_output_keeps_size_and_format(self, make_compositor, sample_photo):
        written = make_compositor(sample_photo).stamp()
        with Image.open(written) as result:
            assert result.format == "JPEG"
            assert result.size == (400, 300)

    def test_png_output_pixels(self, make_compositor, sample_png):
        compositor = make_compositor(sample_png)
        written = compositor.stamp()

        assert written.endswith("photo_stamped.png")
        with Image.open(written) as result:
            assert result.format == "PNG"
            assert result.size == (300, 400)
            # Untouched photo area
            assert result.getpixel((200, 100))[:3] == (128, 128, 128)
            # Caption background: black at half opacity over gray
            r, g, b = result.getpixel((284, 350))[:3]
            assert abs(r - 64) <= 1
            # Minimap (y 172-321) blends tiles over the photo
            assert result.getpixel((30, 190))[:3] != (128, 128, 128)
        assert compositor.overlay_names == ["minimap", "compass", "caption"]

    def test_nothing_enabled_copies_photo(self, make_compositor, sample_png):
        options = StampOptions(show_minimap=False, show_compass=False, show_info=False)
        written = make_compositor(sample_png, options=options).stamp()
        with Image.open(sample_png) as source, Image.open(written) as result:
            assert list(result.convert("RGB").getdata()) == list(source.convert("RGB").getdata())

    def test_tile_failure_propagates(self, make_compositor, sample_photo, failing_tile_fetcher):
        compositor = make_compositor(sample_photo, tile_fetcher=failing_tile_fetcher)
        with pytest.raises(TileFetchFailure, match="HTTP 503"):
            compositor.stamp()
        assert not os.path.exists(compositor.default_output_path())

    def test_progress_reported(self, make_compositor, sample_photo, tile_fetcher):
        updates = []
        compositor = make_compositor(sample_photo,
                                     progress_callback=lambda done, total: updates.append((done, total)))
        compositor.stamp()
        total = len(tile_fetcher.fetched)
        assert total > 0
        assert updates[-1] == (total, total)

    def test_missing_assets_fall_back(self, make_compositor, sample_photo, tmp_path, rasterizer):
        empty_dir = tmp_path / "assets"
        empty_dir.mkdir()
        written = make_compositor(sample_photo, asset_dir=str(empty_dir)).stamp()
        assert os.path.isfile(written)
        # Procedural pin and dial chosen up front
        assert rasterizer.calls == []

    def test_unrenderable_assets_fall_back(self, make_compositor, sample_photo, caplog):
        """Bundled SVGs that cannot be rendered (no cairo) still yield a stamped photo."""
        compositor = make_compositor(sample_photo, rasterizer=SvgRasterizer())
        with patch.dict(sys.modules, {"cairosvg": None}), caplog.at_level("WARNING"):
            written = compositor.stamp()

        assert os.path.isfile(written)
        assert compositor.overlay_names == ["minimap", "compass", "caption"]
        assert "drawing procedural pin" in caplog.text
        assert "drawing procedural compass" in caplog.text
