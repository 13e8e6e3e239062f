"""
Command line entry point: stamp a geotagged photo with a minimap, a compass
and a caption bar.
"""

import argparse
import sys
from typing import List, Optional

from constants import VERSION, MINIMAP_ZOOM, COMPASS_STYLE
from errors import (
    InvalidOption, NoLocationData, StampError, TileFetchFailure, UnsupportedFormat,
)
from rich_console import (
    create_progress,
    print_banner,
    print_completion_summary,
    print_config_summary,
    print_error,
    print_location,
    print_phase,
    setup_rich_logging,
)
from stamp_compositor import StampCompositor
from stamp_options import StampOptions

# argparse dest -> StampOptions field, for flags that map one to one
OPTION_FLAGS = (
    "geocoder",
    "minimap_width", "minimap_height", "minimap_zoom", "minimap_opacity", "minimap_border_radius",
    "compass_width", "compass_height", "compass_style", "compass_arrow_color", "compass_marker",
    "info_font_size", "info_font_family", "info_font_color", "info_bg_color", "info_bg_opacity",
    "info_border_radius",
    "margin", "tile_server", "tile_workers",
)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="geostamp",
        description="Stamp a geotagged photo with a minimap, a compass and a caption bar.",
    )
    parser.add_argument("image", help="Path to a photo with GPS EXIF data")
    parser.add_argument("-o", "--output", help="Output path (default: <name>_stamped<ext>)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    toggles = parser.add_argument_group("overlays")
    toggles.add_argument("--no-compass", dest="show_compass", action="store_false",
                         help="Do not draw the compass")
    toggles.add_argument("--no-minimap", dest="show_minimap", action="store_false",
                         help="Do not draw the minimap")
    toggles.add_argument("--no-info", dest="show_info", action="store_false",
                         help="Do not draw the caption bar")
    toggles.add_argument("--no-geocode", dest="geocode", action="store_false",
                         help="Skip reverse geocoding (no address in the caption)")
    toggles.add_argument("--geocoder", choices=["nominatim", "none"],
                         help="Reverse geocoding service")

    # Value flags default to None so StampOptions supplies the defaults
    minimap = parser.add_argument_group("minimap")
    minimap.add_argument("--minimap-width", type=int, help="Minimap width in pixels")
    minimap.add_argument("--minimap-height", type=int, help="Minimap height in pixels")
    minimap.add_argument("--minimap-zoom", type=int, help=f"Tile zoom level 0-19 (default {MINIMAP_ZOOM})")
    minimap.add_argument("--minimap-opacity", type=float, help="Minimap opacity 0-1")
    minimap.add_argument("--minimap-border-radius", type=int, help="Minimap corner radius")
    minimap.add_argument("--tile-server", help="Tile URL template with {z}, {x} and {y}")
    minimap.add_argument("--tile-workers", type=int, help="Concurrent tile downloads")

    compass = parser.add_argument_group("compass")
    compass.add_argument("--compass-width", type=int, help="Compass width in pixels")
    compass.add_argument("--compass-height", type=int, help="Compass height in pixels")
    compass.add_argument("--compass-style", type=int, choices=[1, 2, 3],
                         help=f"Compass dial style (default {COMPASS_STYLE})")
    compass.add_argument("--compass-arrow-color", help="Heading marker color")
    compass.add_argument("--compass-marker", choices=["triangle", "arrow"], help="Heading marker shape")

    info = parser.add_argument_group("caption bar")
    info.add_argument("--info-font-size", type=int, help="Caption font size")
    info.add_argument("--info-font-family", help="Caption TrueType font file")
    info.add_argument("--info-font-color", help="Caption text color")
    info.add_argument("--info-bg-color", help="Caption background color")
    info.add_argument("--info-bg-opacity", type=float, help="Caption background opacity 0-1")
    info.add_argument("--info-border-radius", type=int, help="Caption corner radius")

    parser.add_argument("--margin", type=int, help="Distance of overlays from the photo edges")

    return parser.parse_args(argv)


def options_from_args(args: argparse.Namespace) -> StampOptions:
    """Build StampOptions from parsed flags; unset flags keep their defaults."""
    values = {
        "show_compass": args.show_compass,
        "show_minimap": args.show_minimap,
        "show_info": args.show_info,
        "geocode": args.geocode,
    }
    for name in OPTION_FLAGS:
        value = getattr(args, name)
        if value is not None:
            values[name] = value
    return StampOptions(**values)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_rich_logging(args.verbose)
    print_banner(VERSION)

    try:
        options = options_from_args(args)
    except InvalidOption as e:
        print_error(f"Invalid option: {e}", hint="Run with --help to see accepted values")
        return 2

    progress = create_progress()
    tile_task = progress.add_task("Fetching map tiles", total=None)
    tiles = {"total": 0}

    def on_tile(done: int, total: int) -> None:
        tiles["total"] = total
        progress.update(tile_task, completed=done, total=total)

    try:
        print_phase(1, 2, "Reading metadata")
        compositor = StampCompositor(args.image, options, progress_callback=on_tile)
        output_path = args.output or compositor.default_output_path()
        print_config_summary(compositor.image_path, output_path, options)
        print_location(compositor.metadata.gps_point, compositor.metadata.direction)

        print_phase(2, 2, "Composing overlays")
        with progress:
            output_path = compositor.stamp(output_path)
    except NoLocationData as e:
        print_error(str(e), hint="Only photos with GPS coordinates in their EXIF data can be stamped")
        return 1
    except UnsupportedFormat as e:
        print_error(str(e), hint="Supported formats: JPEG, PNG, TIFF, WebP, BMP, GIF")
        return 1
    except TileFetchFailure as e:
        print_error(str(e), hint="Check your network connection or use --tile-server / --no-minimap")
        return 1
    except StampError as e:
        print_error(str(e))
        return 1

    print_completion_summary(output_path, len(compositor.overlay_names), tiles["total"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
