"""
Rich console configuration for the geostamp photo stamper.

Provides styled terminal output with progress bars, panels, and logging.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme
from rich.panel import Panel
from rich.table import Table
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    MofNCompleteColumn,
    TimeElapsedColumn,
)

from stamp_io.data_models import Direction, GeoPoint
from stamp_options import StampOptions

STAMP_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "highlight": "bold magenta",
    "muted": "dim",
    "gps": "green",
    "heading": "bold cyan",
})

# Global console instance
console = Console(theme=STAMP_THEME)


def setup_rich_logging(verbose: bool = False) -> None:
    """
    Configure logging to use Rich handler.

    Args:
        verbose: Enable DEBUG level logging with full details
    """
    level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=verbose,
                show_path=verbose,
                rich_tracebacks=True,
                tracebacks_show_locals=verbose,
                markup=False,
            )
        ],
        force=True,  # Override any existing configuration
    )


def create_progress() -> Progress:
    """
    Create a progress bar for tile downloads.

    Returns:
        Configured Progress instance, cleared once finished
    """
    return Progress(
        SpinnerColumn("dots"),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=30, style="cyan", complete_style="green"),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def print_banner(version: str = "0.0.0") -> None:
    """Print a styled startup banner."""
    console.print("\n[bold cyan]geostamp[/] [muted]· map, compass and caption stamps for geotagged photos[/]")
    console.print(f"[muted]Version {version}[/]\n")


def print_config_summary(image_path: str, output_path: str, options: StampOptions) -> None:
    """
    Print a styled configuration summary panel.

    Args:
        image_path: Source photo
        output_path: Destination of the stamped copy
        options: Options of this run
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="bold")

    def enabled(flag: bool, detail: str) -> str:
        return detail if flag else "[dim]off[/]"

    table.add_row("Input", image_path)
    table.add_row("Output", f"[green]{output_path}[/]")
    table.add_row("Minimap", enabled(
        options.show_minimap,
        f"{options.minimap_width}x{options.minimap_height} z{options.minimap_zoom}, "
        f"opacity {options.minimap_opacity:.2f}",
    ))
    table.add_row("Compass", enabled(
        options.show_compass,
        f"{options.compass_width}x{options.compass_height} style {options.compass_style}, "
        f"{options.compass_marker}",
    ))
    table.add_row("Caption", enabled(
        options.show_info,
        f"{options.info_font_size}px {options.info_font_family}",
    ))
    table.add_row("Geocoding", enabled(options.geocoding_enabled, options.geocoder))

    panel = Panel(
        table,
        title="[bold]Configuration[/]",
        border_style="cyan",
        padding=(1, 2),
    )
    console.print(panel)
    console.print()


def print_location(point: GeoPoint, direction: Optional[Direction] = None) -> None:
    """Print the photo's GPS position and heading."""
    console.print(f"[gps]Location:[/] {point.latitude:.6f}, {point.longitude:.6f}")
    if direction is not None:
        console.print(
            f"[heading]Direction:[/] {direction.degrees:.2f}° {direction.cardinal} "
            f"[muted]({direction.reference})[/]"
        )


def print_phase(phase_num: int, total_phases: int, description: str) -> None:
    """
    Print a phase header for multi-step processing.

    Args:
        phase_num: Current phase number (1-indexed)
        total_phases: Total number of phases
        description: Description of this phase
    """
    console.print(
        f"\n[bold cyan]Step {phase_num}/{total_phases}:[/] [bold]{description}[/]"
    )


def print_completion_summary(output_path: str, overlays: int, tiles: Optional[int] = None) -> None:
    """
    Print a styled completion summary.

    Args:
        output_path: Path of the written file
        overlays: Number of overlays composited
        tiles: Map tiles downloaded (optional)
    """
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold green")

    table.add_row("Overlays", str(overlays))
    if tiles:
        table.add_row("Map Tiles", str(tiles))
    table.add_row("Output", output_path)

    panel = Panel(
        table,
        title="[bold green]Complete[/]",
        border_style="green",
        padding=(1, 2),
    )
    console.print()
    console.print(panel)


def print_error(message: str, hint: Optional[str] = None) -> None:
    """
    Print a styled error message.

    Args:
        message: Error message
        hint: Optional hint for resolution
    """
    console.print(f"\n[error]Error:[/] {message}")
    if hint:
        console.print(f"[muted]Hint: {hint}[/]")
