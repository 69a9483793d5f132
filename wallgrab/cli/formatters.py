"""
Console rendering of catalogs, configuration, errors and the session summary.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from wallgrab.exceptions import (
    AssetFetchError,
    ConfigFetchError,
    ConfigParseError,
    ConfigurationError,
    DuplicateAssetError,
    DurationProbeError,
    LanguageNotFoundError,
    MissingLocalizationError,
    PathConflictError,
    SchemaError,
    SizeProbeError,
    TransportError,
    ZeroSizeAssetError,
)
from wallgrab.models.config import GrabConfig
from wallgrab.models.manifest import Catalog
from wallgrab.models.stats import DownloadStats
from wallgrab.utils.formatting import format_duration, format_size

# Most specific classes first; the first isinstance match wins.
_SUGGESTIONS: list[tuple[type[Exception], list[str]]] = [
    (
        ConfigFetchError,
        [
            "Check your internet connection.",
            "Make sure --macos-major/--macos-minor name a released macOS version.",
        ],
    ),
    (
        SizeProbeError,
        ["The asset server did not answer a HEAD request.", "Try fewer --streams."],
    ),
    (
        AssetFetchError,
        [
            "Files that finished downloading are kept.",
            "Run the same command again to fetch the rest.",
        ],
    ),
    (TransportError, ["Check your internet connection and try again."]),
    (ConfigParseError, ["Try another --macos-minor version."]),
    (SchemaError, ["Run `wallgrab clear-cache` in case a cached bundle is corrupt."]),
    (LanguageNotFoundError, ["Run `wallgrab langs` to see the available languages."]),
    (
        MissingLocalizationError,
        ["This language table is incomplete; try --lang en."],
    ),
    (
        DuplicateAssetError,
        ["Two aerials share a name in this language; try a different --lang."],
    ),
    (PathConflictError, ["Remove or rename the directory that is in the way."]),
    (ZeroSizeAssetError, ["Run `wallgrab clear-cache` and try again."]),
    (DurationProbeError, ["Check that ffprobe can read the downloaded files."]),
    (ConfigurationError, ["Check the file shown by `wallgrab --show-config`."]),
]


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Renders an error and what the user can do about it."""
    hints = next(
        (hints for cls, hints in _SUGGESTIONS if isinstance(error, cls)),
        ["Run the command again with -v for detailed logs."],
    )
    parts: list[Any] = [
        Text.assemble((f"{type(error).__name__}: ", "bold red"), str(error)),
        Text(""),
        Text("What to try", style="bold yellow"),
        *(Text(f"  • {hint}") for hint in hints),
    ]
    if context:
        parts += [Text(""), Text(f"Context: {context}", style="dim")]

    return Panel(
        Group(*parts),
        title="[bold red]wallgrab failed[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config: GrabConfig):
    """Displays the effective configuration."""
    table = Table(box=None, show_header=False, padding=(0, 1))
    table.add_column(style="cyan")
    table.add_column()
    for key in sorted(GrabConfig.get_ini_keys()):
        table.add_row(key, repr(getattr(config, key)))
    Console().print(Panel(table, title=f"[dim]{config_path}[/dim]", border_style="cyan"))


def print_catalog(catalog: Catalog) -> None:
    """Prints one numbered line per asset, in catalog order."""
    console = Console(highlight=False)
    for i, slot in enumerate(catalog.slots, 1):
        console.print(f"{i:3d}: {slot.identifier} ({slot.asset.shot_id})", markup=False)


def print_catalog_table(catalog: Catalog) -> None:
    """Displays the catalog with sizes and preview image URLs."""
    console = Console()
    table = Table(box=box.SIMPLE)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Aerial", style="cyan")
    table.add_column("Size", justify="right", style="green")
    table.add_column("Preview", style="dim", overflow="fold")
    for i, slot in enumerate(catalog.slots, 1):
        table.add_row(
            str(i),
            Text(slot.identifier),
            format_size(slot.size),
            slot.asset.preview_image,
        )
    console.print(table)
    console.print(
        f"[bold]{len(catalog)}[/bold] aerials, "
        f"[green]{format_size(catalog.total_size)}[/green] total"
    )


def print_summary_panel(
    stats: DownloadStats, duration_s: float, progress_stats: dict[str, Any] | None = None
):
    """Displays the final summary of the grab session."""
    rows: list[tuple[str, str]] = [
        ("Downloaded", f"[bold green]{stats.assets_downloaded}[/bold green]"),
        ("Up to date", f"[yellow]{stats.assets_skipped}[/yellow]"),
    ]
    if stats.assets_failed:
        rows.append(("Failed", f"[bold red]{stats.assets_failed}[/bold red]"))
    rows += [
        ("Catalog", format_size(stats.total_size)),
        ("Transferred", format_size(stats.total_size_downloaded)),
        ("Elapsed", format_duration(duration_s)),
    ]
    if duration_s > 0 and stats.total_size_downloaded:
        rate = stats.total_size_downloaded / duration_s
        rows.append(("Average", f"{format_size(rate)}/s"))
    if stats.peak_speed_bps > 0:
        rows.append(("Peak", f"{format_size(stats.peak_speed_bps)}/s"))
    if progress_stats and progress_stats.get("peak_concurrent"):
        rows.append(("Streams used", str(progress_stats["peak_concurrent"])))
    lookups = stats.cache_hits + stats.cache_misses
    if lookups:
        rows.append(("Cache hits", f"{stats.cache_hits}/{lookups}"))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()
    for label, value in rows:
        table.add_row(label, value)

    console = Console()
    console.print()
    console.print(
        Panel(
            table,
            title="🌄 [bold]Grab complete[/bold]",
            border_style="green",
            box=box.ROUNDED,
            expand=False,
        )
    )
