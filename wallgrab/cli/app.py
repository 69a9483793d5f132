"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from wallgrab import __version__
from wallgrab.api.client import AerialHttpClient
from wallgrab.core.download_manager import DownloadManager
from wallgrab.models.config import GrabConfig
from wallgrab.models.stats import DownloadStats
from wallgrab.storage.cache import ResponseCache
from wallgrab.storage.config_manager import ConfigManager

from .formatters import (
    print_catalog,
    print_catalog_table,
    print_config,
    print_summary_panel,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("wallgrab")

app = typer.Typer(
    name="wallgrab",
    help="An Apple aerials wallpaper downloader.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

T = TypeVar("T")


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "wallgrab"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"
CACHE_DIR = CONFIG_DIR / "cache"

_state = {"quiet": False}

# --- Options shared by the catalog commands ---
MACOS_MAJOR = typer.Option(None, "--macos-major", help="macOS major version.")
MACOS_MINOR = typer.Option(None, "--macos-minor", help="macOS minor version.")
LANG = typer.Option(None, "-l", "--lang", help="Language of the aerial names.")
STREAMS = typer.Option(
    None, "-s", "--streams", help="Number of concurrent streams (default by CPUs)."
)
USER_AGENT = typer.Option(None, "--user-agent", help="User-Agent header to send.")
NO_CACHE = typer.Option(
    None, "--no-cache/--cache", help="Bypass the on-disk HTTP response cache."
)


def _cli_options(**options: Any) -> dict[str, Any]:
    return {key: value for key, value in options.items() if value is not None}


def _load_config(cli_options: dict[str, Any]) -> GrabConfig:
    return ConfigManager(CONFIG_FILE).load_config(cli_options)


def _run_session(
    config: GrabConfig,
    action: Callable[[DownloadManager], Awaitable[T]],
    progress_manager: ProgressManager | None = None,
) -> T:
    """Runs an action against a DownloadManager with a live HTTP client."""

    async def _session() -> T:
        stats = DownloadStats()
        cache = (
            None
            if config.no_cache
            else ResponseCache(
                CACHE_DIR,
                max_age_days=config.cache_ttl_days,
                stats_callback=stats.record_cache,
            )
        )
        if cache:
            await asyncio.to_thread(cache.cleanup_expired)
        async with AerialHttpClient(config.user_agent, config.streams, cache) as client:
            manager = DownloadManager(config, client, progress_manager, stats=stats)
            return await action(manager)

    return asyncio.run(_session())


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (debug) logging."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print warnings and errors."
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration."
    ),
):
    """Apple aerials wallpaper downloader"""
    if version:
        console.print(f"[bold]wallgrab[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose:
        log_level = "DEBUG"
    elif quiet:
        log_level = "WARNING"
    logging.getLogger("wallgrab").setLevel(log_level)
    _state["quiet"] = quiet

    if show_config:
        print_config(CONFIG_FILE, _load_config({}))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="list")
def list_command(
    macos_major: int | None = MACOS_MAJOR,
    macos_minor: int | None = MACOS_MINOR,
    lang: str | None = LANG,
    user_agent: str | None = USER_AGENT,
    no_cache: bool | None = NO_CACHE,
):
    """List available aerials."""
    config = _load_config(
        _cli_options(
            macos_major=macos_major,
            macos_minor=macos_minor,
            lang=lang,
            user_agent=user_agent,
            no_cache=no_cache,
        )
    )

    async def _list(manager: DownloadManager):
        if log.isEnabledFor(logging.DEBUG):
            for name in await manager.list_languages():
                log.debug(f"lang: {name}")
        return await manager.load_catalog()

    print_catalog(_run_session(config, _list))


@app.command()
def show(
    macos_major: int | None = MACOS_MAJOR,
    macos_minor: int | None = MACOS_MINOR,
    lang: str | None = LANG,
    streams: int | None = STREAMS,
    user_agent: str | None = USER_AGENT,
    no_cache: bool | None = NO_CACHE,
):
    """Show available aerials with their sizes and preview images."""
    config = _load_config(
        _cli_options(
            macos_major=macos_major,
            macos_minor=macos_minor,
            lang=lang,
            streams=streams,
            user_agent=user_agent,
            no_cache=no_cache,
        )
    )

    async def _show(manager: DownloadManager):
        return await manager.load_catalog_with_sizes()

    print_catalog_table(_run_session(config, _show))


@app.command()
def langs(
    macos_major: int | None = MACOS_MAJOR,
    macos_minor: int | None = MACOS_MINOR,
    user_agent: str | None = USER_AGENT,
    no_cache: bool | None = NO_CACHE,
):
    """List the languages available for aerial names."""
    config = _load_config(
        _cli_options(
            macos_major=macos_major,
            macos_minor=macos_minor,
            user_agent=user_agent,
            no_cache=no_cache,
        )
    )

    async def _langs(manager: DownloadManager):
        return await manager.list_languages()

    for name in _run_session(config, _langs):
        console.print(name, markup=False, highlight=False)


@app.command()
def grab(
    dest: str | None = typer.Option(
        None, "-d", "--dest", help="Destination directory (~ is expanded)."
    ),
    m3u: str | None = typer.Option(
        None, "--m3u", help="Write an M3U playlist with this name into the destination."
    ),
    macos_major: int | None = MACOS_MAJOR,
    macos_minor: int | None = MACOS_MINOR,
    lang: str | None = LANG,
    streams: int | None = STREAMS,
    user_agent: str | None = USER_AGENT,
    no_cache: bool | None = NO_CACHE,
):
    """Grab available aerials."""
    config = _load_config(
        _cli_options(
            dest=dest,
            m3u=m3u,
            macos_major=macos_major,
            macos_minor=macos_minor,
            lang=lang,
            streams=streams,
            user_agent=user_agent,
            no_cache=no_cache,
        )
    )

    start_time = time.monotonic()
    progress_manager = ProgressManager(console=console, enabled=not _state["quiet"])
    managers: list[DownloadManager] = []

    async def _grab(manager: DownloadManager):
        managers.append(manager)
        async with progress_manager:
            return await manager.grab()

    _run_session(config, _grab, progress_manager)

    manager = managers[0]
    manager.save_session_stats()
    if not _state["quiet"]:
        print_summary_panel(
            manager.stats,
            time.monotonic() - start_time,
            progress_manager.get_statistics(),
        )


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with the default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_new_config()
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command(name="clear-cache")
def clear_cache():
    """Clear the HTTP response cache."""
    cache = ResponseCache(CACHE_DIR)
    files_count = len(list(cache.cache_dir.glob("*.json")))
    console.print("[cyan]Clearing HTTP cache...[/cyan]")
    if cache.clear():
        console.print(
            f"[green]✓ Cache cleared successfully ({files_count} entries removed"
            ").[/green]"
        )
    else:
        console.print("[red]✗ Failed to clear cache.[/red]")
        raise typer.Exit(code=1)
