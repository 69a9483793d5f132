"""
The main orchestrator: resolves the catalog, plans and runs the downloads and
emits the playlist.
"""

import json
import logging
import time
from pathlib import Path

from wallgrab.api.client import AerialHttpClient
from wallgrab.core.catalog import load_localization, resolve_catalog
from wallgrab.core.planner import SyncPlan, plan_downloads
from wallgrab.core.scheduler import DownloadScheduler, ProgressReporter
from wallgrab.media.duration import DurationProbe, annotate_durations
from wallgrab.models.config import GrabConfig
from wallgrab.models.manifest import Catalog
from wallgrab.models.stats import DownloadStats
from wallgrab.utils.formatting import format_size
from wallgrab.utils.playlist import write_playlist
from wallgrab.web.bundle_fetcher import BundleFetcher

log = logging.getLogger(__name__)


class DownloadManager:
    """Orchestrates the entire grab process."""

    def __init__(
        self,
        config: GrabConfig,
        client: AerialHttpClient,
        progress_manager: ProgressReporter | None = None,
        duration_probe: DurationProbe | None = None,
        stats: DownloadStats | None = None,
    ):
        self.config = config
        self.client = client
        self.stats = stats or DownloadStats()
        self.start_time = time.monotonic()
        self.fetcher = BundleFetcher(client)
        self.scheduler = DownloadScheduler(
            client, config.streams, self.stats, progress_manager
        )
        self.duration_probe = duration_probe or DurationProbe()
        self.plan: SyncPlan | None = None

    async def bundle_url(self) -> str:
        return await self.fetcher.resolve_bundle_url(
            self.config.macos_major, self.config.macos_minor
        )

    async def list_languages(self) -> list[str]:
        """Lists the languages available in the resources bundle."""
        return sorted(await self.fetcher.list_languages(await self.bundle_url()))

    async def load_catalog(self) -> Catalog:
        """Fetches the manifest and localization table and resolves the catalog."""
        bundle_url = await self.bundle_url()
        manifest, table = await self.fetcher.fetch_catalog_sources(
            bundle_url, self.config.lang
        )
        localization = load_localization(table, self.config.lang)
        catalog = resolve_catalog(manifest, localization)
        self.stats.assets_total = len(catalog)
        return catalog

    async def load_catalog_with_sizes(self) -> Catalog:
        catalog = await self.load_catalog()
        await self.scheduler.probe_sizes(catalog)
        return catalog

    async def grab(self) -> Catalog:
        """
        Runs the full pipeline: resolve, probe sizes, plan, download, annotate
        durations and write the playlist.
        """
        catalog = await self.load_catalog_with_sizes()

        base_dir = self.config.base_dir
        self.plan = plan_downloads(catalog, base_dir)
        self.stats.assets_skipped = self.plan.up_to_date
        log.info(
            f"[cyan]{self.plan.to_download}[/cyan] to download "
            f"({format_size(self.plan.bytes_needed)}), "
            f"[green]{self.plan.up_to_date}[/green] up to date"
        )

        await self.scheduler.fetch_missing(catalog)

        if not await annotate_durations(catalog, self.duration_probe):
            log.info("[dim]ffprobe not found, playlist durations left unknown.[/dim]")
        write_playlist(catalog, self.config.m3u, base_dir)

        log.debug(f"total: {time.monotonic() - self.start_time:.2f}s")
        return catalog

    def save_session_stats(self) -> None:
        """Saves the current session's stats to a history file."""
        if not self.config.config_path:
            return
        stats_file = Path(self.config.config_path) / "session_history.jsonl"
        try:
            stats_file.parent.mkdir(parents=True, exist_ok=True)
            with open(stats_file, "a", encoding="utf-8") as f:
                session_data = {
                    "timestamp": int(time.time()),
                    "macos": f"{self.config.macos_major}.{self.config.macos_minor}",
                    "assets_total": self.stats.assets_total,
                    "assets_downloaded": self.stats.assets_downloaded,
                    "assets_skipped": self.stats.assets_skipped,
                    "total_size_downloaded": self.stats.total_size_downloaded,
                    "cache_hits": self.stats.cache_hits,
                    "cache_misses": self.stats.cache_misses,
                    "duration_seconds": round(time.monotonic() - self.start_time, 2),
                }
                json.dump(session_data, f)
                f.write("\n")
        except OSError as e:
            log.warning(f"[yellow]Could not save session stats:[/] {e}")
