"""
Bounded-concurrency size probing and downloading of catalog assets.
"""

import asyncio
import logging
from typing import Any, Protocol

import aiohttp

from wallgrab.api.client import AerialHttpClient
from wallgrab.exceptions import AssetFetchError, SizeProbeError
from wallgrab.media.downloader import Downloader
from wallgrab.models.manifest import AssetSlot, Catalog
from wallgrab.models.stats import DownloadStats

log = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """What the scheduler reports to. Reporting never affects the outcome."""

    def start_probe(self, total: int) -> None: ...

    def advance_probe(self) -> None: ...

    def finish_probe(self, total_size: int) -> None: ...

    def add_asset_task(self, description: str, total_size: int) -> Any: ...

    def update_task_progress(self, task_id: Any, completed: int) -> None: ...

    def remove_task(self, task_id: Any, success: bool = True) -> None: ...


class DownloadScheduler:
    """
    Runs one unit of work per asset on a pool of `streams` concurrent workers.
    A worker only touches the slot it was handed; the shared DownloadStats
    counters are the only cross-worker state.
    """

    def __init__(
        self,
        client: AerialHttpClient,
        streams: int,
        stats: DownloadStats | None = None,
        progress: ProgressReporter | None = None,
    ):
        self.client = client
        self.streams = streams
        self.stats = stats or DownloadStats()
        self.progress = progress
        self.downloader = Downloader(client)
        self.semaphore = asyncio.Semaphore(streams)

    async def _probe_one(self, index: int, slot: AssetSlot) -> tuple[int, int]:
        async with self.semaphore:
            log.debug(f"checking: {slot.asset.shot_id} {slot.identifier}")
            try:
                size = await self.client.head_size(slot.asset.url, insecure=True)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise SizeProbeError(
                    f"Could not determine size of {slot.identifier}: {e}"
                ) from e
            await self.stats.record_probe(size)
            if self.progress:
                self.progress.advance_probe()
            return index, size

    async def probe_sizes(self, catalog: Catalog) -> None:
        """
        Sets the remote size of every slot with one HEAD request per asset.

        Fail-fast: the first failure cancels the outstanding probes and is
        raised. Sizes are only written to the catalog once every probe has
        succeeded.
        """
        if not catalog.slots:
            return
        if self.progress:
            self.progress.start_probe(len(catalog.slots))

        tasks = [
            asyncio.create_task(self._probe_one(i, slot))
            for i, slot in enumerate(catalog.slots)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for index, size in results:
            catalog.slots[index].size = size
        if self.progress:
            self.progress.finish_probe(catalog.total_size)

    async def _fetch_one(
        self,
        slot: AssetSlot,
        abort: asyncio.Event,
        failures: list[AssetFetchError],
    ) -> bool:
        async with self.semaphore:
            if abort.is_set():
                return False

            task_id = None
            on_progress = None
            if self.progress:
                task_id = self.progress.add_asset_task(slot.identifier, slot.size)

                def on_progress(completed: int) -> None:
                    self.progress.update_task_progress(task_id, completed)

            try:
                await self.downloader.download_asset(slot, self.stats, on_progress)
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                abort.set()
                error = AssetFetchError(f"Failed to download {slot.identifier}: {e}")
                failures.append(error)
                await self.stats.record_result(False)
                if self.progress:
                    self.progress.remove_task(task_id, success=False)
                raise error from e

            await self.stats.record_result(True)
            if self.progress:
                self.progress.remove_task(task_id, success=True)
            return True

    async def fetch_missing(self, catalog: Catalog) -> int:
        """
        Downloads every slot marked for download and returns how many were
        fetched.

        After the first failure no new download is started; the ones already
        in flight run to completion and then the earliest failure is raised.
        """
        pending = catalog.pending
        if not pending:
            return 0

        abort = asyncio.Event()
        # Appended as failures happen, so the first entry is the earliest
        failures: list[AssetFetchError] = []
        results = await asyncio.gather(
            *(self._fetch_one(slot, abort, failures) for slot in pending),
            return_exceptions=True,
        )
        if failures:
            raise failures[0]
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return sum(1 for result in results if result)
