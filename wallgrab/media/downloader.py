"""
Handles the low-level downloading of a single asset over HTTP with adaptive
chunk sizing.
"""

import asyncio
import logging
from collections.abc import Callable

import aiofiles
import aiohttp

from wallgrab.api.client import AerialHttpClient
from wallgrab.models.manifest import AssetSlot
from wallgrab.models.stats import DownloadStats
from wallgrab.utils.path import create_dir

log = logging.getLogger(__name__)


class Downloader:
    """
    Streams an asset body straight into its output file. An existing file is
    truncated and rewritten; byte ranges are never requested.
    """

    MIN_CHUNK_SIZE = 131072  # 128 KB
    MAX_CHUNK_SIZE = 1048576  # 1 MB

    def __init__(self, client: AerialHttpClient):
        self.client = client

    @classmethod
    def chunk_size_for(cls, current_speed_bps: float) -> int:
        """Picks a read chunk size based on current network speed."""
        if current_speed_bps > 10 * 1024 * 1024:  # > 10 MB/s
            return cls.MAX_CHUNK_SIZE
        if current_speed_bps > 5 * 1024 * 1024:  # > 5 MB/s
            return 524288  # 512 KB
        if current_speed_bps > 1 * 1024 * 1024:  # > 1 MB/s
            return 262144  # 256 KB
        return cls.MIN_CHUNK_SIZE

    async def download_asset(
        self,
        slot: AssetSlot,
        stats: DownloadStats | None = None,
        on_progress: Callable[[int], None] | None = None,
    ) -> int:
        """
        Downloads slot.asset to slot.out and returns the number of bytes written.

        Args:
            slot: The slot to download; its output path must be set.
            stats: Shared session counters, updated as bytes arrive.
            on_progress: Called with the cumulative byte count after each chunk.

        Raises:
            aiohttp.ClientPayloadError: The body length differs from the
                probed size.
        """
        if slot.out is None:
            raise ValueError(f"{slot.identifier} has no output path")

        await asyncio.to_thread(create_dir, slot.out.parent)
        chunk_size = self.chunk_size_for(stats.current_speed_bps if stats else 0.0)
        log.debug(f"{slot.asset.shot_id} -> {slot.out} ({slot.size} bytes)")

        bytes_downloaded = 0
        async with aiofiles.open(slot.out, "wb") as f:
            async for chunk in self.client.iter_chunks(
                slot.asset.url, insecure=True, chunk_size=chunk_size
            ):
                await f.write(chunk)
                bytes_downloaded += len(chunk)
                if stats:
                    await stats.record_bytes(len(chunk))
                if on_progress:
                    on_progress(bytes_downloaded)

        if slot.size and bytes_downloaded != slot.size:
            raise aiohttp.ClientPayloadError(
                f"{slot.identifier}: received {bytes_downloaded} of {slot.size} bytes"
            )
        return bytes_downloaded
