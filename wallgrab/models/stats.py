"""
Counters for a grab session.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field

SPEED_WINDOW = 10
SPEED_SAMPLE_INTERVAL = 0.5


@dataclass
class DownloadStats:
    """
    Aggregate counters shared by the scheduler workers. Transfer counters are
    mutated through the async methods, which hold the lock. Cache lookups are
    synchronous, so record_cache is too.
    """

    assets_total: int = 0
    assets_probed: int = 0
    assets_downloaded: int = 0
    assets_skipped: int = 0
    assets_failed: int = 0
    total_size: int = 0
    total_size_downloaded: int = 0
    cache_hits: int = 0
    cache_misses: int = 0

    current_speed_bps: float = 0.0
    peak_speed_bps: float = 0.0
    _samples: deque = field(
        default_factory=lambda: deque(maxlen=SPEED_WINDOW), repr=False
    )
    _mark: tuple[float, int] = field(default=(0.0, 0), repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self):
        self._mark = (time.monotonic(), 0)

    async def record_probe(self, size: int) -> None:
        async with self._lock:
            self.assets_probed += 1
            self.total_size += size

    async def record_bytes(self, count: int) -> None:
        """Adds freshly written bytes and refreshes the speed estimate."""
        async with self._lock:
            self.total_size_downloaded += count
            self._sample_speed()

    async def record_result(self, success: bool) -> None:
        async with self._lock:
            if success:
                self.assets_downloaded += 1
            else:
                self.assets_failed += 1

    def record_cache(self, hit: bool) -> None:
        if hit:
            self.cache_hits += 1
        else:
            self.cache_misses += 1

    def _sample_speed(self) -> None:
        now = time.monotonic()
        mark_time, mark_bytes = self._mark
        if now - mark_time <= SPEED_SAMPLE_INTERVAL:
            return
        delta = self.total_size_downloaded - mark_bytes
        if delta > 0:
            self._samples.append(delta / (now - mark_time))
            self.current_speed_bps = sum(self._samples) / len(self._samples)
            self.peak_speed_bps = max(self.peak_speed_bps, self.current_speed_bps)
        self._mark = (now, self.total_size_downloaded)
