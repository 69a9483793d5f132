"""
Async HTTP client used for every request the application makes, with an
optional on-disk response cache for GET and HEAD requests.
"""

import logging
import time
from collections.abc import AsyncIterator
from typing import Optional

import aiohttp

from wallgrab.models.config import DEFAULT_USER_AGENT
from wallgrab.storage.cache import ResponseCache

log = logging.getLogger(__name__)


class AerialHttpClient:
    """
    Thin async client over a shared aiohttp session.

    Features:
    - Transparent response caching for metadata requests (GET/HEAD)
    - Per-request opt-out of TLS certificate verification
    - Connection pooling sized to the number of concurrent streams

    Errors are raised as aiohttp.ClientError or asyncio.TimeoutError; nothing is
    retried here.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        streams: int = 4,
        cache: Optional[ResponseCache] = None,
    ):
        """
        Initializes the client.

        Args:
            user_agent: User-Agent header sent with every request.
            streams: The number of concurrent streams, used to tune the connection pool.
            cache: Response cache for GET/HEAD requests, or None to disable caching.
        """
        self.user_agent = user_agent
        self.streams = streams
        self.cache = cache
        self._session: Optional[aiohttp.ClientSession] = None

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.streams * 2,
                limit_per_host=self.streams,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "AerialHttpClient":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @staticmethod
    def _ssl(insecure: bool):
        # False disables certificate verification, None keeps aiohttp's default
        return False if insecure else None

    async def get_bytes(
        self, url: str, insecure: bool = False, use_cache: bool = True
    ) -> bytes:
        """Fetches the full body of a URL."""
        if use_cache and self.cache and (cached := self.cache.get("GET", url)):
            log.debug(f"GET {url} (cached)")
            return cached.body

        log.debug(f"GET {url} insecure:{insecure}")
        session = await self._initialize_session()
        start_time = time.monotonic()
        async with session.get(url, ssl=self._ssl(insecure)) as r:
            r.raise_for_status()
            body = await r.read()
            headers = dict(r.headers)
        log.debug(
            f"GET {url} -> {len(body)} bytes "
            f"({(time.monotonic() - start_time) * 1000:.0f} ms)"
        )

        if use_cache and self.cache:
            self.cache.set("GET", url, headers, body)
        return body

    async def head_size(
        self, url: str, insecure: bool = True, use_cache: bool = True
    ) -> int:
        """
        Performs a HEAD request and returns the Content-Length, or 0 when the
        server does not report one.
        """
        if use_cache and self.cache and (cached := self.cache.get("HEAD", url)):
            log.debug(f"HEAD {url} (cached)")
            return cached.content_length

        log.debug(f"HEAD {url} insecure:{insecure}")
        session = await self._initialize_session()
        async with session.head(
            url, ssl=self._ssl(insecure), allow_redirects=True
        ) as r:
            r.raise_for_status()
            headers = dict(r.headers)

        if use_cache and self.cache:
            self.cache.set("HEAD", url, headers)
        try:
            return int(headers.get("Content-Length", 0))
        except ValueError:
            return 0

    async def iter_chunks(
        self, url: str, insecure: bool = True, chunk_size: int = 262144
    ) -> AsyncIterator[bytes]:
        """Streams the body of a URL without caching it."""
        log.debug(f"GET {url} insecure:{insecure} (stream)")
        session = await self._initialize_session()
        async with session.get(
            url, ssl=self._ssl(insecure), allow_redirects=True
        ) as r:
            r.raise_for_status()
            async for chunk in r.content.iter_chunked(chunk_size):
                yield chunk
