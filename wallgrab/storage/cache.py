"""
A simple, file-based HTTP response cache with a time-to-live (TTL), keyed by
request method and URL. Content types that change upstream more often get a
shorter TTL.
"""

import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

HEADER_WHITELIST = ("Date", "Content-Type", "Content-Length")
SHORT_TTL_CONTENT_TYPES = ("text/xml", "application/octet-stream", "video/quicktime")


@dataclass
class CachedResponse:
    """A response served from the cache."""

    headers: dict[str, str]
    body: bytes

    @property
    def content_length(self) -> int:
        try:
            return int(self.headers.get("Content-Length", 0))
        except ValueError:
            return 0


class ResponseCache:
    """
    Manages the on-disk response cache with TTL and statistics tracking.

    Each entry is a JSON metadata file (method, URL, headers, expiry) plus,
    for GET requests, a sibling body file.
    """

    def __init__(
        self,
        cache_dir_path: Path,
        max_age_days: int = 30,
        content_type_max_age_days: int = 7,
        stats_callback: Callable[[bool], None] | None = None,
    ):
        """
        Initializes the cache.

        Args:
            cache_dir_path: The directory where cache files will be stored.
            max_age_days: The default maximum age of an entry in days.
            content_type_max_age_days: The maximum age for the content types in
            SHORT_TTL_CONTENT_TYPES.
            stats_callback: Optional callback to report cache hits (True) or misses
            (False).
        """
        self.cache_dir = cache_dir_path
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.max_age_seconds = max_age_days * 86400
        self.content_type_max_age_seconds = content_type_max_age_days * 86400
        self._stats_callback = stats_callback

    def _get_cache_path(self, method: str, url: str) -> Path:
        """Generates a safe filename for a given request."""
        key = f"{method.upper()} {url}"
        hashed_key = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{hashed_key}.json"

    def _ttl_for(self, headers: dict[str, str]) -> int:
        content_type = headers.get("Content-Type", "").split(";")[0].strip().lower()
        if content_type in SHORT_TTL_CONTENT_TYPES:
            return min(self.max_age_seconds, self.content_type_max_age_seconds)
        return self.max_age_seconds

    def _record(self, hit: bool) -> None:
        if self._stats_callback:
            self._stats_callback(hit)

    def get(self, method: str, url: str) -> CachedResponse | None:
        """
        Retrieves a response from the cache. Returns None if the request is not
        cached or expired.
        """
        meta_path = self._get_cache_path(method, url)
        body_path = meta_path.with_suffix(".body")

        if not meta_path.is_file():
            self._record(False)
            return None

        try:
            with open(meta_path, encoding="utf-8") as f:
                meta = json.load(f)
            if time.time() > meta.get("expires", 0):
                self._remove(meta_path)
                self._record(False)
                return None
            body = body_path.read_bytes() if meta.get("has_body") else b""
        except (json.JSONDecodeError, OSError) as e:
            log.debug(f"Cache read failed for {method} {url}: {e}")
            self._record(False)
            return None

        self._record(True)
        return CachedResponse(headers=meta.get("headers", {}), body=body)

    def set(
        self, method: str, url: str, headers: dict[str, str], body: bytes | None = None
    ) -> bool:
        """Saves a response to the cache, keeping only whitelisted headers."""
        meta_path = self._get_cache_path(method, url)
        kept = {k: v for k, v in headers.items() if k in HEADER_WHITELIST}
        now = time.time()
        payload = {
            "method": method.upper(),
            "url": url,
            "timestamp": now,
            "expires": now + self._ttl_for(kept),
            "headers": kept,
            "has_body": body is not None,
        }
        try:
            if body is not None:
                meta_path.with_suffix(".body").write_bytes(body)
            with open(meta_path, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            return True
        except (TypeError, OSError) as e:
            log.warning(f"Cache write failed for {method} {url}: {e}")
            return False

    def _remove(self, meta_path: Path) -> None:
        meta_path.unlink(missing_ok=True)
        meta_path.with_suffix(".body").unlink(missing_ok=True)

    def cleanup_expired(self) -> int:
        """Scans the cache directory and removes expired entries."""
        now = time.time()
        cleaned_count = 0
        for meta_path in self.cache_dir.glob("*.json"):
            try:
                with open(meta_path, encoding="utf-8") as f:
                    expires = json.load(f).get("expires", 0)
                if now > expires:
                    self._remove(meta_path)
                    cleaned_count += 1
            except (json.JSONDecodeError, OSError) as e:
                log.warning(f"Failed to inspect cache file {meta_path.name}: {e}")
        if cleaned_count > 0:
            log.debug(f"Cache cleanup: removed {cleaned_count} expired entries.")
        return cleaned_count

    def clear(self) -> bool:
        """Removes all items from the cache."""
        log.info("Clearing all cache entries...")
        try:
            for cache_file in self.cache_dir.glob("*.json"):
                self._remove(cache_file)
            return True
        except OSError as e:
            log.error(f"Failed to clear cache: {e}")
            return False
