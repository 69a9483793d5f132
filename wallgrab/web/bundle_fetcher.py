"""
Locates the aerials resources bundle for a macOS version and reads members
out of it. The bundle URL is published in a per-version configuration plist;
the bundle itself is a tar archive holding entries.json and the localization
tables.
"""

import asyncio
import io
import logging
import plistlib
import tarfile
import time
from xml.parsers.expat import ExpatError

import aiohttp

from wallgrab.api.client import AerialHttpClient
from wallgrab.exceptions import (
    BundleFetchError,
    ConfigFetchError,
    ConfigParseError,
    LanguageNotFoundError,
    MemberNotFoundError,
    SchemaError,
)

log = logging.getLogger(__name__)

RESOURCES_CONFIG_URL = (
    "https://configuration.apple.com/configurations/internetservices/aerials/"
    "resources-config-{major}-{minor}.plist"
)
RESOURCES_URL_KEY = "resources-url"

ENTRIES_MEMBER = "./entries.json"
_STRINGS_PREFIX = "./TVIdleScreenStrings.bundle/"
_STRINGS_SUFFIX = ".lproj/Localizable.nocache.strings"


def strings_member(lang: str) -> str:
    """Bundle path of the localization table for a language."""
    return f"{_STRINGS_PREFIX}{lang}{_STRINGS_SUFFIX}"


def _normalize(name: str) -> str:
    return name[2:] if name.startswith("./") else name


def _scan_members(data: bytes, wanted: set[str]) -> dict[str, bytes]:
    """
    Reads the archive front to back and returns the first occurrence of each
    wanted member. Stops as soon as every member has been found.
    """
    targets = {_normalize(name): name for name in wanted}
    found: dict[str, bytes] = {}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r|*") as tar:
            for member in tar:
                name = targets.get(_normalize(member.name))
                if name is None or name in found or not member.isfile():
                    continue
                f = tar.extractfile(member)
                found[name] = f.read() if f else b""
                if len(found) == len(targets):
                    break
    except tarfile.TarError as e:
        raise SchemaError(f"Resources bundle is not a valid tar archive: {e}") from e
    return found


def _scan_languages(data: bytes) -> list[str]:
    langs = []
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r|*") as tar:
            for member in tar:
                name = "./" + _normalize(member.name)
                if name.startswith(_STRINGS_PREFIX) and name.endswith(_STRINGS_SUFFIX):
                    langs.append(name[len(_STRINGS_PREFIX) : -len(_STRINGS_SUFFIX)])
    except tarfile.TarError as e:
        raise SchemaError(f"Resources bundle is not a valid tar archive: {e}") from e
    return langs


class BundleFetcher:
    """
    Resolves the resources bundle URL for a macOS version and extracts members
    from the bundle.
    """

    def __init__(self, client: AerialHttpClient):
        self.client = client
        self._resource_urls: dict[tuple[int, int], str] = {}
        self.traversals = 0

    async def resolve_bundle_url(self, major: int, minor: int) -> str:
        """
        Fetches the resources configuration plist for a macOS version and returns
        the bundle URL it names. The result is memoized.
        """
        if (major, minor) in self._resource_urls:
            return self._resource_urls[(major, minor)]

        config_url = RESOURCES_CONFIG_URL.format(major=major, minor=minor)
        start_time = time.monotonic()
        try:
            buf = await self.client.get_bytes(config_url, insecure=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ConfigFetchError(
                f"Could not fetch resources config for macOS {major}.{minor}: {e}"
            ) from e

        try:
            doc = plistlib.loads(buf)
        except (plistlib.InvalidFileException, ValueError, ExpatError) as e:
            raise ConfigParseError(f"Malformed resources config: {e}") from e

        resources_url = doc.get(RESOURCES_URL_KEY) if isinstance(doc, dict) else None
        if not isinstance(resources_url, str) or not resources_url:
            raise ConfigParseError(
                f"Resources config for macOS {major}.{minor} has no "
                f"'{RESOURCES_URL_KEY}' string."
            )

        log.debug(
            f"resources: {resources_url} ({time.monotonic() - start_time:.2f}s)"
        )
        self._resource_urls[(major, minor)] = resources_url
        return resources_url

    async def _read_bundle(self, bundle_url: str) -> bytes:
        self.traversals += 1
        try:
            return await self.client.get_bytes(bundle_url, insecure=True)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BundleFetchError(f"Could not fetch resources bundle: {e}") from e

    async def extract_tar_members(
        self, bundle_url: str, member_paths: list[str]
    ) -> dict[str, bytes]:
        """
        Collects several members in a single pass over the archive. Members that
        are not present are left out of the result.
        """
        data = await self._read_bundle(bundle_url)
        log.debug(f"reading tar for: {', '.join(member_paths)}")
        return await asyncio.to_thread(_scan_members, data, set(member_paths))

    async def extract_tar_member(self, bundle_url: str, member_path: str) -> bytes:
        """Returns the first member whose path equals member_path."""
        found = await self.extract_tar_members(bundle_url, [member_path])
        if member_path not in found:
            raise MemberNotFoundError(member_path)
        return found[member_path]

    async def fetch_catalog_sources(
        self, bundle_url: str, lang: str
    ) -> tuple[bytes, bytes]:
        """
        Reads the manifest and the localization table for a language in one
        traversal of the bundle.
        """
        table = strings_member(lang)
        found = await self.extract_tar_members(bundle_url, [ENTRIES_MEMBER, table])
        if ENTRIES_MEMBER not in found:
            raise MemberNotFoundError(ENTRIES_MEMBER)
        if table not in found:
            raise LanguageNotFoundError(lang)
        return found[ENTRIES_MEMBER], found[table]

    async def list_languages(self, bundle_url: str) -> list[str]:
        """Lists the languages that ship a localization table in the bundle."""
        data = await self._read_bundle(bundle_url)
        return await asyncio.to_thread(_scan_languages, data)
