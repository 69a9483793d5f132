"""
Shared test fixtures for the wallgrab test suite.
"""
import asyncio
import io
import json
import os
import plistlib
import shutil
import sys
import tarfile
import tempfile

import aiohttp
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from wallgrab.web.bundle_fetcher import (
    ENTRIES_MEMBER,
    RESOURCES_CONFIG_URL,
    strings_member,
)

BUNDLE_URL = "https://sylvan.apple.com/itunes-assets/resources-15-0.tar"
CONFIG_URL = RESOURCES_CONFIG_URL.format(major=15, minor=0)
ASSET_BASE = "https://sylvan.apple.com/itunes-assets/Aerials126"


def make_asset(asset_id, shot_id, name_key, categories, subcategories=(), ext=".mov"):
    """Builds one asset as it appears in entries.json."""
    return {
        "id": asset_id,
        "showInTopLevel": True,
        "shotID": shot_id,
        "localizedNameKey": name_key,
        "accessibilityLabel": shot_id.replace("_", " ").title(),
        "pointsOfInterest": {"0": f"{name_key}_POI_0"},
        "previewImage": f"{ASSET_BASE}/{shot_id}.jpg",
        "includeInShuffle": True,
        "url-4K-SDR-240FPS": f"{ASSET_BASE}/{shot_id}_4K_SDR{ext}",
        "subcategories": list(subcategories),
        "preferredOrder": 0,
        "categories": list(categories),
        "group": "",
    }


def make_entries(assets, categories=None):
    """Builds an entries.json document."""
    return {
        "version": 1,
        "localizationVersion": "21M-1",
        "assets": assets,
        "initialAssetCount": len(assets),
        "categories": categories if categories is not None else sample_categories(),
    }


def sample_categories():
    return [
        {
            "id": "CAT-LANDSCAPE",
            "preferredOrder": 0,
            "representativeAssetID": "A-BIGSUR",
            "localizedNameKey": "AerialCategoryLandscapes",
            "subcategories": [
                {
                    "id": "SUB-CALIFORNIA",
                    "previewImage": f"{ASSET_BASE}/california.jpg",
                    "localizedNameKey": "AerialSubcategoryCalifornia",
                    "preferredOrder": 0,
                    "localizedDescriptionKey": "AerialSubcategoryCaliforniaDescription",
                    "representativeAssetID": "A-BIGSUR",
                },
            ],
            "localizedDescriptionKey": "AerialCategoryLandscapesDescription",
            "previewImage": f"{ASSET_BASE}/landscapes.jpg",
        },
        {
            "id": "CAT-SPACE",
            "preferredOrder": 1,
            "representativeAssetID": "A-EARTH",
            "localizedNameKey": "AerialCategorySpace",
            "subcategories": [],
            "localizedDescriptionKey": "AerialCategorySpaceDescription",
            "previewImage": f"{ASSET_BASE}/space.jpg",
        },
    ]


SAMPLE_LOCALIZATION = {
    "AerialCategoryLandscapes": "Landscapes",
    "AerialSubcategoryCalifornia": "California",
    "AerialCategorySpace": "Space",
    "BIG_SUR_NAME": "Big Sur",
    "EARTH_NAME": "Earth",
    "TAHOE_NAME": "Tahoe",
}


def sample_assets():
    return [
        make_asset("A-EARTH", "EARTH_001", "EARTH_NAME", ["CAT-SPACE"]),
        make_asset(
            "A-BIGSUR", "BIGSUR_001", "BIG_SUR_NAME", ["CAT-LANDSCAPE"], ["SUB-CALIFORNIA"]
        ),
        make_asset("A-TAHOE", "TAHOE_001", "TAHOE_NAME", ["CAT-LANDSCAPE"]),
    ]


def build_tar(members):
    """Builds an uncompressed tar archive from a name -> bytes mapping."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def build_bundle(entries=None, localizations=None, extra=None):
    """Builds a resources bundle holding entries.json and localization tables."""
    members = {ENTRIES_MEMBER: json.dumps(entries or make_entries(sample_assets())).encode()}
    for lang, table in (localizations or {"en": SAMPLE_LOCALIZATION}).items():
        members[strings_member(lang)] = plistlib.dumps(table)
    members.update(extra or {})
    return build_tar(members)


class FakeHttpClient:
    """In-memory stand-in for AerialHttpClient."""

    def __init__(
        self, bodies=None, sizes=None, errors=None, delay=0.0, delays=None, stall=False
    ):
        self.bodies = dict(bodies or {})
        self.sizes = dict(sizes or {})
        self.errors = dict(errors or {})
        self.delay = delay
        self.delays = dict(delays or {})
        self.stall = stall
        self.requests = []
        self.active = 0
        self.max_active = 0

    def _check(self, method, url):
        self.requests.append((method, url))
        if url in self.errors:
            raise self.errors[url]

    async def get_bytes(self, url, insecure=False, use_cache=True):
        self._check("GET", url)
        if url not in self.bodies:
            raise aiohttp.ClientConnectionError(f"no route to {url}")
        return self.bodies[url]

    async def head_size(self, url, insecure=True, use_cache=True):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, self.delay))
            self._check("HEAD", url)
            if url in self.sizes:
                return self.sizes[url]
            return len(self.bodies.get(url, b""))
        finally:
            self.active -= 1

    async def iter_chunks(self, url, insecure=True, chunk_size=262144):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, self.delay))
            self._check("GET", url)
            body = self.bodies[url]
            for i in range(0, len(body), 4):
                yield body[i : i + 4]
                if self.stall:
                    # Hangs mid-body until the consumer is cancelled
                    await asyncio.sleep(3600)
        finally:
            self.active -= 1


def asset_bodies(assets):
    """Distinct fake media bodies for each asset URL."""
    return {
        asset["url-4K-SDR-240FPS"]: (asset["shotID"] * 3).encode() for asset in assets
    }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    tmpdir = tempfile.mkdtemp()
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def manifest_bytes():
    return json.dumps(make_entries(sample_assets())).encode()


@pytest.fixture
def localization():
    return dict(SAMPLE_LOCALIZATION)


@pytest.fixture
def fake_client():
    """A client serving the config plist, the bundle and every sample asset."""
    bodies = {
        CONFIG_URL: plistlib.dumps({"resources-url": BUNDLE_URL}),
        BUNDLE_URL: build_bundle(),
    }
    bodies.update(asset_bodies(sample_assets()))
    return FakeHttpClient(bodies=bodies)
