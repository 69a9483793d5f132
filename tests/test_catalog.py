"""
Tests for manifest decoding and catalog resolution.
"""
import json
import plistlib

import pytest

from tests.conftest import (
    make_asset,
    make_entries,
    sample_assets,
    sample_categories,
)
from wallgrab.core.catalog import decode_entries, load_localization, resolve_catalog
from wallgrab.exceptions import (
    AmbiguousSubcategoryError,
    DuplicateAssetError,
    LanguageNotFoundError,
    MissingLocalizationError,
    ResolutionError,
    SchemaError,
    UnknownCategoryError,
    UnknownSubcategoryError,
)


def _manifest(assets, categories=None):
    return json.dumps(make_entries(assets, categories)).encode()


class TestDecodeEntries:
    """Tests for strict decoding of entries.json"""

    def test_decodes_sample(self, manifest_bytes):
        entries = decode_entries(manifest_bytes)
        assert entries.version == 1
        assert entries.localization_version == "21M-1"
        assert len(entries.assets) == 3
        assert entries.assets[1].shot_id == "BIGSUR_001"
        assert entries.assets[1].url.endswith("BIGSUR_001_4K_SDR.mov")
        assert entries.assets[1].extension == ".mov"
        assert entries.categories[0].subcategories[0].id == "SUB-CALIFORNIA"

    def test_unknown_top_level_field_rejected(self):
        doc = make_entries(sample_assets())
        doc["somethingNew"] = True
        with pytest.raises(SchemaError):
            decode_entries(json.dumps(doc).encode())

    def test_unknown_asset_field_rejected(self):
        asset = make_asset("A-1", "SHOT_1", "EARTH_NAME", ["CAT-SPACE"])
        asset["url-4K-HDR-240FPS"] = "https://example.com/x.mov"
        with pytest.raises(SchemaError):
            decode_entries(_manifest([asset]))

    def test_invalid_json_rejected(self):
        with pytest.raises(SchemaError):
            decode_entries(b"{not json")

    def test_asset_dump_keeps_wire_fields_only(self, manifest_bytes):
        """Resolved names live on the slot, never on the decoded asset"""
        asset = decode_entries(manifest_bytes).assets[0]
        dumped = asset.model_dump(by_alias=True)
        assert "url-4K-SDR-240FPS" in dumped
        assert "name" not in dumped
        assert "size" not in dumped
        assert "out" not in dumped


class TestCategoryLookup:
    """Tests for category and subcategory key lookups"""

    def test_category_key(self, manifest_bytes):
        entries = decode_entries(manifest_bytes)
        assert entries.category_key("CAT-SPACE") == "AerialCategorySpace"

    def test_unknown_category(self, manifest_bytes):
        entries = decode_entries(manifest_bytes)
        with pytest.raises(UnknownCategoryError):
            entries.category_key("CAT-NOPE")

    def test_subcategory_key(self, manifest_bytes):
        entries = decode_entries(manifest_bytes)
        key = entries.subcategory_key(["CAT-LANDSCAPE"], "SUB-CALIFORNIA")
        assert key == "AerialSubcategoryCalifornia"

    def test_subcategory_requires_single_category(self, manifest_bytes):
        entries = decode_entries(manifest_bytes)
        with pytest.raises(AmbiguousSubcategoryError):
            entries.subcategory_key(["CAT-LANDSCAPE", "CAT-SPACE"], "SUB-CALIFORNIA")
        with pytest.raises(AmbiguousSubcategoryError):
            entries.subcategory_key([], "SUB-CALIFORNIA")

    def test_subcategory_of_other_category(self, manifest_bytes):
        entries = decode_entries(manifest_bytes)
        with pytest.raises(UnknownSubcategoryError):
            entries.subcategory_key(["CAT-SPACE"], "SUB-CALIFORNIA")


class TestLoadLocalization:
    """Tests for decoding localization tables"""

    def test_loads_string_map(self, localization):
        assert load_localization(plistlib.dumps(localization), "en") == localization

    def test_missing_table(self):
        with pytest.raises(LanguageNotFoundError) as exc_info:
            load_localization(None, "xx")
        assert exc_info.value.lang == "xx"

    def test_garbage_table(self):
        with pytest.raises(SchemaError):
            load_localization(b"\x00\x01 not a plist", "en")

    def test_non_string_values(self):
        with pytest.raises(SchemaError):
            load_localization(plistlib.dumps({"KEY": 3}), "en")


class TestResolveCatalog:
    """Tests for resolving the catalog"""

    def test_identifiers_sorted(self, manifest_bytes, localization):
        catalog = resolve_catalog(manifest_bytes, localization)
        assert [slot.identifier for slot in catalog] == [
            "Landscapes/California/Big Sur.mov",
            "Landscapes/Tahoe.mov",
            "Space/Earth.mov",
        ]

    def test_slot_names(self, manifest_bytes, localization):
        slot = resolve_catalog(manifest_bytes, localization).slots[0]
        assert slot.name == "Big Sur"
        assert slot.category_names == ["Landscapes"]
        assert slot.subcategory_names == ["California"]
        assert slot.names == ["Landscapes", "California", "Big Sur"]
        assert str(slot) == slot.identifier
        assert slot.size == 0
        assert slot.out is None
        assert not slot.dl

    def test_deterministic_regardless_of_manifest_order(self, localization):
        assets = sample_assets()
        first = resolve_catalog(_manifest(assets), localization)
        second = resolve_catalog(_manifest(list(reversed(assets))), localization)
        assert [s.identifier for s in first] == [s.identifier for s in second]

    def test_plain_code_point_order(self):
        """Uppercase sorts before lowercase; no locale collation"""
        assets = [
            make_asset("A-1", "S1", "LOWER", ["CAT-SPACE"]),
            make_asset("A-2", "S2", "UPPER", ["CAT-SPACE"]),
        ]
        localization = {"AerialCategorySpace": "Space", "LOWER": "aurora", "UPPER": "Zenith"}
        catalog = resolve_catalog(_manifest(assets), localization)
        assert [slot.name for slot in catalog] == ["Zenith", "aurora"]

    def test_duplicate_identifier_is_fatal(self, localization):
        assets = sample_assets()
        assets.append(make_asset("A-EARTH-2", "EARTH_002", "EARTH_NAME", ["CAT-SPACE"]))
        with pytest.raises(DuplicateAssetError) as exc_info:
            resolve_catalog(_manifest(assets), localization)
        assert exc_info.value.identifier == "Space/Earth.mov"

    def test_same_name_in_different_categories(self, localization):
        assets = [
            make_asset("A-1", "S1", "EARTH_NAME", ["CAT-SPACE"]),
            make_asset("A-2", "S2", "EARTH_NAME", ["CAT-LANDSCAPE"]),
        ]
        catalog = resolve_catalog(_manifest(assets), localization)
        assert len(catalog) == 2

    def test_missing_asset_name_key(self, localization):
        del localization["TAHOE_NAME"]
        with pytest.raises(MissingLocalizationError) as exc_info:
            resolve_catalog(_manifest(sample_assets()), localization)
        assert exc_info.value.key == "TAHOE_NAME"

    def test_missing_category_name_key(self, localization):
        del localization["AerialCategorySpace"]
        with pytest.raises(MissingLocalizationError):
            resolve_catalog(_manifest(sample_assets()), localization)

    def test_unknown_category_reference(self, localization):
        assets = [make_asset("A-1", "S1", "EARTH_NAME", ["CAT-OCEAN"])]
        with pytest.raises(UnknownCategoryError):
            resolve_catalog(_manifest(assets), localization)

    def test_subcategory_with_two_categories(self, localization):
        assets = [
            make_asset(
                "A-1", "S1", "EARTH_NAME", ["CAT-LANDSCAPE", "CAT-SPACE"], ["SUB-CALIFORNIA"]
            )
        ]
        with pytest.raises(AmbiguousSubcategoryError):
            resolve_catalog(_manifest(assets), localization)

    def test_name_is_sanitized(self, localization):
        localization["EARTH_NAME"] = "Earth: Night/Day"
        catalog = resolve_catalog(_manifest(sample_assets()), localization)
        identifiers = [slot.identifier for slot in catalog]
        assert "Space/Earth NightDay.mov" in identifiers

    def test_empty_name_after_sanitizing(self, localization):
        localization["EARTH_NAME"] = "///"
        with pytest.raises(ResolutionError):
            resolve_catalog(_manifest(sample_assets()), localization)

    def test_empty_manifest(self, localization):
        catalog = resolve_catalog(_manifest([], sample_categories()), localization)
        assert len(catalog) == 0
        assert catalog.total_size == 0
