"""
Builds the resolved asset catalog from the raw manifest and a localization
table: display names, category hierarchy, composed identifiers, uniqueness
and ordering.
"""

import logging
import plistlib
from xml.parsers.expat import ExpatError

from pydantic import ValidationError

from wallgrab.exceptions import (
    DuplicateAssetError,
    LanguageNotFoundError,
    MissingLocalizationError,
    ResolutionError,
    SchemaError,
)
from wallgrab.models.manifest import Asset, AssetSlot, Catalog, Entries
from wallgrab.utils.path import safe_name

log = logging.getLogger(__name__)


def decode_entries(manifest: bytes) -> Entries:
    """Strictly decodes entries.json; unknown fields are an error."""
    try:
        return Entries.model_validate_json(manifest)
    except ValidationError as e:
        raise SchemaError(f"Invalid manifest: {e}") from e


def load_localization(table: bytes | None, lang: str) -> dict[str, str]:
    """Decodes a Localizable.nocache.strings plist into a key -> string map."""
    if table is None:
        raise LanguageNotFoundError(lang)
    try:
        strings = plistlib.loads(table)
    except (plistlib.InvalidFileException, ValueError, ExpatError) as e:
        raise SchemaError(f"Invalid localization table for '{lang}': {e}") from e
    if not isinstance(strings, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in strings.items()
    ):
        raise SchemaError(f"Localization table for '{lang}' is not a string map.")
    return strings


def _localize(localization: dict[str, str], key: str, asset: Asset) -> str:
    if key not in localization:
        raise MissingLocalizationError(key)
    name = safe_name(localization[key])
    if not name:
        raise ResolutionError(
            f"{asset.shot_id} has an empty name for localization key '{key}'"
        )
    return name


def resolve_slot(entries: Entries, asset: Asset, localization: dict[str, str]) -> AssetSlot:
    """Resolves the display name and category hierarchy of one asset."""
    return AssetSlot(
        asset=asset,
        name=_localize(localization, asset.localized_name_key, asset),
        category_names=[
            _localize(localization, entries.category_key(category_id), asset)
            for category_id in asset.categories
        ],
        subcategory_names=[
            _localize(
                localization,
                entries.subcategory_key(asset.categories, subcategory_id),
                asset,
            )
            for subcategory_id in asset.subcategories
        ],
    )


def resolve_catalog(manifest: bytes, localization: dict[str, str]) -> Catalog:
    """
    Decodes the manifest and resolves every asset against the localization
    table.

    Two assets composing the same identifier is fatal (DuplicateAssetError);
    no disambiguating suffix is ever invented. The result is sorted by
    identifier using plain code point order, so it is reproducible across
    locales.
    """
    entries = decode_entries(manifest)
    slots = [resolve_slot(entries, asset, localization) for asset in entries.assets]

    seen: dict[str, str] = {}
    for slot in slots:
        identifier = slot.identifier
        if identifier in seen:
            raise DuplicateAssetError(slot.asset.shot_id, identifier)
        seen[identifier] = slot.asset.shot_id

    slots.sort(key=lambda s: s.identifier)
    log.debug(
        f"resolved {len(slots)} assets in {len(entries.categories)} categories "
        f"(manifest v{entries.version}, localization {entries.localization_version})"
    )
    return Catalog(entries=entries, slots=slots)
