"""
Pydantic models for the aerials manifest (entries.json) and the pipeline state
attached to each asset while it is being resolved, probed and downloaded.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from wallgrab.exceptions import (
    AmbiguousSubcategoryError,
    UnknownCategoryError,
    UnknownSubcategoryError,
)


class _ManifestModel(BaseModel):
    """Base for manifest models; unknown fields are rejected, never ignored."""

    class Config:
        """Pydantic model configuration."""

        extra = "forbid"
        populate_by_name = True


class Subcategory(_ManifestModel):
    id: str
    preview_image: str = Field("", alias="previewImage")
    localized_name_key: str = Field("", alias="localizedNameKey")
    preferred_order: int = Field(0, alias="preferredOrder")
    localized_description_key: str = Field("", alias="localizedDescriptionKey")
    representative_asset_id: str = Field("", alias="representativeAssetID")


class Category(_ManifestModel):
    id: str
    preferred_order: int = Field(0, alias="preferredOrder")
    representative_asset_id: str = Field("", alias="representativeAssetID")
    localized_name_key: str = Field("", alias="localizedNameKey")
    subcategories: list[Subcategory] = Field(default_factory=list)
    localized_description_key: str = Field("", alias="localizedDescriptionKey")
    preview_image: str = Field("", alias="previewImage")


class Asset(_ManifestModel):
    """A single aerial as described by the manifest."""

    id: str
    show_in_top_level: bool = Field(False, alias="showInTopLevel")
    shot_id: str = Field("", alias="shotID")
    localized_name_key: str = Field("", alias="localizedNameKey")
    accessibility_label: str = Field("", alias="accessibilityLabel")
    points_of_interest: dict[str, str] = Field(
        default_factory=dict, alias="pointsOfInterest"
    )
    preview_image: str = Field("", alias="previewImage")
    include_in_shuffle: bool = Field(False, alias="includeInShuffle")
    url: str = Field("", alias="url-4K-SDR-240FPS")
    subcategories: list[str] = Field(default_factory=list)
    preferred_order: int = Field(0, alias="preferredOrder")
    categories: list[str] = Field(default_factory=list)
    group: str = ""

    @property
    def extension(self) -> str:
        """The file extension of the media URL (e.g. '.mov')."""
        return PurePosixPath(urlparse(self.url).path).suffix


class Entries(_ManifestModel):
    """The top level container for entries.json."""

    version: int = 0
    localization_version: str = Field("", alias="localizationVersion")
    assets: list[Asset] = Field(default_factory=list)
    initial_asset_count: int = Field(0, alias="initialAssetCount")
    categories: list[Category] = Field(default_factory=list)

    def category_key(self, category_id: str) -> str:
        """Returns the localization key of a category."""
        for category in self.categories:
            if category.id == category_id:
                return category.localized_name_key
        raise UnknownCategoryError(category_id)

    def subcategory_key(self, category_ids: list[str], subcategory_id: str) -> str:
        """
        Returns the localization key of a subcategory. Only defined when the
        asset belongs to exactly one category.
        """
        if len(category_ids) != 1:
            raise AmbiguousSubcategoryError(subcategory_id, list(category_ids))
        for category in self.categories:
            if category.id != category_ids[0]:
                continue
            for subcategory in category.subcategories:
                if subcategory.id == subcategory_id:
                    return subcategory.localized_name_key
        raise UnknownSubcategoryError(subcategory_id)


@dataclass
class AssetSlot:
    """
    Pipeline state for one asset. Only the worker that owns a slot touches it
    while a phase is running.
    """

    asset: Asset
    name: str = ""
    category_names: list[str] = field(default_factory=list)
    subcategory_names: list[str] = field(default_factory=list)
    size: int = 0
    out: Path | None = None
    dl: bool = False
    duration: int = 0

    @property
    def names(self) -> list[str]:
        return [*self.category_names, *self.subcategory_names, self.name]

    @property
    def identifier(self) -> str:
        """The composed identifier, also the path relative to the destination."""
        return "/".join(self.names) + self.asset.extension

    def __str__(self) -> str:
        return self.identifier


@dataclass
class Catalog:
    """A resolved manifest with its assets in identifier order."""

    entries: Entries
    slots: list[AssetSlot] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self):
        return iter(self.slots)

    @property
    def total_size(self) -> int:
        return sum(slot.size for slot in self.slots)

    @property
    def pending(self) -> list[AssetSlot]:
        """Slots marked for download."""
        return [slot for slot in self.slots if slot.dl]
