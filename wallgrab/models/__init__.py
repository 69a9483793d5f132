"""
Data Models Layer.

This package contains the Pydantic models for the aerials manifest and the
application configuration, plus the dataclasses that carry pipeline state and
session statistics.
"""

from .config import GrabConfig
from .manifest import Asset, AssetSlot, Catalog, Category, Entries, Subcategory
from .stats import DownloadStats

__all__ = [
    "Asset",
    "AssetSlot",
    "Catalog",
    "Category",
    "DownloadStats",
    "Entries",
    "GrabConfig",
    "Subcategory",
]
