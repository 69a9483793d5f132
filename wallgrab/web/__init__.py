"""
Resources Layer.

This package locates the versioned aerials resources bundle and extracts the
manifest and localization tables from it.
"""

from .bundle_fetcher import BundleFetcher

__all__ = ["BundleFetcher"]
