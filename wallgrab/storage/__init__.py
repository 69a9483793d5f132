"""
Storage Layer.

This package handles all data persistence: the configuration file and the
on-disk HTTP response cache.
"""

from .cache import ResponseCache
from .config_manager import ConfigManager

__all__ = ["ConfigManager", "ResponseCache"]
