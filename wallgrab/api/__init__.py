"""
HTTP Layer.

This package handles all communication with Apple's configuration and asset
servers.
"""

from .client import AerialHttpClient

__all__ = ["AerialHttpClient"]
