"""
wallgrab: a concurrent downloader for Apple's aerial video wallpapers.
"""

__version__ = "0.1.0"
