"""
Media Processing Layer.

This package is responsible for all media file operations: streaming assets
to disk and reading their durations.
"""

from .downloader import Downloader
from .duration import DurationProbe, annotate_durations

__all__ = ["Downloader", "DurationProbe", "annotate_durations"]
