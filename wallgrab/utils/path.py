"""
Utilities for building safe output paths.
"""

from pathlib import Path

from pathvalidate import sanitize_filename

from wallgrab.exceptions import PathTraversalError


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def safe_name(name: str) -> str:
    """Makes a single path component safe to use as a file or directory name."""
    return sanitize_filename(name, platform="universal").strip()


def safe_join(base_dir: Path, relative: str) -> Path:
    """
    Joins a relative, '/'-separated path onto base_dir, refusing any result that
    is not located inside base_dir.
    """
    base = base_dir.resolve()
    candidate = (base / relative).resolve()
    if candidate == base or not candidate.is_relative_to(base):
        raise PathTraversalError(f"{relative!r} escapes {base_dir}")
    return candidate
