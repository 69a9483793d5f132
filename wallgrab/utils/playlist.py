"""
Utility for generating the M3U playlist of the downloaded aerials.
"""

import logging
from pathlib import Path

from wallgrab.exceptions import PathTraversalError
from wallgrab.models.manifest import Catalog

log = logging.getLogger(__name__)


def render_m3u(catalog: Catalog) -> str:
    """Renders the catalog as an extended M3U playlist, in catalog order."""
    content = ["#EXTM3U", "#PLAYLIST: Wallpapers"]
    for slot in catalog.slots:
        # -1 marks an unknown duration
        length = slot.duration if slot.duration > 0 else -1
        content.append(f"#EXTINF:{length},{slot.name}")
        content.append(slot.identifier)
    return "\n".join(content) + "\n"


def write_playlist(catalog: Catalog, output_name: str, base_dir: Path) -> Path | None:
    """
    Writes the playlist as base_dir/output_name. Does nothing when no output
    name is configured.
    """
    if not output_name:
        return None

    base = base_dir.resolve()
    playlist_path = (base / output_name).resolve()
    if playlist_path.parent != base or playlist_path == base:
        raise PathTraversalError(f"invalid m3u file name {output_name!r}")

    base.mkdir(parents=True, exist_ok=True)
    with open(playlist_path, "w", encoding="utf-8") as f:
        f.write(render_m3u(catalog))
    log.info(f"Generated playlist: '{playlist_path}'")
    return playlist_path
