"""
Reads media durations with ffprobe and annotates the catalog with them.
"""

import asyncio
import logging
import math
import shutil
from pathlib import Path

from wallgrab.exceptions import DurationProbeError
from wallgrab.models.manifest import Catalog

log = logging.getLogger(__name__)

_UNRESOLVED = object()


class DurationProbe:
    """
    Handle on the external ffprobe binary. The binary is looked up once, on
    first use; when it is missing the probe reports itself unavailable.
    """

    def __init__(self, executable: str = "ffprobe"):
        self.executable = executable
        self._path: object = _UNRESOLVED

    @property
    def path(self) -> str | None:
        if self._path is _UNRESOLVED:
            self._path = shutil.which(self.executable)
            log.debug(f"{self.executable}: {self._path or 'not found'}")
        return self._path  # type: ignore[return-value]

    @property
    def available(self) -> bool:
        return self.path is not None

    async def probe(self, file_path: Path) -> int:
        """Returns the duration of a media file in whole seconds, rounded up."""
        if not self.available:
            raise DurationProbeError(f"{self.executable} is not available")

        proc = await asyncio.create_subprocess_exec(
            self.path,
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(file_path),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        stdout, _ = await proc.communicate()
        if proc.returncode != 0:
            raise DurationProbeError(
                f"{self.executable} exited with {proc.returncode} for '{file_path}'"
            )

        try:
            seconds = float(stdout.decode().strip())
        except ValueError as e:
            raise DurationProbeError(
                f"unable to parse duration for '{file_path}': {e}"
            ) from e
        if not math.isfinite(seconds) or seconds <= 0.0:
            raise DurationProbeError(f"unable to determine duration for '{file_path}'")
        return math.ceil(seconds)


async def annotate_durations(catalog: Catalog, probe: DurationProbe) -> bool:
    """
    Sets the duration of every slot that has an output path. Returns False
    without touching the catalog when ffprobe is not installed.
    """
    if not probe.available:
        log.debug("ffprobe not available, skipping durations")
        return False

    for slot in catalog.slots:
        if slot.out is None:
            continue
        slot.duration = await probe.probe(slot.out)
        log.debug(f"{slot.out} duration {slot.duration}s")
    return True
