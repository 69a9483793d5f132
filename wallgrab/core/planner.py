"""
Decides which assets need to be downloaded by comparing remote sizes against
the files already present in the destination directory.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from wallgrab.exceptions import PathConflictError, ZeroSizeAssetError
from wallgrab.models.manifest import Catalog
from wallgrab.utils.path import safe_join

log = logging.getLogger(__name__)


@dataclass
class SyncPlan:
    to_download: int = 0
    up_to_date: int = 0
    bytes_needed: int = 0


def plan_downloads(catalog: Catalog, base_dir: Path) -> SyncPlan:
    """
    Sets the output path and download flag of every slot.

    A local file whose size equals the remote size is treated as already
    downloaded. There is no checksum comparison, so a corrupted file of the
    right length is never re-fetched.
    """
    plan = SyncPlan()
    for slot in catalog.slots:
        if slot.size == 0:
            raise ZeroSizeAssetError(slot.identifier)

        out = safe_join(base_dir, slot.identifier)
        local_size = 0
        try:
            stat = out.stat()
        except FileNotFoundError:
            pass
        else:
            if out.is_dir():
                raise PathConflictError(str(out))
            local_size = stat.st_size

        slot.out, slot.dl = out, local_size != slot.size
        if slot.dl:
            plan.to_download += 1
            plan.bytes_needed += slot.size
            log.debug(f"{slot.identifier}: local {local_size} != remote {slot.size}")
        else:
            plan.up_to_date += 1
    return plan
