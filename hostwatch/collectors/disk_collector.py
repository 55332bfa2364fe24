from __future__ import annotations

import logging

import psutil

from hostwatch.collectors.base import BaseCollector
from hostwatch.errors import TransientCollectorError
from hostwatch.models import DiskReading

logger = logging.getLogger(__name__)

# Pseudo or read-only filesystems that are always "full"
_SKIP_FSTYPES = {"squashfs", "tmpfs", "devtmpfs", "overlay", "iso9660", "udf"}
_SKIP_MOUNT_PREFIXES = ("/snap/", "/run/", "/sys/", "/proc/", "/dev/")


class DiskCollector(BaseCollector):
    """Reports free-space percentage for every fixed volume.

    A volume whose usage cannot be read is logged and left out; the other
    volumes are still reported.
    """

    name = "disk_collector"

    async def collect(self) -> list[DiskReading]:
        try:
            partitions = psutil.disk_partitions(all=False)
        except (psutil.Error, OSError) as exc:
            raise TransientCollectorError(self.name, f"cannot list partitions: {exc}") from exc

        readings: list[DiskReading] = []
        seen: set[str] = set()
        for part in partitions:
            if not self._is_fixed(part):
                continue
            label = self._label(part.mountpoint)
            if label in seen:
                continue
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except (psutil.Error, OSError) as exc:
                logger.warning("Skipping volume %s: %s", label, exc)
                continue
            if not usage.total:
                continue
            seen.add(label)
            free_percent = usage.free / usage.total * 100.0
            readings.append(DiskReading(drive_label=label, free_percent=free_percent))
        return readings

    @staticmethod
    def _is_fixed(part) -> bool:
        opts = (part.opts or "").lower()
        if "cdrom" in opts or "removable" in opts:
            return False
        if part.fstype.lower() in _SKIP_FSTYPES:
            return False
        if part.mountpoint.startswith(_SKIP_MOUNT_PREFIXES) or "/loop" in part.device:
            return False
        return bool(part.fstype)

    @staticmethod
    def _label(mountpoint: str) -> str:
        # "C:\\" -> "C:"; POSIX mountpoints are kept as-is
        if len(mountpoint) >= 2 and mountpoint[1] == ":":
            return mountpoint[:2].upper()
        return mountpoint
