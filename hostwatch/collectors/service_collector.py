from __future__ import annotations

import asyncio
import contextlib
import logging
import sys

import psutil

from hostwatch.collectors.base import BaseCollector
from hostwatch.models import ServiceReading, ServiceStatus

logger = logging.getLogger(__name__)

# psutil.WindowsService.status() values
_WINDOWS_STATUS: dict[str, ServiceStatus] = {
    "running": ServiceStatus.RUNNING,
    "stopped": ServiceStatus.STOPPED,
    "start_pending": ServiceStatus.START_PENDING,
    "stop_pending": ServiceStatus.STOP_PENDING,
    "continue_pending": ServiceStatus.CONTINUE_PENDING,
    "pause_pending": ServiceStatus.PAUSE_PENDING,
    "paused": ServiceStatus.PAUSED,
}

# systemd ActiveState values
_SYSTEMD_STATUS: dict[str, ServiceStatus] = {
    "active": ServiceStatus.RUNNING,
    "reloading": ServiceStatus.RUNNING,
    "inactive": ServiceStatus.STOPPED,
    "failed": ServiceStatus.STOPPED,
    "activating": ServiceStatus.START_PENDING,
    "deactivating": ServiceStatus.STOP_PENDING,
}


class ServiceCollector(BaseCollector):
    """Reports the status of each configured service, in configuration order.

    Never raises: a service that does not exist, or whose state cannot be
    queried, is reported as ``NotFound``.
    """

    name = "service_collector"

    def __init__(
        self,
        services: list[str] | tuple[str, ...],
        timeout: float | None = None,
        use_windows: bool | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self.services = list(services)
        self.use_windows = sys.platform == "win32" if use_windows is None else use_windows

    async def collect(self) -> list[ServiceReading]:
        readings: list[ServiceReading] = []
        for name in self.services:
            if self.use_windows:
                status = self._windows_status(name)
            else:
                status = await self._systemd_status(name)
            readings.append(ServiceReading(name=name, status=status))
        return readings

    # ── backends ────────────────────────────────────────

    @staticmethod
    def _windows_status(name: str) -> ServiceStatus:
        try:
            raw = psutil.win_service_get(name).status()
        except psutil.NoSuchProcess:
            return ServiceStatus.NOT_FOUND
        except (psutil.Error, OSError) as exc:
            logger.warning("Could not query service %s: %s", name, exc)
            return ServiceStatus.NOT_FOUND
        return _WINDOWS_STATUS.get(raw, ServiceStatus.NOT_FOUND)

    async def _systemd_status(self, name: str) -> ServiceStatus:
        try:
            proc = await asyncio.create_subprocess_exec(
                "systemctl", "show", "--property=LoadState,ActiveState", name,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("Could not query service %s: %s", name, exc)
            return ServiceStatus.NOT_FOUND

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("systemctl timed out querying service %s", name)
            return ServiceStatus.NOT_FOUND
        finally:
            # Also reached on cancellation by the outer collector timeout
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        props = parse_properties(stdout.decode(errors="replace"))
        if props.get("LoadState") != "loaded":
            return ServiceStatus.NOT_FOUND
        return _SYSTEMD_STATUS.get(props.get("ActiveState", ""), ServiceStatus.NOT_FOUND)


def parse_properties(output: str) -> dict[str, str]:
    """Parse ``Key=Value`` lines as printed by ``systemctl show``."""
    props: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            props[key.strip()] = value.strip()
    return props
