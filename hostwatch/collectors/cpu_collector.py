from __future__ import annotations

import asyncio

import psutil

from hostwatch.collectors.base import BaseCollector
from hostwatch.errors import TransientCollectorError


class CpuCollector(BaseCollector):
    """Samples system-wide CPU utilization over ``sample_seconds``."""

    name = "cpu_collector"

    def __init__(self, sample_seconds: float = 1.0, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.sample_seconds = sample_seconds

    async def collect(self) -> float:
        try:
            percent = await asyncio.to_thread(psutil.cpu_percent, interval=self.sample_seconds)
        except (psutil.Error, OSError) as exc:
            raise TransientCollectorError(self.name, str(exc)) from exc
        return round(float(percent), 2)


class MemoryCollector(BaseCollector):
    """Reads physical memory utilization."""

    name = "memory_collector"

    async def collect(self) -> float:
        try:
            mem = psutil.virtual_memory()
        except (psutil.Error, OSError) as exc:
            raise TransientCollectorError(self.name, str(exc)) from exc
        return round(float(mem.percent), 2)
