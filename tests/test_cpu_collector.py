from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import patch

import psutil
import pytest

from hostwatch.collectors.base import BaseCollector
from hostwatch.collectors.cpu_collector import CpuCollector, MemoryCollector
from hostwatch.errors import TransientCollectorError


class SlowCollector(BaseCollector):
    """Collector that never finishes in time."""

    name = "slow"

    async def collect(self) -> float:
        await asyncio.sleep(5)
        return 1.0


@pytest.mark.asyncio
async def test_cpu_reading_rounded():
    collector = CpuCollector(sample_seconds=0)

    with patch("hostwatch.collectors.cpu_collector.psutil.cpu_percent", return_value=37.456):
        value = await collector.sample()

    assert value == 37.46


@pytest.mark.asyncio
async def test_cpu_sample_interval_passed_through():
    collector = CpuCollector(sample_seconds=0.5)

    with patch("hostwatch.collectors.cpu_collector.psutil.cpu_percent", return_value=1.0) as mock_cpu:
        await collector.collect()

    mock_cpu.assert_called_once_with(interval=0.5)


@pytest.mark.asyncio
async def test_cpu_failure_is_transient():
    collector = CpuCollector(sample_seconds=0)

    with patch(
        "hostwatch.collectors.cpu_collector.psutil.cpu_percent",
        side_effect=psutil.AccessDenied(),
    ):
        with pytest.raises(TransientCollectorError) as exc_info:
            await collector.sample()

    assert exc_info.value.collector == "cpu_collector"


@pytest.mark.asyncio
async def test_memory_reading():
    collector = MemoryCollector()

    with patch(
        "hostwatch.collectors.cpu_collector.psutil.virtual_memory",
        return_value=SimpleNamespace(percent=71.234),
    ):
        assert await collector.sample() == 71.23


@pytest.mark.asyncio
async def test_memory_failure_is_transient():
    collector = MemoryCollector()

    with patch(
        "hostwatch.collectors.cpu_collector.psutil.virtual_memory",
        side_effect=OSError("no /proc/meminfo"),
    ):
        with pytest.raises(TransientCollectorError, match="meminfo"):
            await collector.sample()


@pytest.mark.asyncio
async def test_timeout_becomes_transient_error():
    collector = SlowCollector(timeout=0.05)

    with pytest.raises(TransientCollectorError, match="timed out"):
        await collector.sample()


def test_timeout_override():
    assert SlowCollector().timeout == 15.0
    assert SlowCollector(timeout=2.0).timeout == 2.0
