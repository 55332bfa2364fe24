from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from hostwatch.errors import TransientCollectorError

logger = logging.getLogger(__name__)


class BaseCollector(ABC):
    """Abstract base for all host collectors.

    Subclasses implement ``collect()`` which returns one typed reading or
    raises ``TransientCollectorError``. The base class bounds each call with
    ``timeout`` so a hung probe cannot stall the run.
    """

    name: str = "base"
    timeout: float = 15.0  # seconds per collect() call

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None:
            self.timeout = timeout

    # ── abstract method ─────────────────────────────────

    @abstractmethod
    async def collect(self) -> Any:
        """Read the metric from the host."""
        ...

    # ── public ──────────────────────────────────────────

    async def sample(self) -> Any:
        """Run ``collect()`` under the collector's timeout."""
        try:
            value = await asyncio.wait_for(self.collect(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise TransientCollectorError(
                self.name, f"timed out after {self.timeout:.1f}s"
            ) from exc
        logger.debug("Collector [%s] returned %r", self.name, value)
        return value
