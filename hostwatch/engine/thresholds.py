from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from hostwatch.config import Settings

logger = logging.getLogger(__name__)


class ThresholdConfig(BaseModel):
    """Static alert boundaries, fixed for the duration of one run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cpu: float = Field(ge=0.0, le=100.0)
    memory: float = Field(ge=0.0, le=100.0)
    disk_space: float = Field(ge=0.0, le=100.0)
    time_drift: float = Field(ge=0.0)
    expected_time_zone: str
    services: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings) -> ThresholdConfig:
        """Build thresholds from settings, overlaid with ``thresholds_file`` if set."""
        values = {
            "cpu": settings.cpu_threshold,
            "memory": settings.memory_threshold,
            "disk_space": settings.disk_space_threshold,
            "time_drift": settings.time_drift_threshold,
            "expected_time_zone": settings.expected_time_zone,
            "services": settings.services,
        }
        if settings.thresholds_file:
            values.update(load_threshold_file(settings.thresholds_file))
        return cls(**values)


def load_threshold_file(path: str | Path) -> dict:
    """Read threshold overrides from a YAML mapping.

    The file may be either a flat mapping or nest the values under a
    ``thresholds`` key. A missing or unparsable file is a setup error.
    """
    raw = yaml.safe_load(Path(path).read_text())
    if raw is None:
        return {}
    if isinstance(raw, dict) and isinstance(raw.get("thresholds"), dict):
        raw = raw["thresholds"]
    if not isinstance(raw, dict):
        raise ValueError(f"threshold file {path} must contain a mapping")
    logger.info("Loaded threshold overrides from %s: %s", path, sorted(raw))
    return raw
