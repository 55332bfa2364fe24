from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SNAPSHOT_SCHEMA_VERSION = 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class ServiceStatus(StrEnum):
    RUNNING = "Running"
    STOPPED = "Stopped"
    START_PENDING = "StartPending"
    STOP_PENDING = "StopPending"
    CONTINUE_PENDING = "ContinuePending"
    PAUSE_PENDING = "PausePending"
    PAUSED = "Paused"
    NOT_FOUND = "NotFound"


class DiskReading(BaseModel):
    """Free space on one fixed volume."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    drive_label: str = Field(min_length=1)
    free_percent: float = Field(ge=0.0, le=100.0)

    @field_validator("free_percent")
    @classmethod
    def _round_free(cls, v: float) -> float:
        return round(v, 2)


class ServiceReading(BaseModel):
    """Observed state of one tracked service."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    status: ServiceStatus


class Snapshot(BaseModel):
    """Everything observed on the host during a single run.

    Snapshots are immutable. ``disks`` is keyed by ``drive_label`` and
    ``services`` by ``name``; both keys must be unique within a snapshot.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    timestamp: datetime = Field(default_factory=_utc_now)
    cpu_percent: float = Field(ge=0.0, le=100.0)
    memory_percent: float = Field(ge=0.0, le=100.0)
    disks: tuple[DiskReading, ...] = ()
    services: tuple[ServiceReading, ...] = ()
    time_drift_seconds: float | None = None
    time_zone_id: str

    @field_validator("timestamp")
    @classmethod
    def _second_precision(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v.replace(microsecond=0)

    @field_validator("cpu_percent", "memory_percent")
    @classmethod
    def _round_percent(cls, v: float) -> float:
        return round(v, 2)

    @model_validator(mode="after")
    def _unique_keys(self) -> Snapshot:
        labels = [d.drive_label for d in self.disks]
        if len(labels) != len(set(labels)):
            raise ValueError(f"duplicate drive labels in snapshot: {labels}")
        names = [s.name for s in self.services]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate service names in snapshot: {names}")
        return self

    def service_status(self, name: str) -> ServiceStatus | None:
        """Status of ``name`` in this snapshot, or None if it was not tracked."""
        for svc in self.services:
            if svc.name == name:
                return svc.status
        return None
