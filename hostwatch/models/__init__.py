from .snapshot import (
    SNAPSHOT_SCHEMA_VERSION,
    DiskReading,
    ServiceReading,
    ServiceStatus,
    Snapshot,
)

__all__ = [
    "SNAPSHOT_SCHEMA_VERSION",
    "DiskReading",
    "ServiceReading",
    "ServiceStatus",
    "Snapshot",
]
