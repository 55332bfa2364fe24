from __future__ import annotations

from hostwatch.engine.thresholds import ThresholdConfig
from hostwatch.models import Snapshot


def evaluate(
    current: Snapshot,
    previous: Snapshot | None,
    thresholds: ThresholdConfig,
) -> list[str]:
    """Compare a fresh snapshot against thresholds and the previous run.

    Returns one message per fired rule, ordered CPU, memory, disks (in
    ``current.disks`` order), services (in ``current.services`` order),
    time drift, time zone. Neither snapshot is modified.
    """
    alerts: list[str] = []
    alerts.extend(_check_cpu(current, thresholds))
    alerts.extend(_check_memory(current, thresholds))
    alerts.extend(_check_disks(current, thresholds))
    alerts.extend(_check_services(current, previous))
    alerts.extend(_check_time_drift(current, thresholds))
    alerts.extend(_check_time_zone(current, thresholds))
    return list(dict.fromkeys(alerts))


# ── rules ─────────────────────────────────────────────


def _check_cpu(current: Snapshot, thresholds: ThresholdConfig) -> list[str]:
    if current.cpu_percent >= thresholds.cpu:
        return [f"CPU usage is at {current.cpu_percent:.2f}% (threshold {thresholds.cpu:.2f}%)"]
    return []


def _check_memory(current: Snapshot, thresholds: ThresholdConfig) -> list[str]:
    if current.memory_percent >= thresholds.memory:
        return [
            f"Memory usage is at {current.memory_percent:.2f}% "
            f"(threshold {thresholds.memory:.2f}%)"
        ]
    return []


def _check_disks(current: Snapshot, thresholds: ThresholdConfig) -> list[str]:
    return [
        f"Disk {disk.drive_label} free space is at {disk.free_percent:.2f}% "
        f"(threshold {thresholds.disk_space:.2f}%)"
        for disk in current.disks
        if disk.free_percent <= thresholds.disk_space
    ]


def _check_services(current: Snapshot, previous: Snapshot | None) -> list[str]:
    # No baseline, no transitions
    if previous is None:
        return []
    alerts: list[str] = []
    for svc in current.services:
        before = previous.service_status(svc.name)
        if before is None or before == svc.status:
            continue
        alerts.append(f"Service {svc.name} changed status from {before} to {svc.status}")
    return alerts


def _check_time_drift(current: Snapshot, thresholds: ThresholdConfig) -> list[str]:
    drift = current.time_drift_seconds
    if drift is not None and abs(drift) > thresholds.time_drift:
        return [
            f"Time drift is {drift:.1f} seconds (threshold {thresholds.time_drift:.1f} seconds)"
        ]
    return []


def _check_time_zone(current: Snapshot, thresholds: ThresholdConfig) -> list[str]:
    if current.time_zone_id != thresholds.expected_time_zone:
        return [f"Time zone is {current.time_zone_id}, expected {thresholds.expected_time_zone}"]
    return []
