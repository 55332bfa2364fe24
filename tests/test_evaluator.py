"""Tests for hostwatch.engine.evaluator."""

from __future__ import annotations

import pytest

from hostwatch.engine.evaluator import evaluate
from hostwatch.engine.thresholds import ThresholdConfig
from hostwatch.models import DiskReading, ServiceReading, ServiceStatus, Snapshot


# ── helpers ────────────────────────────────────────────

THRESHOLDS = ThresholdConfig(
    cpu=90.0,
    memory=90.0,
    disk_space=10.0,
    time_drift=60.0,
    expected_time_zone="UTC-06",
    services=("DB", "Web"),
)


def _quiet(**overrides) -> Snapshot:
    """A snapshot that trips no threshold rule."""
    values = dict(
        cpu_percent=THRESHOLDS.cpu - 1,
        memory_percent=THRESHOLDS.memory - 1,
        disks=[DiskReading(drive_label="C:", free_percent=THRESHOLDS.disk_space + 1)],
        services=[
            ServiceReading(name="DB", status=ServiceStatus.RUNNING),
            ServiceReading(name="Web", status=ServiceStatus.RUNNING),
        ],
        time_drift_seconds=THRESHOLDS.time_drift - 1,
        time_zone_id="UTC-06",
    )
    values.update(overrides)
    return Snapshot(**values)


def _services(**statuses: ServiceStatus) -> list[ServiceReading]:
    return [ServiceReading(name=n, status=s) for n, s in statuses.items()]


# ── tests ──────────────────────────────────────────────

class TestQuietRun:
    def test_no_alerts(self):
        assert evaluate(_quiet(), _quiet(), THRESHOLDS) == []

    def test_no_alerts_without_previous(self):
        assert evaluate(_quiet(), None, THRESHOLDS) == []


class TestCpu:
    def test_just_below_threshold(self):
        assert evaluate(_quiet(cpu_percent=THRESHOLDS.cpu - 0.01), None, THRESHOLDS) == []

    def test_at_threshold_fires(self):
        alerts = evaluate(_quiet(cpu_percent=THRESHOLDS.cpu), None, THRESHOLDS)
        assert len(alerts) == 1
        assert alerts[0].startswith("CPU usage")

    def test_message_has_two_decimals(self):
        alerts = evaluate(_quiet(cpu_percent=95.25), None, THRESHOLDS)
        assert alerts == ["CPU usage is at 95.25% (threshold 90.00%)"]


class TestMemory:
    def test_at_threshold_fires(self):
        alerts = evaluate(_quiet(memory_percent=90.0), None, THRESHOLDS)
        assert alerts == ["Memory usage is at 90.00% (threshold 90.00%)"]

    def test_below_threshold(self):
        assert evaluate(_quiet(memory_percent=89.99), None, THRESHOLDS) == []


class TestDisks:
    def test_boundary_is_inclusive(self):
        snap = _quiet(disks=[DiskReading(drive_label="C:", free_percent=10.0)])
        assert evaluate(snap, None, THRESHOLDS) == [
            "Disk C: free space is at 10.00% (threshold 10.00%)"
        ]

    def test_above_floor_no_alert(self):
        snap = _quiet(disks=[DiskReading(drive_label="C:", free_percent=10.01)])
        assert evaluate(snap, None, THRESHOLDS) == []

    def test_each_low_disk_in_order(self):
        snap = _quiet(disks=[
            DiskReading(drive_label="D:", free_percent=2.0),
            DiskReading(drive_label="C:", free_percent=50.0),
            DiskReading(drive_label="E:", free_percent=1.5),
        ])
        alerts = evaluate(snap, None, THRESHOLDS)
        assert [a.split()[1] for a in alerts] == ["D:", "E:"]


class TestServices:
    def test_status_change_fires(self):
        previous = _quiet(services=_services(DB=ServiceStatus.RUNNING))
        current = _quiet(services=_services(DB=ServiceStatus.STOPPED))
        assert evaluate(current, previous, THRESHOLDS) == [
            "Service DB changed status from Running to Stopped"
        ]

    def test_no_previous_means_no_service_alerts(self):
        current = _quiet(services=_services(DB=ServiceStatus.STOPPED, Web=ServiceStatus.NOT_FOUND))
        assert evaluate(current, None, THRESHOLDS) == []

    def test_service_missing_from_previous_not_a_change(self):
        previous = _quiet(services=_services(DB=ServiceStatus.RUNNING))
        current = _quiet(services=_services(DB=ServiceStatus.RUNNING, Web=ServiceStatus.STOPPED))
        assert evaluate(current, previous, THRESHOLDS) == []

    def test_unchanged_status_no_alert(self):
        previous = _quiet(services=_services(DB=ServiceStatus.STOPPED))
        current = _quiet(services=_services(DB=ServiceStatus.STOPPED))
        assert evaluate(current, previous, THRESHOLDS) == []

    def test_changes_follow_current_order(self):
        previous = _quiet(services=_services(Web=ServiceStatus.RUNNING, DB=ServiceStatus.RUNNING))
        current = _quiet(services=_services(DB=ServiceStatus.PAUSED, Web=ServiceStatus.NOT_FOUND))
        assert evaluate(current, previous, THRESHOLDS) == [
            "Service DB changed status from Running to Paused",
            "Service Web changed status from Running to NotFound",
        ]


class TestTimeDrift:
    @pytest.mark.parametrize("drift", [60.5, -61.0])
    def test_fires_on_absolute_value(self, drift):
        alerts = evaluate(_quiet(time_drift_seconds=drift), None, THRESHOLDS)
        assert alerts == [f"Time drift is {drift:.1f} seconds (threshold 60.0 seconds)"]

    def test_at_threshold_does_not_fire(self):
        assert evaluate(_quiet(time_drift_seconds=60.0), None, THRESHOLDS) == []

    def test_absent_drift_never_fires(self):
        assert evaluate(_quiet(time_drift_seconds=None), None, THRESHOLDS) == []


class TestTimeZone:
    def test_mismatch_fires_once(self):
        alerts = evaluate(_quiet(time_zone_id="UTC-05", time_drift_seconds=None), None, THRESHOLDS)
        assert alerts == ["Time zone is UTC-05, expected UTC-06"]

    def test_compare_is_exact(self):
        alerts = evaluate(_quiet(time_zone_id="utc-06"), None, THRESHOLDS)
        assert len(alerts) == 1


class TestOrderingAndPurity:
    def _noisy_pair(self) -> tuple[Snapshot, Snapshot]:
        previous = _quiet(services=_services(DB=ServiceStatus.RUNNING))
        current = _quiet(
            cpu_percent=99.0,
            memory_percent=95.0,
            disks=[DiskReading(drive_label="C:", free_percent=3.0)],
            services=_services(DB=ServiceStatus.STOPPED),
            time_drift_seconds=120.0,
            time_zone_id="UTC",
        )
        return current, previous

    def test_rule_order(self):
        current, previous = self._noisy_pair()
        alerts = evaluate(current, previous, THRESHOLDS)
        prefixes = [a.split()[0] for a in alerts]
        assert prefixes == ["CPU", "Memory", "Disk", "Service", "Time", "Time"]
        assert "drift" in alerts[4]
        assert "zone" in alerts[5]

    def test_idempotent(self):
        current, previous = self._noisy_pair()
        assert evaluate(current, previous, THRESHOLDS) == evaluate(current, previous, THRESHOLDS)

    def test_inputs_not_mutated(self):
        current, previous = self._noisy_pair()
        before = (current.model_dump(), previous.model_dump())
        evaluate(current, previous, THRESHOLDS)
        assert (current.model_dump(), previous.model_dump()) == before
