from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Awaitable, Protocol

from pydantic import ValidationError

from hostwatch.collectors import (
    BaseCollector,
    CpuCollector,
    DiskCollector,
    MemoryCollector,
    ServiceCollector,
    TimeDriftProbe,
    TimeZoneCollector,
)
from hostwatch.config import Settings
from hostwatch.db.snapshot_store import SnapshotStore
from hostwatch.engine.evaluator import evaluate
from hostwatch.engine.thresholds import ThresholdConfig
from hostwatch.errors import (
    DispatchError,
    FatalCollectionError,
    PersistenceError,
    TransientCollectorError,
)
from hostwatch.models import ServiceReading, ServiceStatus, Snapshot
from hostwatch.notify.mailer import format_subject

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PERSIST_FAILED = 2

UNKNOWN_TIME_ZONE = "Unknown"


class RunState(StrEnum):
    START = "start"
    LOAD_PREVIOUS_STATE = "load_previous_state"
    COLLECT_SNAPSHOT = "collect_snapshot"
    EVALUATE = "evaluate"
    DISPATCH_ALERTS = "dispatch_alerts"
    PERSIST_SNAPSHOT = "persist_snapshot"
    DONE = "done"
    FAILED = "failed"


class Notifier(Protocol):
    def dispatch(self, subject: str, body_lines: list[str]) -> Awaitable[None]: ...


@dataclass
class CollectorSet:
    """The collectors one run samples, in collection order."""

    cpu: BaseCollector
    memory: BaseCollector
    disks: BaseCollector
    services: BaseCollector
    time_zone: BaseCollector
    time_drift: BaseCollector | None = None  # None disables the NTP probe

    @classmethod
    def from_settings(cls, settings: Settings, thresholds: ThresholdConfig) -> CollectorSet:
        timeout = settings.collector_timeout
        drift: BaseCollector | None = None
        if settings.ntp_host:
            drift = TimeDriftProbe(
                settings.ntp_host,
                port=settings.ntp_port,
                ntp_timeout=settings.ntp_timeout,
                timeout=timeout,
            )
        return cls(
            cpu=CpuCollector(sample_seconds=settings.cpu_sample_seconds, timeout=timeout),
            memory=MemoryCollector(timeout=timeout),
            disks=DiskCollector(timeout=timeout),
            services=ServiceCollector(thresholds.services, timeout=timeout),
            time_zone=TimeZoneCollector(timeout=timeout),
            time_drift=drift,
        )


@dataclass
class RunResult:
    state: RunState = RunState.START
    alerts: list[str] = field(default_factory=list)
    previous: Snapshot | None = None
    snapshot: Snapshot | None = None
    dispatched: bool | None = None  # None when dispatch was skipped
    persisted: bool | None = None  # None when persistence was skipped
    degraded: list[str] = field(default_factory=list)
    error: str | None = None
    exit_code: int = EXIT_OK


class RunOrchestrator:
    """Drives one health-check run from loading prior state to persisting the new one.

    States advance linearly::

        START -> LOAD_PREVIOUS_STATE -> COLLECT_SNAPSHOT -> EVALUATE
              -> DISPATCH_ALERTS -> PERSIST_SNAPSHOT -> DONE

    Only a ``FatalCollectionError`` moves the run to ``FAILED``. Every other
    failure is logged where it happens and the run carries on.
    """

    def __init__(
        self,
        settings: Settings,
        thresholds: ThresholdConfig,
        store: SnapshotStore,
        collectors: CollectorSet,
        notifier: Notifier | None = None,
        dry_run: bool = False,
    ) -> None:
        self.settings = settings
        self.thresholds = thresholds
        self.store = store
        self.collectors = collectors
        self.notifier = notifier
        self.dry_run = dry_run

    async def run(self) -> RunResult:
        result = RunResult()

        self._enter(result, RunState.LOAD_PREVIOUS_STATE)
        result.previous = self.store.load()

        self._enter(result, RunState.COLLECT_SNAPSHOT)
        try:
            result.snapshot = await self._collect_snapshot(result)
        except FatalCollectionError as exc:
            logger.error("Run failed during collection: %s", exc)
            result.error = str(exc)
            result.exit_code = EXIT_FAILED
            self._enter(result, RunState.FAILED)
            return result

        self._enter(result, RunState.EVALUATE)
        result.alerts = evaluate(result.snapshot, result.previous, self.thresholds)
        for alert in result.alerts:
            logger.warning("ALERT: %s", alert)
        if not result.alerts:
            logger.info("No alerts this run")

        if result.alerts:
            self._enter(result, RunState.DISPATCH_ALERTS)
            result.dispatched = await self._dispatch(result.alerts)

        if self.dry_run:
            logger.info("Dry run: snapshot not persisted")
        else:
            self._enter(result, RunState.PERSIST_SNAPSHOT)
            result.persisted = self._persist(result)

        self._enter(result, RunState.DONE)
        return result

    # ── steps ───────────────────────────────────────────

    async def _collect_snapshot(self, result: RunResult) -> Snapshot:
        c = self.collectors
        try:
            cpu = await c.cpu.sample()
            memory = await c.memory.sample()
        except TransientCollectorError as exc:
            raise FatalCollectionError(f"core metrics unavailable ({exc})") from exc

        disks = await self._sample_degradable(c.disks, (), result)
        services = await self._sample_degradable(
            c.services, self._services_not_found(), result
        )
        drift = None
        if c.time_drift is not None:
            drift = await self._sample_degradable(c.time_drift, None, result)
        time_zone = await self._sample_degradable(c.time_zone, UNKNOWN_TIME_ZONE, result)

        try:
            return Snapshot(
                cpu_percent=cpu,
                memory_percent=memory,
                disks=disks,
                services=services,
                time_drift_seconds=drift,
                time_zone_id=time_zone,
            )
        except ValidationError as exc:
            raise FatalCollectionError(f"collected values are invalid: {exc}") from exc

    async def _dispatch(self, alerts: list[str]) -> bool | None:
        if self.dry_run:
            logger.info("Dry run: %d alert(s) not dispatched", len(alerts))
            return None
        if self.notifier is None:
            logger.warning("Mail is not configured; %d alert(s) only logged", len(alerts))
            return None
        subject = format_subject(self.settings.host_name, len(alerts))
        try:
            await self.notifier.dispatch(subject, alerts)
        except DispatchError as exc:
            logger.error("Alert dispatch failed: %s", exc)
            return False
        return True

    def _persist(self, result: RunResult) -> bool:
        if result.degraded:
            logger.warning(
                "Persisting degraded snapshot (unavailable: %s)", ", ".join(result.degraded)
            )
        try:
            self.store.save(result.snapshot)
        except PersistenceError as exc:
            logger.error("Snapshot not saved: %s", exc)
            if self.settings.fail_on_persist_error:
                result.exit_code = EXIT_PERSIST_FAILED
            return False
        return True

    # ── helpers ─────────────────────────────────────────

    async def _sample_degradable(
        self, collector: BaseCollector, fallback: Any, result: RunResult
    ) -> Any:
        try:
            return await collector.sample()
        except TransientCollectorError as exc:
            logger.warning("Collector [%s] degraded: %s", collector.name, exc)
            result.degraded.append(collector.name)
            return fallback

    def _services_not_found(self) -> tuple[ServiceReading, ...]:
        return tuple(
            ServiceReading(name=name, status=ServiceStatus.NOT_FOUND)
            for name in self.thresholds.services
        )

    @staticmethod
    def _enter(result: RunResult, state: RunState) -> None:
        logger.debug("Run state %s -> %s", result.state, state)
        result.state = state
