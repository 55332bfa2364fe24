from __future__ import annotations


class HostwatchError(Exception):
    """Base class for every error raised by hostwatch."""


class TransientCollectorError(HostwatchError):
    """One metric could not be read; the run continues with that field degraded."""

    def __init__(self, collector: str, message: str) -> None:
        super().__init__(f"{collector}: {message}")
        self.collector = collector


class FatalCollectionError(HostwatchError):
    """Core metrics (CPU/memory) are unavailable; the run is aborted."""


class PersistenceError(HostwatchError):
    """The snapshot file could not be written."""


class DispatchError(HostwatchError):
    """The notification transport rejected or failed to deliver the alert mail."""
