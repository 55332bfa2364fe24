from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from hostwatch.errors import PersistenceError
from hostwatch.models import SNAPSHOT_SCHEMA_VERSION, Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Holds the single snapshot carried from one run to the next.

    The file is overwritten on every save; it is not a history. Concurrent
    writers are not supported; runs are expected to be serialized by the
    scheduler that launches them.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Snapshot | None:
        """Return the persisted snapshot, or None when there is no usable prior state."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No previous snapshot at %s", self.path)
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read snapshot %s: %s", self.path, exc)
            return None

        try:
            raw = json.loads(text)
        except (ValueError, RecursionError) as exc:
            logger.warning("Snapshot %s is not valid JSON: %s", self.path, exc)
            return None

        if not isinstance(raw, dict) or set(raw) != {"schema_version", "snapshot"}:
            logger.warning("Snapshot %s has an unexpected layout, ignoring it", self.path)
            return None
        version = raw["schema_version"]
        if version != SNAPSHOT_SCHEMA_VERSION:
            logger.warning(
                "Snapshot %s has schema version %r (expected %d), ignoring it",
                self.path, version, SNAPSHOT_SCHEMA_VERSION,
            )
            return None

        try:
            return Snapshot.model_validate(raw["snapshot"])
        except ValidationError as exc:
            logger.warning(
                "Snapshot %s failed validation (%d errors), ignoring it",
                self.path, exc.error_count(),
            )
            return None

    def save(self, snapshot: Snapshot) -> None:
        """Replace the persisted snapshot. Raises PersistenceError on I/O failure."""
        document = {
            "schema_version": SNAPSHOT_SCHEMA_VERSION,
            "snapshot": snapshot.model_dump(mode="json"),
        }
        payload = json.dumps(document, indent=2)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise PersistenceError(f"could not write snapshot {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.info("Snapshot saved to %s", self.path)
