from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hostwatch.logging_setup import configure_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("hostwatch")
    saved = list(logger.handlers), logger.level
    logger.handlers.clear()
    yield logger
    for h in logger.handlers:
        h.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])


def test_writes_to_log_file(clean_logger, tmp_path: Path):
    log_file = tmp_path / "hostwatch.log"
    configure_logging(str(log_file), "INFO")
    logging.getLogger("hostwatch.engine").warning("disk %s low", "C:")
    for h in clean_logger.handlers:
        h.flush()
    assert "[WARNING] hostwatch.engine: disk C: low" in log_file.read_text()


def test_idempotent(clean_logger, tmp_path: Path):
    configure_logging(str(tmp_path / "a.log"))
    configure_logging(str(tmp_path / "a.log"))
    assert len(clean_logger.handlers) == 2


def test_level_names_accepted(clean_logger):
    configure_logging(None, "debug")
    assert clean_logger.level == logging.DEBUG
    assert len(clean_logger.handlers) == 1


def test_appends(clean_logger, tmp_path: Path):
    log_file = tmp_path / "hostwatch.log"
    log_file.write_text("earlier run\n")
    configure_logging(str(log_file))
    logging.getLogger("hostwatch").info("this run")
    for h in clean_logger.handlers:
        h.flush()
    assert log_file.read_text().startswith("earlier run\n")
