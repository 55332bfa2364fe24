from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_HANDLER_MARK = "_hostwatch_handler"


def configure_logging(log_file: str | None = None, level: str | int = "INFO") -> logging.Logger:
    """Attach console and append-only file handlers to the ``hostwatch`` logger.

    Safe to call more than once; handlers are only installed the first time.
    Rotation of ``log_file`` is left to the host (logrotate, Task Scheduler...).
    """
    logger = logging.getLogger("hostwatch")
    logger.setLevel(level if isinstance(level, int) else level.upper())

    if not any(getattr(h, _HANDLER_MARK, False) for h in logger.handlers):
        formatter = logging.Formatter(LOG_FORMAT)
        handlers: list[logging.Handler] = [logging.StreamHandler()]
        if log_file:
            handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        for handler in handlers:
            handler.setFormatter(formatter)
            setattr(handler, _HANDLER_MARK, True)
            logger.addHandler(handler)

    return logger
