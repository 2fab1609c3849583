"""Logging setup for the ``rentals`` command line.

Modules only ever call ``logging.getLogger(__name__)``; this is the one
place that attaches handlers.  Every record carries the name of the thread
that wrote it, since reservation writes can race each other.

Format::

    2026-03-01 10:15:30 [INFO    ] [MainThread] rentals.domain.service.stock_ledger - Ledger reserved: ...
"""

from __future__ import annotations

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "rentals"

_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per file
_BACKUP_COUNT = 5


class ThreadContextFilter(logging.Filter):
    """Adds ``thread_name`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        return True


def setup_logging(log_level: str | int = "INFO", log_dir: Path | None = None) -> logging.Logger:
    """Configure the ``rentals`` logger.

    Console output always goes to stderr so command output on stdout stays
    clean.  When ``log_dir`` is given, a rotating ``rentals.log`` and an
    errors-only ``rentals_error.log`` are written there as well.  Calling
    this again replaces the handlers from the previous call.
    """
    level = logging.getLevelName(log_level) if isinstance(log_level, str) else log_level
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    console.addFilter(thread_filter)
    logger.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        for filename, handler_level in (
            (f"{ROOT_LOGGER}.log", level),
            (f"{ROOT_LOGGER}_error.log", logging.ERROR),
        ):
            handler = RotatingFileHandler(
                filename=log_dir / filename,
                maxBytes=_MAX_BYTES,
                backupCount=_BACKUP_COUNT,
                encoding="utf-8",
            )
            handler.setLevel(handler_level)
            handler.setFormatter(formatter)
            handler.addFilter(thread_filter)
            logger.addHandler(handler)
        logger.debug("File logging enabled in %s", log_dir)

    return logger
