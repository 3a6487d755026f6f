"""Process-wide logging setup shared by the API, the scheduler and scripts."""
from __future__ import annotations

import logging
import logging.handlers
import time
from pathlib import Path

from spendsense.core.config import settings

LOG_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG_FILE_NAME = "spendsense.log"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

# Third-party loggers and the minimum level they may emit at.
NOISY_LOGGERS = {
    "apscheduler": logging.WARNING,
    "httpx": logging.WARNING,
    "aiosqlite": logging.INFO,
}


def _utc_formatter() -> logging.Formatter:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def _file_handler(log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )


def setup_logging(level: str | None = None) -> None:
    """Route every logger to a rotating file and stderr with UTC timestamps."""
    log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    formatter = _utc_formatter()
    handlers = [_file_handler(Path(settings.LOG_DIR)), logging.StreamHandler()]
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = handlers

    # uvicorn installs its own handlers; let it propagate to ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(log_level)

    for name, floor in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(log_level, floor))


__all__ = ["setup_logging"]
