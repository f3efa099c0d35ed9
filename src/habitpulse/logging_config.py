"""Logging for HabitPulse: a console stream plus a rotating JSON-lines file.

Everything lives under the ``habitpulse`` logger; modules ask for children via
:func:`get_logger` (``habitpulse.snapshots``, ``habitpulse.stats`` ...). Any
``extra={...}`` passed at the call site ends up in the JSON entry's ``extra``
object so snapshot and cache events stay queryable.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import BaseConfig

ROOT_LOGGER_NAME = "habitpulse"
LOG_FILENAME = "habitpulse.log"

_DEV_CONSOLE = ("%(asctime)s %(levelname)-7s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S")
_PROD_CONSOLE = ("%(asctime)s %(levelname)s %(name)s  %(message)s", "%Y-%m-%d %H:%M:%S")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value is not None else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if extra:
            entry["extra"] = extra
        return json.dumps(entry, default=str)


def _console_handler(dev_mode: bool) -> logging.Handler:
    fmt, datefmt = _DEV_CONSOLE if dev_mode else _PROD_CONSOLE
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO if dev_mode else logging.WARNING)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    return handler


def _json_file_handler(path: Path, config: BaseConfig) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=config.LOG_MAX_BYTES,
        backupCount=config.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(config: BaseConfig) -> logging.Logger:
    """(Re)configure the ``habitpulse`` logger from *config* and return it.

    Calling this again swaps the handlers instead of stacking new ones, so the
    CLI and the tests can both call it freely.
    """
    log_path = Path(config.DATA_DIR) / "logs" / LOG_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    while logger.handlers:
        stale = logger.handlers[0]
        logger.removeHandler(stale)
        stale.close()

    logger.addHandler(_console_handler(config.DEV_MODE))
    logger.addHandler(_json_file_handler(log_path, config))

    logger.info(
        "Logging initialized",
        extra={"dev_mode": config.DEV_MODE, "log_file": str(log_path), "data_dir": str(config.DATA_DIR)},
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``habitpulse`` logger, e.g. ``get_logger("stats")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
