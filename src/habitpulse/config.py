"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitPulse"
    DB_FILENAME = "habitpulse.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self.DEV_MODE = _env_bool("HABITPULSE_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.DATABASE_URL = os.getenv("HABITPULSE_DATABASE_URL", self._build_sqlite_url())
        self.CACHE_TTL_SECONDS = _env_int("HABITPULSE_CACHE_TTL_SECONDS", 3600)
        self.CACHE_PURGE_MINUTES = _env_int("HABITPULSE_CACHE_PURGE_MINUTES", 10)
        self.SNAPSHOT_HOUR = _env_int("HABITPULSE_SNAPSHOT_HOUR", 23)
        self.SNAPSHOT_MINUTE = _env_int("HABITPULSE_SNAPSHOT_MINUTE", 59)
        self.LOG_MAX_BYTES = _env_int("HABITPULSE_LOG_MAX_BYTES", 10 * 1024 * 1024)
        self.LOG_BACKUP_COUNT = _env_int("HABITPULSE_LOG_BACKUP_COUNT", 5)
        if self.CACHE_TTL_SECONDS <= 0:
            raise ValueError("HABITPULSE_CACHE_TTL_SECONDS must be positive.")

    @property
    def cache_ttl(self) -> timedelta:
        """Validity window of cached weekly/monthly aggregates."""
        return timedelta(seconds=self.CACHE_TTL_SECONDS)

    def _resolve_data_dir(self, data_dir: Path | str | None = None) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = data_dir or os.getenv("HABITPULSE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            # APScheduler jobs open sessions from worker threads.
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for tests: a throwaway SQLite file inside ``data_dir``."""

    DEBUG = False
    TESTING = True

    def __init__(self, data_dir: Path | str) -> None:
        super().__init__(data_dir=data_dir)
        self.DEV_MODE = True
        self.DATABASE_URL = f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"
