"""Wiring of repositories and services around one database."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelCompletionLogRepository,
    SQLModelHabitRepository,
    SQLModelMonthlyNoteRepository,
    SQLModelStatsCacheRepository,
    SQLModelStreakSnapshotRepository,
    SQLModelUserRepository,
)
from .observability import StatsObserver
from .services.habits import HabitService
from .services.notes import NotesService
from .services.progress import ProgressService
from .services.snapshots import SnapshotArchiver
from .services.stats_cache import StatsService


@dataclass
class AppContext:
    """Repositories and services sharing one session factory."""

    config: BaseConfig
    session_factory: SessionFactory

    user_repo: SQLModelUserRepository
    habit_repo: SQLModelHabitRepository
    log_repo: SQLModelCompletionLogRepository
    snapshot_repo: SQLModelStreakSnapshotRepository
    cache_repo: SQLModelStatsCacheRepository
    note_repo: SQLModelMonthlyNoteRepository

    archiver: SnapshotArchiver
    stats: StatsService
    progress: ProgressService
    habits: HabitService
    notes: NotesService


def create_app_context(
    config: Optional[BaseConfig] = None, *, observer: StatsObserver | None = None
) -> AppContext:
    """Create the engine, ensure the schema exists and wire every service."""

    if config is None:
        config = BaseConfig()

    _, session_factory = bootstrap_database(config)

    user_repo = SQLModelUserRepository(session_factory)
    habit_repo = SQLModelHabitRepository(session_factory)
    log_repo = SQLModelCompletionLogRepository(session_factory)
    snapshot_repo = SQLModelStreakSnapshotRepository(session_factory)
    cache_repo = SQLModelStatsCacheRepository(session_factory)
    note_repo = SQLModelMonthlyNoteRepository(session_factory)

    archiver = SnapshotArchiver(
        habit_repo=habit_repo,
        log_repo=log_repo,
        snapshot_repo=snapshot_repo,
        user_repo=user_repo,
    )

    return AppContext(
        config=config,
        session_factory=session_factory,
        user_repo=user_repo,
        habit_repo=habit_repo,
        log_repo=log_repo,
        snapshot_repo=snapshot_repo,
        cache_repo=cache_repo,
        note_repo=note_repo,
        archiver=archiver,
        stats=StatsService(
            habit_repo=habit_repo,
            log_repo=log_repo,
            cache_repo=cache_repo,
            ttl=config.cache_ttl,
            observer=observer,
        ),
        progress=ProgressService(habit_repo=habit_repo, log_repo=log_repo, archiver=archiver),
        habits=HabitService(habit_repo=habit_repo, archiver=archiver),
        notes=NotesService(note_repo=note_repo),
    )


__all__ = ["AppContext", "create_app_context"]
