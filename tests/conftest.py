"""Pytest configuration and shared fixtures for HabitPulse tests.

This module provides database fixtures, test data factories, and helper utilities
for testing streaks, snapshots and statistics without touching the real app database.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta

import pytest

from habitpulse.config import TestingConfig
from habitpulse.context import create_app_context
from habitpulse.infra.database import create_db_engine, create_session_factory, init_database
from habitpulse.infra.repositories import (
    SQLModelCompletionLogRepository,
    SQLModelHabitRepository,
    SQLModelMonthlyNoteRepository,
    SQLModelStatsCacheRepository,
    SQLModelStreakSnapshotRepository,
    SQLModelUserRepository,
)
from habitpulse.lib.dates import date_key
from habitpulse.models import CompletionEntry, Habit, User
from habitpulse.models.habit import TASK_RECURRING, TIME_PERIODS, VALID_PERCENTAGES
from habitpulse.observability import RecordingObserver
from habitpulse.services.habits import HabitService
from habitpulse.services.notes import NotesService
from habitpulse.services.progress import ProgressService
from habitpulse.services.snapshots import SnapshotArchiver
from habitpulse.services.stats_cache import StatsService


@pytest.fixture(autouse=True)
def _restore_habitpulse_logger():
    """Undo handlers and levels installed by setup_logging during a test."""
    logger = logging.getLogger("habitpulse")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def app_config(tmp_path) -> TestingConfig:
    """Configuration rooted in a per-test temporary directory."""
    return TestingConfig(tmp_path)


@pytest.fixture
def db_engine(app_config):
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with every table created
    """
    engine = create_db_engine(app_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory matching what the repositories receive in production."""
    return create_session_factory(db_engine)


@pytest.fixture
def app_context(app_config, observer):
    """Fully wired application context on the per-test database."""
    return create_app_context(app_config, observer=observer)


# =============================================================================
# Repositories and Services
# =============================================================================


@pytest.fixture
def user_repo(session_factory) -> SQLModelUserRepository:
    return SQLModelUserRepository(session_factory)


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def log_repo(session_factory) -> SQLModelCompletionLogRepository:
    return SQLModelCompletionLogRepository(session_factory)


@pytest.fixture
def snapshot_repo(session_factory) -> SQLModelStreakSnapshotRepository:
    return SQLModelStreakSnapshotRepository(session_factory)


@pytest.fixture
def cache_repo(session_factory) -> SQLModelStatsCacheRepository:
    return SQLModelStatsCacheRepository(session_factory)


@pytest.fixture
def note_repo(session_factory) -> SQLModelMonthlyNoteRepository:
    return SQLModelMonthlyNoteRepository(session_factory)


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def archiver(habit_repo, log_repo, snapshot_repo, user_repo) -> SnapshotArchiver:
    return SnapshotArchiver(
        habit_repo=habit_repo,
        log_repo=log_repo,
        snapshot_repo=snapshot_repo,
        user_repo=user_repo,
    )


@pytest.fixture
def stats_service(habit_repo, log_repo, cache_repo, observer) -> StatsService:
    return StatsService(
        habit_repo=habit_repo,
        log_repo=log_repo,
        cache_repo=cache_repo,
        observer=observer,
    )


@pytest.fixture
def progress_service(habit_repo, log_repo, archiver) -> ProgressService:
    return ProgressService(habit_repo=habit_repo, log_repo=log_repo, archiver=archiver)


@pytest.fixture
def habit_service(habit_repo, archiver) -> HabitService:
    return HabitService(habit_repo=habit_repo, archiver=archiver)


@pytest.fixture
def notes_service(note_repo) -> NotesService:
    return NotesService(note_repo=note_repo)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(user_repo) -> User:
    """Create a default user for scoping data."""
    return user_repo.create(User(username="tester"))


@pytest.fixture
def other_user(user_repo) -> User:
    return user_repo.create(User(username="someone-else"))


@pytest.fixture
def habit_factory(habit_repo, user):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        *,
        category: str = "General",
        color: str = "#3b82f6",
        task_type: str = TASK_RECURRING,
        start_date: date = date(2024, 1, 1),
        is_active: bool = True,
        archived_at: datetime | None = None,
        display_order: int = 0,
        owner: User | None = None,
    ) -> Habit:
        owner = owner or user
        habit = Habit(
            user_id=owner.id,
            name=name,
            category=category,
            color=color,
            task_type=task_type,
            start_date=start_date,
            is_active=is_active,
            archived_at=archived_at,
            display_order=display_order,
        )
        return habit_repo.create(habit, user_id=owner.id)

    return _create_habit


@pytest.fixture
def log_entry(log_repo, user):
    """Record one period of one day for a habit (100% evening by default)."""

    def _log(
        habit: Habit,
        day: str,
        *,
        period: str = "evening",
        percentage: int = 100,
        owner: User | None = None,
    ) -> CompletionEntry:
        owner = owner or user
        return log_repo.set_period(habit.id, day, period, percentage, user_id=owner.id)

    return _log


@pytest.fixture
def log_days(log_entry):
    """Mark every day in ``start..end`` (inclusive) complete for a habit."""

    def _log_days(habit: Habit, start: str, end: str, **kwargs) -> None:
        day = date.fromisoformat(start)
        last = date.fromisoformat(end)
        while day <= last:
            log_entry(habit, date_key(day), **kwargs)
            day += timedelta(days=1)

    return _log_days


@pytest.fixture
def random_completion_log():
    """Seeded generator of unsaved, valid completion logs for one habit.

    Every entry holds one of the allowed percentages in each period and
    there is at most one entry per day.
    """

    def _generate(
        rng: random.Random,
        *,
        habit_id: int = 1,
        start: date = date(2024, 1, 1),
        days: int = 60,
        density: float = 0.7,
    ) -> list[CompletionEntry]:
        entries = []
        for offset in range(days):
            if rng.random() > density:
                continue
            values = {period: rng.choice(VALID_PERCENTAGES) for period in TIME_PERIODS}
            entries.append(
                CompletionEntry(
                    user_id=1,
                    habit_id=habit_id,
                    occurred_on=date_key(start + timedelta(days=offset)),
                    **values,
                )
            )
        return entries

    return _generate
