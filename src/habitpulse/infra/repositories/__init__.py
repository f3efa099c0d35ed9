"""Concrete repository implementations using SQLModel."""

from .completion import SQLModelCompletionLogRepository
from .habit import SQLModelHabitRepository
from .note import SQLModelMonthlyNoteRepository
from .snapshot import SQLModelStreakSnapshotRepository
from .stats_cache import SQLModelStatsCacheRepository
from .user import SQLModelUserRepository

__all__ = [
    "SQLModelCompletionLogRepository",
    "SQLModelHabitRepository",
    "SQLModelMonthlyNoteRepository",
    "SQLModelStatsCacheRepository",
    "SQLModelStreakSnapshotRepository",
    "SQLModelUserRepository",
]
