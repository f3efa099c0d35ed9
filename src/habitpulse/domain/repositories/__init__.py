"""Repository protocol definitions for domain layer."""

from .completion import CompletionLogRepository
from .habit import HabitRepository
from .note import MonthlyNoteRepository
from .snapshot import StreakSnapshotRepository
from .stats_cache import StatsCacheRepository
from .user import UserRepository

__all__ = [
    "CompletionLogRepository",
    "HabitRepository",
    "MonthlyNoteRepository",
    "StatsCacheRepository",
    "StreakSnapshotRepository",
    "UserRepository",
]
