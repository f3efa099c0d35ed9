"""SQLModel table exports."""

from .habit import CompletionEntry, Habit
from .note import MonthlyNote
from .stats import MonthlyStatsCache, WeeklyStatsCache
from .streak import StreakSnapshot
from .user import User

__all__ = [
    "CompletionEntry",
    "Habit",
    "MonthlyNote",
    "MonthlyStatsCache",
    "StreakSnapshot",
    "User",
    "WeeklyStatsCache",
]
