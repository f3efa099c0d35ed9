"""Streak calculator.

Pure functions over a habit's completion log. The same code path serves the
per-update snapshot, the nightly batch and the live streak board, so the
three always agree.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterable, Optional

from ..domain.repositories import CompletionLogRepository, HabitRepository
from ..lib.dates import date_key, days_between, parse_date_key
from ..lib.numbers import percent
from ..models.habit import CompletionEntry
from .completion import completed_dates

TOP_STREAKS_LIMIT = 10


@dataclass(frozen=True)
class StreakResult:
    """Streak statistics of one habit as of one day."""

    current_streak: int = 0
    longest_streak: int = 0
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    last_completed_date: Optional[str] = None
    total_completions: int = 0
    completion_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "lastCompletedDate": self.last_completed_date,
            "totalCompletions": self.total_completions,
            "completionRate": self.completion_rate,
        }


def current_streak(done: set[str], as_of: str) -> int:
    """Length of the run of completed days ending exactly on ``as_of``."""
    streak = 0
    cursor = parse_date_key(as_of)
    while date_key(cursor) in done:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(done: Iterable[str]) -> int:
    longest = 0
    run = 0
    previous: Optional[str] = None
    for key in sorted(done):
        if previous is not None and days_between(previous, key) == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = key
    return longest


def compute_streaks(done: set[str], *, as_of: str) -> StreakResult:
    """Streak statistics from a set of completed date keys (all <= ``as_of``)."""
    if not done:
        return StreakResult()

    ordered = sorted(done)
    first, last = ordered[0], ordered[-1]
    current = current_streak(done, as_of)
    return StreakResult(
        current_streak=current,
        longest_streak=longest_streak(ordered),
        start_date=first,
        end_date=as_of if current > 0 else last,
        last_completed_date=last,
        total_completions=len(ordered),
        completion_rate=percent(len(ordered), days_between(first, last) + 1),
    )


def calculate_streak(entries: Iterable[CompletionEntry], *, as_of: str) -> StreakResult:
    """Streak statistics of a habit's log, ignoring entries after ``as_of``."""
    parse_date_key(as_of)
    return compute_streaks(completed_dates(entries, up_to=as_of), as_of=as_of)


def streak_for_habit(
    log_repo: CompletionLogRepository, habit_id: int, *, user_id: int, as_of: str
) -> StreakResult:
    entries = log_repo.entries_for_habit(habit_id, user_id=user_id, up_to=as_of)
    return calculate_streak(entries, as_of=as_of)


def streak_board(
    *,
    habit_repo: HabitRepository,
    log_repo: CompletionLogRepository,
    user_id: int,
    today: str,
) -> dict[str, list[dict[str, Any]]]:
    """Live streaks of every habit (archived included) as of ``today``.

    ``activeStreaks`` holds habits with a running streak, longest first;
    ``top10Streaks`` is its head.
    """
    rows = []
    for habit in habit_repo.list_all(user_id=user_id, include_inactive=True):
        result = streak_for_habit(log_repo, habit.id, user_id=user_id, as_of=today)
        rows.append(
            {
                "habitId": habit.id,
                "habitName": habit.name,
                "category": habit.category,
                "color": habit.color,
                "currentStreak": result.current_streak,
                "longestStreak": result.longest_streak,
                "lastCompletedDate": result.last_completed_date,
            }
        )

    active = sorted(
        (row for row in rows if row["currentStreak"] > 0),
        key=lambda row: row["currentStreak"],
        reverse=True,
    )
    return {
        "allStreaks": rows,
        "activeStreaks": active,
        "top10Streaks": active[:TOP_STREAKS_LIMIT],
    }


__all__ = [
    "StreakResult",
    "calculate_streak",
    "compute_streaks",
    "current_streak",
    "longest_streak",
    "streak_board",
    "streak_for_habit",
]
