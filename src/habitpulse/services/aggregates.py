"""Weekly and monthly aggregate builders.

Builders are pure: they receive the habits in scope and the completion
entries of the range and return an overview. Loading data and caching is
:mod:`habitpulse.services.stats_cache`'s job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Optional, Sequence

from ..lib.dates import (
    date_key,
    day_name,
    first_weekday_of_month,
    iter_days,
    month_bounds,
    week_bounds,
)
from ..lib.numbers import percent, round_one_decimal
from ..models.habit import CompletionEntry, Habit
from .completion import is_complete

TOP_HABITS_LIMIT = 5
NO_STREAK = {"habitName": "None", "streakDays": 0}

EntryIndex = dict[tuple[int, str], CompletionEntry]


@dataclass
class WeeklyOverview:
    week_start: str
    week_end: str
    days: list[dict[str, Any]]
    weekly_average: float
    top_habits: list[dict[str, Any]]
    calculated_at: Optional[datetime] = None
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekStart": self.week_start,
            "weekEnd": self.week_end,
            "days": self.days,
            "weeklyAverage": self.weekly_average,
            "topHabits": self.top_habits,
            "calculatedAt": self.calculated_at.isoformat() if self.calculated_at else None,
            "cached": self.cached,
        }


@dataclass
class MonthlyOverview:
    year: int
    month: int
    days_in_month: int
    first_day_of_week: int
    daily_progress: list[dict[str, Any]]
    monthly_average: float
    top_habits: list[dict[str, Any]]
    longest_streak: dict[str, Any] = field(default_factory=lambda: dict(NO_STREAK))
    calculated_at: Optional[datetime] = None
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "daysInMonth": self.days_in_month,
            "firstDayOfWeek": self.first_day_of_week,
            "dailyProgress": self.daily_progress,
            "monthlyAverage": self.monthly_average,
            "topHabitsMonthly": self.top_habits,
            "longestStreak": self.longest_streak,
            "calculatedAt": self.calculated_at.isoformat() if self.calculated_at else None,
            "cached": self.cached,
        }


def index_entries(habits: Sequence[Habit], entries: Iterable[CompletionEntry]) -> EntryIndex:
    """Map (habit id, day) to its entry, keeping only habits in scope."""
    in_scope = {habit.id for habit in habits}
    return {
        (entry.habit_id, entry.occurred_on): entry
        for entry in entries
        if entry.habit_id in in_scope
    }


def day_completion(habits: Sequence[Habit], index: EntryIndex, day: str) -> int:
    """``round(completed / total * 100)`` for one day; 0 without habits."""
    completed = sum(1 for habit in habits if is_complete(index.get((habit.id, day))))
    return percent(completed, len(habits))


def rank_top_habits(
    habits: Sequence[Habit],
    index: EntryIndex,
    days: Sequence[str],
    *,
    include_days_completed: bool = False,
    limit: int = TOP_HABITS_LIMIT,
) -> list[dict[str, Any]]:
    """Habits ranked by share of days completed; ties keep habit order."""
    ranked = []
    for habit in habits:
        done = sum(1 for day in days if is_complete(index.get((habit.id, day))))
        row: dict[str, Any] = {
            "name": habit.name,
            "color": habit.color,
            "completion": percent(done, len(days)),
        }
        if include_days_completed:
            row["daysCompleted"] = done
        ranked.append((done, row))

    ranked.sort(key=lambda item: item[0], reverse=True)
    return [row for _, row in ranked[:limit]]


def longest_streak_in_range(
    habits: Sequence[Habit], index: EntryIndex, days: Sequence[str]
) -> dict[str, Any]:
    """Best run of consecutive completed days inside ``days`` only.

    A missing or incomplete day resets the run. The first habit reaching the
    best length keeps the title.
    """
    best = dict(NO_STREAK)
    for habit in habits:
        run = 0
        habit_best = 0
        for day in days:
            if is_complete(index.get((habit.id, day))):
                run += 1
                habit_best = max(habit_best, run)
            else:
                run = 0
        if habit_best > best["streakDays"]:
            best = {"habitName": habit.name, "streakDays": habit_best}
    return best


def _average(values: Sequence[int]) -> float:
    if not values:
        return 0.0
    return round_one_decimal(sum(values) / len(values))


def build_weekly(
    habits: Sequence[Habit],
    entries: Iterable[CompletionEntry],
    *,
    week_of: date,
    today: date,
) -> WeeklyOverview:
    """Sunday-to-Saturday overview of the week containing ``week_of``."""
    start, end = week_bounds(week_of)
    index = index_entries(habits, entries)
    today_str = date_key(today)
    day_keys = [date_key(day) for day in iter_days(start, end)]

    days = [
        {
            "date": key,
            "dayName": day_name(day),
            "progress": day_completion(habits, index, key),
            "isToday": key == today_str,
        }
        for day, key in zip(iter_days(start, end), day_keys)
    ]
    return WeeklyOverview(
        week_start=date_key(start),
        week_end=date_key(end),
        days=days,
        weekly_average=_average([day["progress"] for day in days]),
        top_habits=rank_top_habits(habits, index, day_keys),
    )


def build_monthly(
    habits: Sequence[Habit],
    entries: Iterable[CompletionEntry],
    *,
    year: int,
    month: int,
    today: date,
) -> MonthlyOverview:
    """Calendar-month overview: heatmap, top habits, in-month longest streak."""
    first, last = month_bounds(year, month)
    index = index_entries(habits, entries)
    today_str = date_key(today)
    day_keys = [date_key(day) for day in iter_days(first, last)]
    days_with_data = {day for (_, day) in index}

    daily_progress = [
        {
            "date": key,
            "day": number,
            "progress": day_completion(habits, index, key),
            "isToday": key == today_str,
            "hasData": key in days_with_data,
        }
        for number, key in enumerate(day_keys, start=1)
    ]
    return MonthlyOverview(
        year=year,
        month=month,
        days_in_month=len(day_keys),
        first_day_of_week=first_weekday_of_month(year, month),
        daily_progress=daily_progress,
        monthly_average=_average([day["progress"] for day in daily_progress]),
        top_habits=rank_top_habits(habits, index, day_keys, include_days_completed=True),
        longest_streak=longest_streak_in_range(habits, index, day_keys),
    )


__all__ = [
    "MonthlyOverview",
    "NO_STREAK",
    "TOP_HABITS_LIMIT",
    "WeeklyOverview",
    "build_monthly",
    "build_weekly",
    "day_completion",
    "index_entries",
    "longest_streak_in_range",
    "rank_top_habits",
]
