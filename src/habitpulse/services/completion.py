"""Completion rule and the pure helpers built on it.

A day counts as done for a habit when *any* of its four periods reached
100%. Streaks, aggregates, snapshots and the daily summary all go through
:func:`is_complete`; nothing else decides what "completed" means.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, Union

from ..errors import ValidationError
from ..lib.dates import parse_date_key
from ..lib.numbers import round_half_up
from ..models.habit import TIME_PERIODS, VALID_PERCENTAGES, CompletionEntry


class PeriodValues(Protocol):
    morning: int
    afternoon: int
    evening: int
    night: int


EntryLike = Union[PeriodValues, Mapping[str, Any]]


def _period_value(entry: EntryLike, period: str) -> int:
    if isinstance(entry, Mapping):
        value = entry.get(period)
    else:
        value = getattr(entry, period, None)
    return value or 0


def is_complete(entry: EntryLike | None) -> bool:
    """Return True when at least one period of the entry is at 100%."""
    if entry is None:
        return False
    return any(_period_value(entry, period) == 100 for period in TIME_PERIODS)


def completed_dates(entries: Iterable[CompletionEntry], *, up_to: str | None = None) -> set[str]:
    """Date keys of complete entries, optionally capped at ``up_to`` inclusive."""
    return {
        entry.occurred_on
        for entry in entries
        if (up_to is None or entry.occurred_on <= up_to) and is_complete(entry)
    }


def validate_progress(occurred_on: str, period: str, percentage: int) -> None:
    """Reject malformed progress input before anything is read or written.

    Raises:
        ValidationError: on a malformed date, unknown period or percentage.
    """
    parse_date_key(occurred_on)
    if period not in TIME_PERIODS:
        raise ValidationError(
            "Invalid time period. Use: morning, afternoon, evening, or night"
        )
    # bool is an int subclass; True must not pass as 1.
    if isinstance(percentage, bool) or percentage not in VALID_PERCENTAGES:
        raise ValidationError("Invalid percentage. Use: 0, 10, 20, 50, 80, or 100")


def entry_to_dict(entry: CompletionEntry) -> dict[str, Any]:
    return {
        "habitId": entry.habit_id,
        "date": entry.occurred_on,
        **entry.periods(),
    }


def legacy_view(entry: CompletionEntry) -> dict[str, Any]:
    """Project an entry onto the older one-flag-per-day shape.

    Derived on read; the flag is never stored separately.
    """
    return {
        "habitId": entry.habit_id,
        "date": entry.occurred_on,
        "completed": is_complete(entry),
    }


def summarize_day(entries: Iterable[CompletionEntry], total_habits: int) -> dict[str, int]:
    """Per-period averages and counts for one day across a user's habits."""
    totals = {period: 0 for period in TIME_PERIODS}
    completed = 0
    for entry in entries:
        for period, value in entry.periods().items():
            totals[period] += value
            if value == 100:
                completed += 1

    habit_count = total_habits or 1
    overall = sum(totals.values()) / (habit_count * len(TIME_PERIODS))
    return {
        "totalHabits": total_habits,
        "overallProgress": round_half_up(overall),
        "morningProgress": round_half_up(totals["morning"] / habit_count),
        "afternoonProgress": round_half_up(totals["afternoon"] / habit_count),
        "eveningProgress": round_half_up(totals["evening"] / habit_count),
        "nightProgress": round_half_up(totals["night"] / habit_count),
        "completed": completed,
        "remaining": total_habits * len(TIME_PERIODS) - completed,
    }


__all__ = [
    "completed_dates",
    "entry_to_dict",
    "is_complete",
    "legacy_view",
    "summarize_day",
    "validate_progress",
]
