"""Recording per-period progress and reading a day back."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ..domain.repositories import CompletionLogRepository, HabitRepository
from ..errors import NotFoundError
from ..lib.dates import date_key, parse_date_key
from ..models.habit import CompletionEntry
from .completion import entry_to_dict, legacy_view, summarize_day, validate_progress
from .snapshots import SnapshotArchiver

logger = logging.getLogger("habitpulse.progress")


class ProgressService:
    """Applies progress updates to the single authoritative completion entry."""

    def __init__(
        self,
        *,
        habit_repo: HabitRepository,
        log_repo: CompletionLogRepository,
        archiver: SnapshotArchiver | None = None,
    ):
        self.habit_repo = habit_repo
        self.log_repo = log_repo
        self.archiver = archiver

    def record_progress(
        self,
        *,
        user_id: int,
        habit_id: int,
        occurred_on: str,
        period: str,
        percentage: int,
    ) -> CompletionEntry:
        """Set one period of one day, creating the day's entry if needed.

        Args:
            user_id: Owner of the habit
            habit_id: Habit being tracked
            occurred_on: Local day as ``YYYY-MM-DD``
            period: ``morning``, ``afternoon``, ``evening`` or ``night``
            percentage: One of 0, 10, 20, 50, 80, 100

        Returns:
            The stored entry for that day

        Raises:
            ValidationError: malformed date, period or percentage; nothing is written.
            NotFoundError: the habit does not belong to the user.
        """
        validate_progress(occurred_on, period, percentage)
        if self.habit_repo.get_by_id(habit_id, user_id=user_id) is None:
            raise NotFoundError(f"Habit {habit_id} not found")

        entry = self.log_repo.set_period(habit_id, occurred_on, period, percentage, user_id=user_id)

        if self.archiver is not None:
            try:
                self.archiver.snapshot(user_id=user_id, habit_id=habit_id, snapshot_date=occurred_on)
            except Exception:
                logger.warning(
                    "Snapshot after progress update failed",
                    extra={"user_id": user_id, "habit_id": habit_id, "occurred_on": occurred_on},
                    exc_info=True,
                )
        return entry

    def daily_progress(self, *, user_id: int, occurred_on: str) -> dict[str, Any]:
        parse_date_key(occurred_on)
        entries = self.log_repo.entries_on(occurred_on, user_id=user_id)
        return {
            "date": occurred_on,
            "progress": [
                {key: value for key, value in entry_to_dict(entry).items() if key != "date"}
                for entry in entries
            ],
        }

    def daily_summary(self, *, user_id: int, occurred_on: str | None = None) -> dict[str, Any]:
        """Per-period progress of the user's active habits for one day."""
        occurred_on = occurred_on or date_key(date.today())
        parse_date_key(occurred_on)
        active_ids = {habit.id for habit in self.habit_repo.list_active(user_id=user_id)}
        entries = [
            entry
            for entry in self.log_repo.entries_on(occurred_on, user_id=user_id)
            if entry.habit_id in active_ids
        ]
        return {"date": occurred_on, **summarize_day(entries, len(active_ids))}

    def completion_log(self, *, user_id: int, start: str, end: str) -> list[dict[str, Any]]:
        """Range of entries in the one-flag-per-day shape, derived on read."""
        parse_date_key(start)
        parse_date_key(end)
        return [legacy_view(entry) for entry in self.log_repo.entries_between(start, end, user_id=user_id)]


__all__ = ["ProgressService"]
