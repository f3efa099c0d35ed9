"""Habit lifecycle: create, edit, list, visibility and soft deletion."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from ..domain.repositories import HabitRepository
from ..errors import NotFoundError, ValidationError
from ..lib.dates import as_date, local_date, to_utc, utcnow
from ..models.habit import GOALS, TASK_RECURRING, TASK_SINGLE_DAY, TASK_TYPES, Habit
from ..models.streak import StreakSnapshot
from .snapshots import SnapshotArchiver

NAME_MAX_LENGTH = 100
_EDITABLE_FIELDS = {"name", "category", "color", "goal", "display_order", "start_date", "is_active"}


def habit_visible_on(habit: Habit, day: date) -> bool:
    """Whether the habit belongs on the given day's checklist.

    Single-day habits show only on their start day. Recurring habits show
    from their start day until the day they were archived.
    """
    start = habit.start_date or local_date(habit.created_at)
    if habit.task_type == TASK_SINGLE_DAY:
        return day == start
    if day < start:
        return False
    if habit.archived_at is not None and day >= local_date(habit.archived_at):
        return False
    return True


def _validate_fields(fields: dict[str, Any]) -> None:
    if "name" in fields:
        name = (fields["name"] or "").strip()
        if not name:
            raise ValidationError("Please add a habit name")
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError(f"Habit name cannot exceed {NAME_MAX_LENGTH} characters")
        fields["name"] = name
    if "goal" in fields and fields["goal"] not in GOALS:
        raise ValidationError(f"Invalid goal {fields['goal']!r}; use one of {', '.join(GOALS)}")
    if "task_type" in fields and fields["task_type"] not in TASK_TYPES:
        raise ValidationError(f"Invalid task type {fields['task_type']!r}")
    if fields.get("start_date") is not None:
        fields["start_date"] = as_date(fields["start_date"])


class HabitService:
    """Habit CRUD scoped to one owner; deletion is always a soft archive."""

    def __init__(self, *, habit_repo: HabitRepository, archiver: SnapshotArchiver):
        self.habit_repo = habit_repo
        self.archiver = archiver

    def create_habit(
        self,
        *,
        user_id: int,
        name: str,
        category: str = "General",
        color: str = "#3b82f6",
        goal: str = "Daily",
        task_type: str = TASK_RECURRING,
        start_date: date | str | None = None,
        display_order: int = 0,
    ) -> Habit:
        """Validate and store a new habit for *user_id*.

        Args:
            user_id: Owner of the habit
            name: Display name, trimmed, 1-100 characters
            goal: One of ``GOALS``
            task_type: ``recurring`` or ``single-day``
            start_date: First day the habit is shown (defaults to local today)
            display_order: Position in lists, lowest first

        Raises:
            ValidationError: if a field is out of range
        """
        fields: dict[str, Any] = {
            "name": name,
            "category": (category or "General").strip(),
            "color": color or "#3b82f6",
            "goal": goal or "Daily",
            "task_type": task_type,
            "start_date": start_date or date.today(),
            "display_order": display_order,
        }
        _validate_fields(fields)
        return self.habit_repo.create(Habit(user_id=user_id, **fields), user_id=user_id)

    def update_habit(self, *, user_id: int, habit_id: int, **changes: Any) -> Habit:
        """Apply a partial update; ``None`` values leave a field unchanged.

        ``is_active=True`` restores an archived habit and clears ``archived_at``;
        ``is_active=False`` archives it without the deletion-time snapshot pass.

        Args:
            user_id: Owner of the habit
            habit_id: Habit to change
            **changes: Any of name, category, color, goal, display_order,
                start_date, is_active

        Raises:
            ValidationError: on an unknown field or an invalid value
            NotFoundError: if the owner has no such habit
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")
        habit = self._require(user_id, habit_id)
        fields = {key: value for key, value in changes.items() if value is not None}
        _validate_fields(fields)
        for key, value in fields.items():
            setattr(habit, key, value)
        if "is_active" in fields:
            habit.is_active = bool(fields["is_active"])
            if habit.is_active:
                habit.archived_at = None
            elif habit.archived_at is None:
                habit.archived_at = utcnow()
        return self.habit_repo.update(habit, user_id=user_id)

    def list_habits(self, *, user_id: int, include_archived: bool = False) -> list[Habit]:
        return self.habit_repo.list_all(user_id=user_id, include_inactive=include_archived)

    def habits_for_day(self, *, user_id: int, day: date | str) -> list[Habit]:
        """Habits shown on a given day, including ones archived after it."""
        target = as_date(day)
        return [
            habit
            for habit in self.habit_repo.list_all(user_id=user_id, include_inactive=True)
            if habit_visible_on(habit, target)
        ]

    def delete_habit(
        self,
        *,
        user_id: int,
        habit_id: int,
        today: date | None = None,
        now: datetime | None = None,
    ) -> Optional[StreakSnapshot]:
        """Soft-archive a habit and archive its streak history.

        Args:
            user_id: Owner of the habit
            habit_id: Habit to archive
            today: Date of the final snapshot (defaults to local today)
            now: Archive timestamp (defaults to the current UTC time)

        Returns:
            The final snapshot taken as of ``today``

        Raises:
            NotFoundError: if the owner has no such habit
        """
        habit = self._require(user_id, habit_id)
        archived_at = to_utc(now) if now else utcnow()
        habit.is_active = False
        habit.archived_at = archived_at
        self.habit_repo.update(habit, user_id=user_id)
        return self.archiver.archive_on_deletion(
            user_id=user_id, habit_id=habit_id, today=today, now=archived_at
        )

    def _require(self, user_id: int, habit_id: int) -> Habit:
        habit = self.habit_repo.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        return habit


__all__ = ["HabitService", "habit_visible_on"]
