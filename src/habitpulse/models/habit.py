"""Habits and their per-day, per-period completion log."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

from ..lib.dates import utcnow

if TYPE_CHECKING:  # pragma: no cover
    from .user import User

TIME_PERIODS = ("morning", "afternoon", "evening", "night")
VALID_PERCENTAGES = (0, 10, 20, 50, 80, 100)

TASK_RECURRING = "recurring"
TASK_SINGLE_DAY = "single-day"
TASK_TYPES = (TASK_RECURRING, TASK_SINGLE_DAY)
GOALS = ("Daily", "Weekly", "Monthly")


class Habit(SQLModel, table=True):
    """A user-defined habit.

    Habits are never hard-deleted by the services: archiving clears
    ``is_active`` and stamps ``archived_at`` so history stays queryable.
    """

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    category: str = Field(default="General", max_length=64)
    color: str = Field(default="#3b82f6", max_length=16)
    goal: str = Field(default="Daily", max_length=16)
    task_type: str = Field(default=TASK_RECURRING, max_length=16)
    is_active: bool = Field(default=True, nullable=False, index=True)
    archived_at: Optional[datetime] = Field(default=None)
    start_date: Optional[date] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    display_order: int = Field(default=0, nullable=False)

    entries: list["CompletionEntry"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship("CompletionEntry", back_populates="habit"),
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="habits"))


class CompletionEntry(SQLModel, table=True):
    """One day's four period percentages for one habit.

    ``occurred_on`` is a local ``YYYY-MM-DD`` key; there is exactly one row per
    (user, habit, day).
    """

    __tablename__: ClassVar[str] = "completion_entry"
    __table_args__ = (
        UniqueConstraint("user_id", "habit_id", "occurred_on", name="uq_completion_entry_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    occurred_on: str = Field(nullable=False, max_length=10, index=True)
    morning: int = Field(default=0, nullable=False)
    afternoon: int = Field(default=0, nullable=False)
    evening: int = Field(default=0, nullable=False)
    night: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    habit: "Habit" = Relationship(
        back_populates="entries",
        sa_relationship=relationship("Habit", back_populates="entries"),
    )

    def periods(self) -> dict[str, int]:
        return {period: getattr(self, period) or 0 for period in TIME_PERIODS}
