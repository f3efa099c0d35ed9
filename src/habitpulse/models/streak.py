"""Persisted, date-stamped streak history."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..lib.dates import utcnow

STREAK_ACTIVE = "active"
STREAK_ENDED = "ended"
STREAK_ARCHIVED = "archived"
STREAK_TYPES = (STREAK_ACTIVE, STREAK_ENDED, STREAK_ARCHIVED)

# Columns that carry the snapshot itself, as opposed to row bookkeeping.
SNAPSHOT_CONTENT_FIELDS = (
    "user_id",
    "habit_id",
    "snapshot_date",
    "habit_name",
    "habit_color",
    "habit_category",
    "streak_type",
    "current_streak",
    "longest_streak",
    "start_date",
    "end_date",
    "last_completed_date",
    "total_completions",
    "completion_rate",
    "is_archived",
    "archived_at",
)


class StreakSnapshot(SQLModel, table=True):
    """Streak state of one habit as of one day.

    Habit name, color and category are copied in so the row stays readable
    after the habit is archived or removed. ``habit_id`` is deliberately not a
    foreign key for the same reason.
    """

    __tablename__: ClassVar[str] = "streak_snapshot"
    __table_args__ = (
        UniqueConstraint("user_id", "habit_id", "snapshot_date", name="uq_streak_snapshot_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    habit_id: int = Field(nullable=False, index=True)
    snapshot_date: str = Field(nullable=False, max_length=10, index=True)

    habit_name: str = Field(nullable=False, max_length=100)
    habit_color: str = Field(default="#3b82f6", max_length=16)
    habit_category: str = Field(default="General", max_length=64)

    streak_type: str = Field(default=STREAK_ACTIVE, max_length=16, index=True)
    current_streak: int = Field(default=0, nullable=False)
    longest_streak: int = Field(default=0, nullable=False)
    start_date: Optional[str] = Field(default=None, max_length=10)
    end_date: Optional[str] = Field(default=None, max_length=10)
    last_completed_date: Optional[str] = Field(default=None, max_length=10)
    total_completions: int = Field(default=0, nullable=False)
    completion_rate: int = Field(default=0, nullable=False)

    is_archived: bool = Field(default=False, nullable=False)
    archived_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def content(self) -> dict[str, Any]:
        """Snapshot payload without row id or bookkeeping timestamps."""
        return {name: getattr(self, name) for name in SNAPSHOT_CONTENT_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "habitName": self.habit_name,
            "habitColor": self.habit_color,
            "habitCategory": self.habit_category,
            "streakType": self.streak_type,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "lastCompletedDate": self.last_completed_date,
            "totalCompletions": self.total_completions,
            "completionRate": self.completion_rate,
            "snapshotDate": self.snapshot_date,
            "isArchived": self.is_archived,
            "archivedAt": self.archived_at.isoformat() if self.archived_at else None,
        }
