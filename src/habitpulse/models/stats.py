"""Cached weekly and monthly aggregates.

Rows only ever hold ranges that were entirely in the past when computed.
``calculated_at`` drives both the read-side validity check and the
scheduled purge of expired rows.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from ..lib.dates import utcnow


class WeeklyStatsCache(SQLModel, table=True):
    """Weekly overview for one Sunday-to-Saturday week."""

    __tablename__: ClassVar[str] = "weekly_stats_cache"
    __table_args__ = (UniqueConstraint("user_id", "week_start", name="uq_weekly_stats_week"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    week_start: str = Field(nullable=False, max_length=10)
    week_end: str = Field(nullable=False, max_length=10)
    days: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    weekly_average: float = Field(default=0.0, nullable=False)
    top_habits: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    calculated_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class MonthlyStatsCache(SQLModel, table=True):
    """Monthly overview (heatmap, top habits, in-month longest streak)."""

    __tablename__: ClassVar[str] = "monthly_stats_cache"
    __table_args__ = (UniqueConstraint("user_id", "year", "month", name="uq_monthly_stats_month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    year: int = Field(nullable=False)
    month: int = Field(nullable=False)
    days_in_month: int = Field(nullable=False)
    first_day_of_week: int = Field(nullable=False)
    daily_progress: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    monthly_average: float = Field(default=0.0, nullable=False)
    top_habits: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    longest_streak: dict[str, Any] = Field(
        default_factory=lambda: {"habitName": "None", "streakDays": 0},
        sa_column=Column(JSON, nullable=False),
    )
    calculated_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)
