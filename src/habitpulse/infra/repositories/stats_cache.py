"""SQLModel implementation of the weekly/monthly aggregate cache."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...lib.dates import to_utc
from ...models.stats import MonthlyStatsCache, WeeklyStatsCache

_WEEKLY_FIELDS = ("week_end", "days", "weekly_average", "top_habits", "calculated_at")
_MONTHLY_FIELDS = (
    "days_in_month",
    "first_day_of_week",
    "daily_progress",
    "monthly_average",
    "top_habits",
    "longest_streak",
    "calculated_at",
)


class SQLModelStatsCacheRepository:
    """Cache rows keyed by (user, week_start) and (user, year, month)."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_weekly(self, week_start: str, *, user_id: int) -> Optional[WeeklyStatsCache]:
        with self.session_factory() as session:
            obj = session.exec(
                select(WeeklyStatsCache)
                .where(WeeklyStatsCache.user_id == user_id)
                .where(WeeklyStatsCache.week_start == week_start)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def save_weekly(self, entry: WeeklyStatsCache, *, user_id: int) -> WeeklyStatsCache:
        entry.user_id = user_id
        try:
            return self._save_weekly(entry)
        except IntegrityError:
            return self._save_weekly(entry)

    def _save_weekly(self, entry: WeeklyStatsCache) -> WeeklyStatsCache:
        with self.session_factory() as session:
            existing = session.exec(
                select(WeeklyStatsCache)
                .where(WeeklyStatsCache.user_id == entry.user_id)
                .where(WeeklyStatsCache.week_start == entry.week_start)
            ).first()
            row = existing or WeeklyStatsCache(user_id=entry.user_id, week_start=entry.week_start)
            for name in _WEEKLY_FIELDS:
                setattr(row, name, getattr(entry, name))
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def get_monthly(self, year: int, month: int, *, user_id: int) -> Optional[MonthlyStatsCache]:
        with self.session_factory() as session:
            obj = session.exec(
                select(MonthlyStatsCache)
                .where(MonthlyStatsCache.user_id == user_id)
                .where(MonthlyStatsCache.year == year)
                .where(MonthlyStatsCache.month == month)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def save_monthly(self, entry: MonthlyStatsCache, *, user_id: int) -> MonthlyStatsCache:
        entry.user_id = user_id
        try:
            return self._save_monthly(entry)
        except IntegrityError:
            return self._save_monthly(entry)

    def _save_monthly(self, entry: MonthlyStatsCache) -> MonthlyStatsCache:
        with self.session_factory() as session:
            existing = session.exec(
                select(MonthlyStatsCache)
                .where(MonthlyStatsCache.user_id == entry.user_id)
                .where(MonthlyStatsCache.year == entry.year)
                .where(MonthlyStatsCache.month == entry.month)
            ).first()
            row = existing or MonthlyStatsCache(
                user_id=entry.user_id,
                year=entry.year,
                month=entry.month,
                days_in_month=entry.days_in_month,
                first_day_of_week=entry.first_day_of_week,
            )
            for name in _MONTHLY_FIELDS:
                setattr(row, name, getattr(entry, name))
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete rows of every user calculated before ``cutoff``."""
        cutoff = to_utc(cutoff)
        removed = 0
        with self.session_factory() as session:
            for model in (WeeklyStatsCache, MonthlyStatsCache):
                stale = session.exec(
                    select(model).where(model.calculated_at < cutoff)  # type: ignore[attr-defined]
                ).all()
                for row in stale:
                    session.delete(row)
                removed += len(stale)
            session.commit()
        return removed


__all__ = ["SQLModelStatsCacheRepository"]
