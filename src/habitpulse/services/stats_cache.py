"""Weekly/monthly overviews with a read-through cache for past ranges.

Only ranges that ended before ``today`` are cached; the running week or
month is rebuilt on every request because its entries still change. Cache
rows are valid for ``ttl`` after ``calculated_at``. The cache is purely an
optimisation: store errors on either side are logged and the freshly built
overview is returned.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..domain.repositories import (
    CompletionLogRepository,
    HabitRepository,
    StatsCacheRepository,
)
from ..lib.dates import as_date, date_key, month_bounds, to_utc, utcnow, week_bounds
from ..models.stats import MonthlyStatsCache, WeeklyStatsCache
from ..observability import LoggingObserver, StatsEvent, StatsObserver
from .aggregates import MonthlyOverview, WeeklyOverview, build_monthly, build_weekly

logger = logging.getLogger("habitpulse.stats")

DEFAULT_TTL = timedelta(hours=1)

T = TypeVar("T")


def range_is_fully_past(range_end: date, today: date) -> bool:
    """True when the last day of the range is strictly before ``today``."""
    return range_end < today


def is_cache_valid(
    calculated_at: Optional[datetime], now: datetime, ttl: timedelta = DEFAULT_TTL
) -> bool:
    """A cached row is served only while ``now - calculated_at < ttl``."""
    if calculated_at is None:
        return False
    return to_utc(now) - to_utc(calculated_at) < ttl


def _with_today_flags(days: list[dict], today: date) -> list[dict]:
    today_str = date_key(today)
    return [{**day, "isToday": day.get("date") == today_str} for day in days]


class StatsService:
    """Builds overviews from the completion log and caches past ranges."""

    def __init__(
        self,
        *,
        habit_repo: HabitRepository,
        log_repo: CompletionLogRepository,
        cache_repo: StatsCacheRepository,
        ttl: timedelta = DEFAULT_TTL,
        observer: StatsObserver | None = None,
    ):
        self.habit_repo = habit_repo
        self.log_repo = log_repo
        self.cache_repo = cache_repo
        self.ttl = ttl
        self.observer = observer or LoggingObserver()

    # ------------------------------------------------------------------ weekly

    def weekly_overview(
        self,
        *,
        user_id: int,
        week_of: date | str | None = None,
        today: date | None = None,
        now: datetime | None = None,
    ) -> WeeklyOverview:
        """Overview of the Sunday-to-Saturday week containing ``week_of``."""
        today = today or date.today()
        now = to_utc(now) if now else utcnow()
        start, end = week_bounds(as_date(week_of) if week_of else today)
        range_key = date_key(start)
        past = range_is_fully_past(end, today)

        if past:
            row = self._read_cache(
                lambda: self.cache_repo.get_weekly(range_key, user_id=user_id),
                user_id=user_id,
                range_key=range_key,
            )
            if row is not None and is_cache_valid(row.calculated_at, now, self.ttl):
                self._emit("weekly.cache_hit", user_id, range_key)
                return WeeklyOverview(
                    week_start=row.week_start,
                    week_end=row.week_end,
                    days=_with_today_flags(row.days, today),
                    weekly_average=row.weekly_average,
                    top_habits=list(row.top_habits),
                    calculated_at=row.calculated_at,
                    cached=True,
                )

        habits = self.habit_repo.list_active(user_id=user_id)
        entries = self.log_repo.entries_between(range_key, date_key(end), user_id=user_id)
        overview = build_weekly(habits, entries, week_of=start, today=today)
        overview.calculated_at = now
        self._emit(
            "weekly.built",
            user_id,
            range_key,
            habits=len(habits),
            entries=len(entries),
            average=overview.weekly_average,
            past_range=past,
        )

        if past:
            row = WeeklyStatsCache(
                user_id=user_id,
                week_start=overview.week_start,
                week_end=overview.week_end,
                days=overview.days,
                weekly_average=overview.weekly_average,
                top_habits=overview.top_habits,
                calculated_at=now,
            )
            self._write_cache(
                lambda: self.cache_repo.save_weekly(row, user_id=user_id),
                user_id=user_id,
                range_key=range_key,
            )
        return overview

    # ----------------------------------------------------------------- monthly

    def monthly_overview(
        self,
        *,
        user_id: int,
        year: int,
        month: int,
        today: date | None = None,
        now: datetime | None = None,
    ) -> MonthlyOverview:
        """Overview of one calendar month, archived habits included.

        Args:
            user_id: Owner whose habits are aggregated
            year: Calendar year
            month: Calendar month, 1-12
            today: Local date used for ``isToday`` and the past-range check
            now: Clock for cache validity; naive values are read as UTC
        """
        today = today or date.today()
        now = to_utc(now) if now else utcnow()
        first, last = month_bounds(year, month)
        range_key = f"{year:04d}-{month:02d}"
        past = range_is_fully_past(last, today)

        if past:
            row = self._read_cache(
                lambda: self.cache_repo.get_monthly(year, month, user_id=user_id),
                user_id=user_id,
                range_key=range_key,
            )
            if row is not None and is_cache_valid(row.calculated_at, now, self.ttl):
                self._emit("monthly.cache_hit", user_id, range_key)
                return MonthlyOverview(
                    year=row.year,
                    month=row.month,
                    days_in_month=row.days_in_month,
                    first_day_of_week=row.first_day_of_week,
                    daily_progress=_with_today_flags(row.daily_progress, today),
                    monthly_average=row.monthly_average,
                    top_habits=list(row.top_habits),
                    longest_streak=dict(row.longest_streak),
                    calculated_at=row.calculated_at,
                    cached=True,
                )

        # Past months may reference habits that have since been archived.
        habits = self.habit_repo.list_all(user_id=user_id, include_inactive=True)
        entries = self.log_repo.entries_between(date_key(first), date_key(last), user_id=user_id)
        overview = build_monthly(habits, entries, year=year, month=month, today=today)
        overview.calculated_at = now
        self._emit(
            "monthly.built",
            user_id,
            range_key,
            habits=len(habits),
            entries=len(entries),
            average=overview.monthly_average,
            past_range=past,
        )

        if past:
            row = MonthlyStatsCache(
                user_id=user_id,
                year=year,
                month=month,
                days_in_month=overview.days_in_month,
                first_day_of_week=overview.first_day_of_week,
                daily_progress=overview.daily_progress,
                monthly_average=overview.monthly_average,
                top_habits=overview.top_habits,
                longest_streak=overview.longest_streak,
                calculated_at=now,
            )
            self._write_cache(
                lambda: self.cache_repo.save_monthly(row, user_id=user_id),
                user_id=user_id,
                range_key=range_key,
            )
        return overview

    # ------------------------------------------------------------ maintenance

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete cache rows of every user whose TTL has elapsed.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Number of rows removed
        """
        now = to_utc(now) if now else utcnow()
        removed = self.cache_repo.purge_older_than(now - self.ttl)
        if removed:
            logger.info("Purged %d expired stats cache rows", removed)
        return removed

    # ---------------------------------------------------------------- helpers

    def _read_cache(
        self, read: Callable[[], Optional[T]], *, user_id: int, range_key: str
    ) -> Optional[T]:
        try:
            return read()
        except SQLAlchemyError:
            logger.warning(
                "Stats cache read failed; computing fresh",
                extra={"user_id": user_id, "range_key": range_key},
                exc_info=True,
            )
            self._emit("cache.read_failed", user_id, range_key)
            return None

    def _write_cache(self, write: Callable[[], object], *, user_id: int, range_key: str) -> None:
        try:
            write()
        except SQLAlchemyError:
            logger.warning(
                "Stats cache write failed; returning uncached result",
                extra={"user_id": user_id, "range_key": range_key},
                exc_info=True,
            )
            self._emit("cache.write_failed", user_id, range_key)

    def _emit(self, name: str, user_id: int, range_key: str, **fields) -> None:
        self.observer.emit(StatsEvent(name=name, user_id=user_id, range_key=range_key, fields=fields))


__all__ = ["DEFAULT_TTL", "StatsService", "is_cache_valid", "range_is_fully_past"]
