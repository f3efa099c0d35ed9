"""Aggregate cache repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.stats import MonthlyStatsCache, WeeklyStatsCache


class StatsCacheRepository(Protocol):
    """Keyed store for weekly and monthly aggregates of past ranges."""

    def get_weekly(self, week_start: str, *, user_id: int) -> Optional[WeeklyStatsCache]:
        ...

    def save_weekly(self, entry: WeeklyStatsCache, *, user_id: int) -> WeeklyStatsCache:
        """Upsert by (user, week_start)."""
        ...

    def get_monthly(self, year: int, month: int, *, user_id: int) -> Optional[MonthlyStatsCache]:
        ...

    def save_monthly(self, entry: MonthlyStatsCache, *, user_id: int) -> MonthlyStatsCache:
        """Upsert by (user, year, month)."""
        ...

    def purge_older_than(self, cutoff: datetime) -> int:
        """Delete rows of every user calculated before ``cutoff``."""
        ...
