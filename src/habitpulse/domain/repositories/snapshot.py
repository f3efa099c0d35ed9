"""Streak snapshot repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.streak import StreakSnapshot


class StreakSnapshotRepository(Protocol):
    """Repository for date-stamped streak history."""

    def get(self, habit_id: int, snapshot_date: str, *, user_id: int) -> Optional[StreakSnapshot]:
        """Fetch the snapshot for one habit and day."""
        ...

    def upsert(self, snapshot: StreakSnapshot, *, user_id: int) -> StreakSnapshot:
        """Insert, or overwrite the row with the same (user, habit, day) key."""
        ...

    def list_for_habit(self, habit_id: int, *, user_id: int) -> list[StreakSnapshot]:
        """History of one habit, newest snapshot first."""
        ...

    def list_for_date(self, snapshot_date: str, *, user_id: int) -> list[StreakSnapshot]:
        """Every snapshot taken on one day."""
        ...

    def list_archived(self, *, user_id: int, limit: int = 50) -> list[StreakSnapshot]:
        """Archived snapshots, most recently archived first."""
        ...

    def list_all(self, *, user_id: int) -> list[StreakSnapshot]:
        """Every snapshot of the user."""
        ...

    def mark_archived(self, habit_id: int, archived_at: datetime, *, user_id: int) -> int:
        """Flip every snapshot of a habit to archived; returns rows touched."""
        ...
