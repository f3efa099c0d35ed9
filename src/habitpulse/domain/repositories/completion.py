"""Completion log repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.habit import CompletionEntry


class CompletionLogRepository(Protocol):
    """Keyed store of one completion entry per (user, habit, day)."""

    def get_entry(
        self, habit_id: int, occurred_on: str, *, user_id: int
    ) -> Optional[CompletionEntry]:
        """Get the entry for one habit and day."""
        ...

    def entries_for_habit(
        self, habit_id: int, *, user_id: int, up_to: Optional[str] = None
    ) -> list[CompletionEntry]:
        """All entries of a habit ordered by day, optionally capped at ``up_to``."""
        ...

    def entries_between(self, start: str, end: str, *, user_id: int) -> list[CompletionEntry]:
        """Entries of every habit with ``start <= day <= end``."""
        ...

    def entries_on(self, occurred_on: str, *, user_id: int) -> list[CompletionEntry]:
        """Entries of every habit for a single day."""
        ...

    def set_period(
        self,
        habit_id: int,
        occurred_on: str,
        period: str,
        percentage: int,
        *,
        user_id: int,
    ) -> CompletionEntry:
        """Create or update the day's entry, setting a single period."""
        ...
