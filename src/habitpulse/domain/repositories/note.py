"""Monthly note repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.note import MonthlyNote


class MonthlyNoteRepository(Protocol):
    """At most one note per (user, year, month)."""

    def get(self, year: int, month: int, *, user_id: int) -> Optional[MonthlyNote]:
        ...

    def save(self, year: int, month: int, content: str, *, user_id: int) -> MonthlyNote:
        """Create or replace the month's note and stamp ``updated_at``."""
        ...
