"""SQLModel implementation of the completion log."""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...lib.dates import utcnow
from ...models.habit import TIME_PERIODS, CompletionEntry


class SQLModelCompletionLogRepository:
    """One row per (user, habit, day); writes are upserts on that key."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_entry(
        self, habit_id: int, occurred_on: str, *, user_id: int
    ) -> Optional[CompletionEntry]:
        with self.session_factory() as session:
            obj = session.exec(
                select(CompletionEntry)
                .where(CompletionEntry.user_id == user_id)
                .where(CompletionEntry.habit_id == habit_id)
                .where(CompletionEntry.occurred_on == occurred_on)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def entries_for_habit(
        self, habit_id: int, *, user_id: int, up_to: Optional[str] = None
    ) -> list[CompletionEntry]:
        """All entries of a habit ordered by day, optionally capped at ``up_to``."""
        with self.session_factory() as session:
            statement = (
                select(CompletionEntry)
                .where(CompletionEntry.user_id == user_id)
                .where(CompletionEntry.habit_id == habit_id)
            )
            if up_to is not None:
                # YYYY-MM-DD keys sort lexicographically in calendar order.
                statement = statement.where(CompletionEntry.occurred_on <= up_to)
            statement = statement.order_by(CompletionEntry.occurred_on)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def entries_between(self, start: str, end: str, *, user_id: int) -> list[CompletionEntry]:
        with self.session_factory() as session:
            statement = (
                select(CompletionEntry)
                .where(CompletionEntry.user_id == user_id)
                .where(CompletionEntry.occurred_on >= start)
                .where(CompletionEntry.occurred_on <= end)
                .order_by(CompletionEntry.occurred_on, CompletionEntry.habit_id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def entries_on(self, occurred_on: str, *, user_id: int) -> list[CompletionEntry]:
        return self.entries_between(occurred_on, occurred_on, user_id=user_id)

    def set_period(
        self,
        habit_id: int,
        occurred_on: str,
        period: str,
        percentage: int,
        *,
        user_id: int,
    ) -> CompletionEntry:
        """Create or update the day's entry, setting a single period.

        If a concurrent writer inserts the same day first, the unique
        constraint rejects our insert and the write is retried as an update.
        """
        if period not in TIME_PERIODS:
            raise ValueError(f"Unknown time period: {period}")
        try:
            return self._write_period(habit_id, occurred_on, period, percentage, user_id=user_id)
        except IntegrityError:
            return self._write_period(habit_id, occurred_on, period, percentage, user_id=user_id)

    def _write_period(
        self, habit_id: int, occurred_on: str, period: str, percentage: int, *, user_id: int
    ) -> CompletionEntry:
        with self.session_factory() as session:
            entry = session.exec(
                select(CompletionEntry)
                .where(CompletionEntry.user_id == user_id)
                .where(CompletionEntry.habit_id == habit_id)
                .where(CompletionEntry.occurred_on == occurred_on)
            ).first()

            if entry:
                setattr(entry, period, percentage)
                entry.updated_at = utcnow()
            else:
                entry = CompletionEntry(
                    user_id=user_id,
                    habit_id=habit_id,
                    occurred_on=occurred_on,
                    **{period: percentage},
                )
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry


__all__ = ["SQLModelCompletionLogRepository"]
