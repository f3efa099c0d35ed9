"""SQLModel implementation of the streak snapshot store."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...lib.dates import to_utc, utcnow
from ...models.streak import SNAPSHOT_CONTENT_FIELDS, STREAK_ARCHIVED, StreakSnapshot


class SQLModelStreakSnapshotRepository:
    """SQLModel-based snapshot repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get(self, habit_id: int, snapshot_date: str, *, user_id: int) -> Optional[StreakSnapshot]:
        with self.session_factory() as session:
            obj = session.exec(
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == user_id)
                .where(StreakSnapshot.habit_id == habit_id)
                .where(StreakSnapshot.snapshot_date == snapshot_date)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def upsert(self, snapshot: StreakSnapshot, *, user_id: int) -> StreakSnapshot:
        """Insert, or overwrite the row with the same (user, habit, day) key."""
        snapshot.user_id = user_id
        try:
            return self._write(snapshot)
        except IntegrityError:
            return self._write(snapshot)

    def _write(self, snapshot: StreakSnapshot) -> StreakSnapshot:
        with self.session_factory() as session:
            existing = session.exec(
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == snapshot.user_id)
                .where(StreakSnapshot.habit_id == snapshot.habit_id)
                .where(StreakSnapshot.snapshot_date == snapshot.snapshot_date)
            ).first()

            if existing:
                for name in SNAPSHOT_CONTENT_FIELDS:
                    setattr(existing, name, getattr(snapshot, name))
                existing.updated_at = utcnow()
                row = existing
            else:
                row = StreakSnapshot(**snapshot.content())
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def list_for_habit(self, habit_id: int, *, user_id: int) -> list[StreakSnapshot]:
        with self.session_factory() as session:
            statement = (
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == user_id)
                .where(StreakSnapshot.habit_id == habit_id)
                .order_by(StreakSnapshot.snapshot_date.desc())  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_for_date(self, snapshot_date: str, *, user_id: int) -> list[StreakSnapshot]:
        with self.session_factory() as session:
            statement = (
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == user_id)
                .where(StreakSnapshot.snapshot_date == snapshot_date)
                .order_by(StreakSnapshot.habit_id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_archived(self, *, user_id: int, limit: int = 50) -> list[StreakSnapshot]:
        with self.session_factory() as session:
            statement = (
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == user_id)
                .where(StreakSnapshot.streak_type == STREAK_ARCHIVED)
                .where(StreakSnapshot.is_archived == True)  # noqa: E712
                .order_by(
                    StreakSnapshot.archived_at.desc(),  # type: ignore
                    StreakSnapshot.longest_streak.desc(),  # type: ignore
                )
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_all(self, *, user_id: int) -> list[StreakSnapshot]:
        with self.session_factory() as session:
            statement = (
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == user_id)
                .order_by(StreakSnapshot.habit_id, StreakSnapshot.snapshot_date.desc())  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def mark_archived(self, habit_id: int, archived_at: datetime, *, user_id: int) -> int:
        """Flip every snapshot of a habit to archived; returns rows touched."""
        with self.session_factory() as session:
            rows = session.exec(
                select(StreakSnapshot)
                .where(StreakSnapshot.user_id == user_id)
                .where(StreakSnapshot.habit_id == habit_id)
            ).all()
            for row in rows:
                row.streak_type = STREAK_ARCHIVED
                row.is_archived = True
                row.archived_at = to_utc(archived_at)
                row.updated_at = utcnow()
                session.add(row)
            session.commit()
            return len(rows)


__all__ = ["SQLModelStreakSnapshotRepository"]
