"""SQLModel implementation of monthly notes."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...lib.dates import utcnow
from ...models.note import MonthlyNote
from ..database import SessionFactory


def _find(session: Session, year: int, month: int, user_id: int) -> Optional[MonthlyNote]:
    return session.exec(
        select(MonthlyNote)
        .where(MonthlyNote.user_id == user_id)
        .where(MonthlyNote.year == year)
        .where(MonthlyNote.month == month)
    ).first()


class SQLModelMonthlyNoteRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get(self, year: int, month: int, *, user_id: int) -> Optional[MonthlyNote]:
        with self.session_factory() as session:
            note = _find(session, year, month, user_id)
            if note is not None:
                session.expunge(note)
            return note

    def save(self, year: int, month: int, content: str, *, user_id: int) -> MonthlyNote:
        """Upsert; a concurrent insert of the same month is retried as an update."""
        try:
            return self._save(year, month, content, user_id)
        except IntegrityError:
            return self._save(year, month, content, user_id)

    def _save(self, year: int, month: int, content: str, user_id: int) -> MonthlyNote:
        with self.session_factory() as session:
            note = _find(session, year, month, user_id) or MonthlyNote(
                user_id=user_id, year=year, month=month
            )
            note.content = content
            note.updated_at = utcnow()
            session.add(note)
            session.flush()
            session.refresh(note)
            session.expunge(note)
        return note


__all__ = ["SQLModelMonthlyNoteRepository"]
