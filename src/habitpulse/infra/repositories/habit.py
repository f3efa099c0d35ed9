"""Habit storage backed by SQLModel."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session, select

from ...models.habit import CompletionEntry, Habit
from ..database import SessionFactory


def _owned(session: Session, habit_id: int, user_id: int) -> Optional[Habit]:
    stmt = select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
    return session.exec(stmt).first()


class SQLModelHabitRepository:
    """Habits of one owner at a time; returned objects are detached."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        with self.session_factory() as session:
            habit = _owned(session, habit_id, user_id)
            if habit is not None:
                session.expunge(habit)
            return habit

    def list_all(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """Habits in display order; ties fall back to creation time."""
        stmt = select(Habit).where(Habit.user_id == user_id)
        if not include_inactive:
            stmt = stmt.where(Habit.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Habit.display_order, Habit.created_at, Habit.id)  # type: ignore[arg-type]

        with self.session_factory() as session:
            habits = list(session.exec(stmt).all())
            session.expunge_all()
            return habits

    def list_active(self, *, user_id: int) -> list[Habit]:
        return self.list_all(user_id=user_id)

    def create(self, habit: Habit, *, user_id: int) -> Habit:
        habit.user_id = user_id
        with self.session_factory() as session:
            session.add(habit)
            session.flush()
            session.refresh(habit)
            session.expunge(habit)
        return habit

    def update(self, habit: Habit, *, user_id: int) -> Habit:
        """Persist a modified (possibly detached) habit and return the stored copy."""
        habit.user_id = user_id
        with self.session_factory() as session:
            stored = session.merge(habit)
            session.flush()
            session.refresh(stored)
            session.expunge(stored)
        return stored

    def delete(self, habit_id: int, *, user_id: int) -> None:
        """Remove the habit together with its completion entries.

        Streak snapshots reference the habit by plain id and stay behind.
        """
        with self.session_factory() as session:
            habit = _owned(session, habit_id, user_id)
            if habit is None:
                return
            entries = select(CompletionEntry).where(CompletionEntry.habit_id == habit_id)
            for entry in session.exec(entries).all():
                session.delete(entry)
            session.flush()
            session.delete(habit)


__all__ = ["SQLModelHabitRepository"]
