"""SQLModel implementation of the user repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.user import User


class SQLModelUserRepository:
    """SQLModel-based user repository."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_username(self, username: str) -> Optional[User]:
        with self.session_factory() as session:
            obj = session.exec(select(User).where(User.username == username.strip())).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[User]:
        with self.session_factory() as session:
            rows = list(session.exec(select(User).order_by(User.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def create(self, user: User) -> User:
        with self.session_factory() as session:
            user.username = user.username.strip()
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user


__all__ = ["SQLModelUserRepository"]
