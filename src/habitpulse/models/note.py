"""Free-text notes attached to a calendar month."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from ..lib.dates import utcnow

NOTE_MAX_LENGTH = 5000


class MonthlyNote(SQLModel, table=True):
    """One note per (user, year, month)."""

    __tablename__: ClassVar[str] = "monthly_note"
    __table_args__ = (UniqueConstraint("user_id", "year", "month", name="uq_monthly_note_month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    year: int = Field(nullable=False)
    month: int = Field(nullable=False)
    content: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "content": self.content,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
