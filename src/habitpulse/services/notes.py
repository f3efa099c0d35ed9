"""Monthly notes: read and replace the free-text note of a calendar month."""

from __future__ import annotations

import logging
from typing import Any

from ..domain.repositories import MonthlyNoteRepository
from ..errors import ValidationError
from ..lib.dates import month_bounds
from ..models.note import NOTE_MAX_LENGTH

logger = logging.getLogger("habitpulse.notes")


def _check_month(year: Any, month: Any) -> tuple[int, int]:
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
        raise ValidationError(f"Invalid year {year!r}")
    if isinstance(month, bool) or not isinstance(month, int):
        raise ValidationError(f"Invalid month {month!r}; expected 1-12")
    month_bounds(year, month)
    return year, month


class NotesService:
    def __init__(self, *, note_repo: MonthlyNoteRepository):
        self.note_repo = note_repo

    def get_notes(self, *, user_id: int, year: int, month: int) -> dict[str, Any]:
        """The month's note, or an empty one (not stored) when none was written.

        Raises:
            ValidationError: if ``month`` is outside 1-12
        """
        year, month = _check_month(year, month)
        note = self.note_repo.get(year, month, user_id=user_id)
        if note is None:
            return {"year": year, "month": month, "content": "", "updatedAt": None}
        return note.to_dict()

    def update_notes(self, *, user_id: int, year: int, month: int, content: str | None) -> dict[str, Any]:
        """Replace the month's note, creating it on first write.

        Args:
            user_id: Owner of the note
            year: Calendar year
            month: Calendar month, 1-12
            content: New text; ``None`` clears the note

        Raises:
            ValidationError: on a bad month or content over 5000 characters
        """
        year, month = _check_month(year, month)
        content = "" if content is None else content
        if not isinstance(content, str):
            raise ValidationError("Note content must be text")
        if len(content) > NOTE_MAX_LENGTH:
            raise ValidationError(f"Notes cannot exceed {NOTE_MAX_LENGTH} characters")

        note = self.note_repo.save(year, month, content, user_id=user_id)
        logger.debug(
            "Monthly note saved",
            extra={"user_id": user_id, "year": year, "month": month, "length": len(content)},
        )
        return note.to_dict()


__all__ = ["NotesService"]
