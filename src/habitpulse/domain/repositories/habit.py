"""Habit repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.habit import Habit


class HabitRepository(Protocol):
    """Owner-scoped access to habits.

    ``list_all`` orders by ``display_order`` then creation time. ``delete`` is a
    hard delete that also drops the habit's completion entries.
    """

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]: ...

    def list_all(self, *, user_id: int, include_inactive: bool = False) -> list[Habit]: ...

    def list_active(self, *, user_id: int) -> list[Habit]: ...

    def create(self, habit: Habit, *, user_id: int) -> Habit: ...

    def update(self, habit: Habit, *, user_id: int) -> Habit: ...

    def delete(self, habit_id: int, *, user_id: int) -> None: ...
