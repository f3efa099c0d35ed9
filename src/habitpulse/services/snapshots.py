"""Streak snapshot archiver.

Snapshots are recomputed from the completion log every time, never patched
incrementally, so re-running a snapshot for a day heals late or missed runs
and gives the same content for an unchanged log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from ..domain.repositories import (
    CompletionLogRepository,
    HabitRepository,
    StreakSnapshotRepository,
    UserRepository,
)
from ..lib.dates import date_key, parse_date_key, to_utc, utcnow
from ..models.streak import STREAK_ACTIVE, STREAK_ARCHIVED, StreakSnapshot
from .streaks import streak_for_habit

logger = logging.getLogger("habitpulse.snapshots")

ARCHIVED_LIMIT = 50
TOP_LIMIT = 10


@dataclass
class SnapshotBatchResult:
    """Outcome of a batch run; failures are reported, not raised."""

    snapshot_date: str
    snapshots: int = 0
    skipped: int = 0
    failed: list[tuple[int, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def merge(self, other: "SnapshotBatchResult") -> None:
        self.snapshots += other.snapshots
        self.skipped += other.skipped
        self.failed.extend(other.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "snapshotDate": self.snapshot_date,
            "snapshots": self.snapshots,
            "skipped": self.skipped,
            "failed": [{"id": item_id, "error": error} for item_id, error in self.failed],
        }


class SnapshotArchiver:
    """Writes and queries per-day streak snapshots."""

    def __init__(
        self,
        *,
        habit_repo: HabitRepository,
        log_repo: CompletionLogRepository,
        snapshot_repo: StreakSnapshotRepository,
        user_repo: UserRepository | None = None,
    ):
        self.habit_repo = habit_repo
        self.log_repo = log_repo
        self.snapshot_repo = snapshot_repo
        self.user_repo = user_repo

    def snapshot(self, *, user_id: int, habit_id: int, snapshot_date: str) -> Optional[StreakSnapshot]:
        """Upsert the snapshot of one habit as of ``snapshot_date``.

        Returns None when the habit no longer exists.
        """
        parse_date_key(snapshot_date)
        habit = self.habit_repo.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            logger.info(
                "Habit %s not found, skipping snapshot", habit_id, extra={"user_id": user_id}
            )
            return None

        result = streak_for_habit(self.log_repo, habit_id, user_id=user_id, as_of=snapshot_date)
        snapshot = StreakSnapshot(
            user_id=user_id,
            habit_id=habit_id,
            snapshot_date=snapshot_date,
            habit_name=habit.name,
            habit_color=habit.color,
            habit_category=habit.category,
            streak_type=STREAK_ACTIVE if habit.is_active else STREAK_ARCHIVED,
            current_streak=result.current_streak,
            longest_streak=result.longest_streak,
            start_date=result.start_date,
            end_date=result.end_date,
            last_completed_date=result.last_completed_date,
            total_completions=result.total_completions,
            completion_rate=result.completion_rate,
            is_archived=not habit.is_active,
            archived_at=habit.archived_at,
        )
        return self.snapshot_repo.upsert(snapshot, user_id=user_id)

    def archive_on_deletion(
        self,
        *,
        user_id: int,
        habit_id: int,
        today: date | None = None,
        now: datetime | None = None,
    ) -> Optional[StreakSnapshot]:
        """Take a final snapshot, then mark the habit's whole history archived.

        The final snapshot is written first so the last day is part of the
        archived history.

        Args:
            user_id: Owner of the habit
            habit_id: Habit being deleted
            today: Date of the final snapshot (defaults to local today)
            now: Archive timestamp; naive values are read as UTC

        Returns:
            The final snapshot, or ``None`` if the habit does not exist
        """
        snapshot_date = date_key(today or date.today())
        archived_at = to_utc(now) if now else utcnow()

        final = self.snapshot(user_id=user_id, habit_id=habit_id, snapshot_date=snapshot_date)
        touched = self.snapshot_repo.mark_archived(habit_id, archived_at, user_id=user_id)
        logger.info(
            "Archived %d streak snapshots for habit %s",
            touched,
            habit_id,
            extra={"user_id": user_id},
        )
        if final is None:
            return None
        return self.snapshot_repo.get(habit_id, snapshot_date, user_id=user_id)

    def snapshot_all_for_user(self, *, user_id: int, snapshot_date: str) -> SnapshotBatchResult:
        """Snapshot every habit of a user, active and archived.

        A failing habit is logged and recorded; the rest still run.
        """
        parse_date_key(snapshot_date)
        batch = SnapshotBatchResult(snapshot_date=snapshot_date)
        for habit in self.habit_repo.list_all(user_id=user_id, include_inactive=True):
            try:
                if self.snapshot(user_id=user_id, habit_id=habit.id, snapshot_date=snapshot_date):
                    batch.snapshots += 1
                else:
                    batch.skipped += 1
            except Exception as exc:
                logger.error(
                    "Snapshot failed for habit %s: %s",
                    habit.id,
                    exc,
                    extra={"user_id": user_id, "snapshot_date": snapshot_date},
                    exc_info=True,
                )
                batch.failed.append((habit.id, str(exc)))
        return batch

    def snapshot_all_users(self, *, snapshot_date: str) -> SnapshotBatchResult:
        """Daily job body: snapshot every habit of every user."""
        if self.user_repo is None:
            raise RuntimeError("snapshot_all_users requires a user repository")
        parse_date_key(snapshot_date)
        total = SnapshotBatchResult(snapshot_date=snapshot_date)
        users = self.user_repo.list_all()
        logger.info("Creating streak snapshots for %d users", len(users))
        for user in users:
            try:
                total.merge(self.snapshot_all_for_user(user_id=user.id, snapshot_date=snapshot_date))
            except Exception as exc:
                logger.error(
                    "Snapshot batch failed for user %s: %s", user.id, exc, exc_info=True
                )
                total.failed.append((user.id, str(exc)))
        logger.info(
            "Daily snapshots completed",
            extra={
                "snapshot_date": snapshot_date,
                "snapshots": total.snapshots,
                "failures": len(total.failed),
            },
        )
        return total

    # ----------------------------------------------------------------- queries

    def active_streaks(self, *, user_id: int, snapshot_date: str) -> list[StreakSnapshot]:
        """Running streaks recorded on ``snapshot_date``, longest first."""
        rows = [
            row
            for row in self.snapshot_repo.list_for_date(snapshot_date, user_id=user_id)
            if row.streak_type == STREAK_ACTIVE and row.current_streak > 0
        ]
        return sorted(rows, key=lambda row: row.current_streak, reverse=True)

    def archived_streaks(self, *, user_id: int, limit: int = ARCHIVED_LIMIT) -> list[StreakSnapshot]:
        return self.snapshot_repo.list_archived(user_id=user_id, limit=limit)

    def habit_history(self, *, user_id: int, habit_id: int) -> list[StreakSnapshot]:
        return self.snapshot_repo.list_for_habit(habit_id, user_id=user_id)

    def top_streaks(self, *, user_id: int, limit: int = TOP_LIMIT) -> list[dict[str, Any]]:
        """All-time best streak per habit, archived habits included.

        Name, color and archived flag come from the habit's latest snapshot.
        """
        best: dict[int, dict[str, Any]] = {}
        # list_all is ordered newest snapshot first within each habit
        for row in self.snapshot_repo.list_all(user_id=user_id):
            current = best.get(row.habit_id)
            if current is None:
                best[row.habit_id] = {
                    "habitId": row.habit_id,
                    "habitName": row.habit_name,
                    "habitColor": row.habit_color,
                    "longestStreak": row.longest_streak,
                    "isArchived": row.is_archived,
                }
            elif row.longest_streak > current["longestStreak"]:
                current["longestStreak"] = row.longest_streak
        ranked = sorted(best.values(), key=lambda item: item["longestStreak"], reverse=True)
        return ranked[:limit]


__all__ = ["SnapshotArchiver", "SnapshotBatchResult"]
