"""Tests for the streak snapshot archiver and its queries."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from habitpulse.models import User
from habitpulse.services.snapshots import SnapshotArchiver


class TestSnapshot:
    def test_snapshot_is_idempotent(self, archiver, snapshot_repo, user, habit_factory, log_days):
        habit = habit_factory("Read")
        log_days(habit, "2024-01-01", "2024-01-03")

        first = archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-03")
        second = archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-03")

        assert first.content() == second.content()
        assert first.id == second.id
        assert len(snapshot_repo.list_for_habit(habit.id, user_id=user.id)) == 1

    def test_snapshot_copies_habit_and_streak(self, archiver, user, habit_factory, log_days):
        habit = habit_factory("Read", color="#ff0000", category="Mind")
        log_days(habit, "2024-01-01", "2024-01-03")

        row = archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-03")

        assert row.habit_name == "Read"
        assert row.habit_color == "#ff0000"
        assert row.habit_category == "Mind"
        assert row.streak_type == "active"
        assert row.current_streak == 3
        assert row.end_date == "2024-01-03"
        assert row.is_archived is False
        assert row.to_dict()["snapshotDate"] == "2024-01-03"

    def test_snapshot_of_archived_habit(self, archiver, user, habit_factory):
        archived_at = datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)
        habit = habit_factory("Old", is_active=False, archived_at=archived_at)

        row = archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-03")

        assert row.streak_type == "archived"
        assert row.is_archived is True
        assert row.archived_at == archived_at
        assert row.current_streak == 0

    def test_missing_habit_returns_none(self, archiver, snapshot_repo, user):
        assert archiver.snapshot(user_id=user.id, habit_id=9999, snapshot_date="2024-01-03") is None
        assert snapshot_repo.list_all(user_id=user.id) == []

    def test_other_owner_sees_no_habit(self, archiver, other_user, habit_factory):
        habit = habit_factory()
        assert archiver.snapshot(user_id=other_user.id, habit_id=habit.id, snapshot_date="2024-01-03") is None

    def test_resnapshot_reflects_late_entries(self, archiver, user, habit_factory, log_entry):
        habit = habit_factory()
        log_entry(habit, "2024-01-02")
        assert archiver.snapshot(
            user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-02"
        ).current_streak == 1

        log_entry(habit, "2024-01-01")
        healed = archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-02")
        assert healed.current_streak == 2


class TestArchiveOnDeletion:
    def test_deleting_habit_with_five_day_streak(
        self, archiver, habit_service, snapshot_repo, user, habit_factory, log_days
    ):
        habit = habit_factory("Meditate")
        log_days(habit, "2024-03-01", "2024-03-05")
        for day in ("2024-03-01", "2024-03-02", "2024-03-03", "2024-03-04"):
            archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date=day)
        deleted_at = datetime(2024, 3, 5, 20, 30, tzinfo=timezone.utc)

        final = habit_service.delete_habit(
            user_id=user.id, habit_id=habit.id, today=date(2024, 3, 5), now=deleted_at
        )

        assert final.snapshot_date == "2024-03-05"
        assert final.current_streak == 5
        history = snapshot_repo.list_for_habit(habit.id, user_id=user.id)
        assert len(history) == 5
        assert all(row.is_archived for row in history)
        assert all(row.streak_type == "archived" for row in history)
        assert all(row.archived_at == deleted_at for row in history)

    def test_archiving_never_reduces_history(self, archiver, snapshot_repo, user, habit_factory, log_days):
        habit = habit_factory()
        log_days(habit, "2024-01-01", "2024-01-03")
        for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
            archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date=day)

        archiver.archive_on_deletion(user_id=user.id, habit_id=habit.id, today=date(2024, 1, 3))

        rows = snapshot_repo.list_for_habit(habit.id, user_id=user.id)
        assert len(rows) == 3
        assert [row.current_streak for row in rows] == [3, 2, 1]

    def test_archive_of_missing_habit_still_marks_history(self, archiver, snapshot_repo, user, habit_factory, habit_repo):
        habit = habit_factory()
        archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-01")
        habit_repo.delete(habit.id, user_id=user.id)

        final = archiver.archive_on_deletion(user_id=user.id, habit_id=habit.id, today=date(2024, 1, 2))

        assert final is None
        rows = snapshot_repo.list_for_habit(habit.id, user_id=user.id)
        assert len(rows) == 1
        assert rows[0].is_archived is True


class TestBatches:
    def test_batch_continues_past_a_failing_habit(
        self, archiver, user, habit_factory, monkeypatch, caplog
    ):
        habit_factory("Good")
        bad = habit_factory("Bad")
        habit_factory("Also good")
        real_snapshot = archiver.snapshot

        def flaky_snapshot(*, user_id, habit_id, snapshot_date):
            if habit_id == bad.id:
                raise RuntimeError("boom")
            return real_snapshot(user_id=user_id, habit_id=habit_id, snapshot_date=snapshot_date)

        monkeypatch.setattr(archiver, "snapshot", flaky_snapshot)

        with caplog.at_level(logging.ERROR, logger="habitpulse.snapshots"):
            result = archiver.snapshot_all_for_user(user_id=user.id, snapshot_date="2024-01-01")

        assert result.snapshots == 2
        assert result.failed == [(bad.id, "boom")]
        assert result.ok is False
        assert any("boom" in record.getMessage() for record in caplog.records)

    def test_snapshot_all_users(self, archiver, user_repo, user, habit_factory, snapshot_repo):
        second = user_repo.create(User(username="second"))
        habit_factory("Mine")
        habit_factory("Archived", is_active=False)
        habit_factory("Theirs", owner=second)

        result = archiver.snapshot_all_users(snapshot_date="2024-01-01")

        assert result.ok
        assert result.snapshots == 3
        assert result.to_dict()["snapshotDate"] == "2024-01-01"
        assert len(snapshot_repo.list_for_date("2024-01-01", user_id=user.id)) == 2
        assert len(snapshot_repo.list_for_date("2024-01-01", user_id=second.id)) == 1

    def test_snapshot_all_users_needs_user_repo(self, habit_repo, log_repo, snapshot_repo):
        archiver = SnapshotArchiver(habit_repo=habit_repo, log_repo=log_repo, snapshot_repo=snapshot_repo)
        with pytest.raises(RuntimeError):
            archiver.snapshot_all_users(snapshot_date="2024-01-01")


class TestQueries:
    def test_active_streaks_for_a_day(self, archiver, user, habit_factory, log_days):
        one = habit_factory("One")
        three = habit_factory("Three")
        none = habit_factory("None")
        log_days(one, "2024-01-03", "2024-01-03")
        log_days(three, "2024-01-01", "2024-01-03")
        for habit in (one, three, none):
            archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-03")

        rows = archiver.active_streaks(user_id=user.id, snapshot_date="2024-01-03")

        assert [(row.habit_name, row.current_streak) for row in rows] == [("Three", 3), ("One", 1)]

    def test_habit_history_is_newest_first(self, archiver, user, habit_factory):
        habit = habit_factory()
        for day in ("2024-01-02", "2024-01-01", "2024-01-03"):
            archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date=day)

        history = archiver.habit_history(user_id=user.id, habit_id=habit.id)
        assert [row.snapshot_date for row in history] == ["2024-01-03", "2024-01-02", "2024-01-01"]

    def test_archived_streaks_are_limited(self, archiver, user, habit_factory):
        for index in range(3):
            habit = habit_factory(f"Habit {index}")
            archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-01")
            archiver.archive_on_deletion(
                user_id=user.id,
                habit_id=habit.id,
                today=date(2024, 1, 1),
                now=datetime(2024, 1, 1, 10 + index, 0),
            )

        rows = archiver.archived_streaks(user_id=user.id, limit=2)

        assert [row.habit_name for row in rows] == ["Habit 2", "Habit 1"]

    def test_top_streaks_use_latest_name_and_best_length(
        self, archiver, habit_repo, user, habit_factory, log_days
    ):
        habit = habit_factory("Old name")
        log_days(habit, "2024-01-01", "2024-01-04")
        archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-02")
        habit.name = "New name"
        habit_repo.update(habit, user_id=user.id)
        archiver.snapshot(user_id=user.id, habit_id=habit.id, snapshot_date="2024-01-04")
        other = habit_factory("Other")
        log_days(other, "2024-01-01", "2024-01-02")
        archiver.snapshot(user_id=user.id, habit_id=other.id, snapshot_date="2024-01-02")

        top = archiver.top_streaks(user_id=user.id)

        assert [(row["habitName"], row["longestStreak"]) for row in top] == [
            ("New name", 4),
            ("Other", 2),
        ]
        assert archiver.top_streaks(user_id=user.id, limit=1)[0]["habitId"] == habit.id
