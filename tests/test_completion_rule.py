"""Tests for the completion rule, progress validation and day summaries."""

from __future__ import annotations

import random

import pytest

from habitpulse.errors import ValidationError
from habitpulse.models import CompletionEntry
from habitpulse.models.habit import TIME_PERIODS, VALID_PERCENTAGES
from habitpulse.services.completion import (
    completed_dates,
    is_complete,
    legacy_view,
    summarize_day,
    validate_progress,
)


def _entry(day: str = "2024-01-01", habit_id: int = 1, **periods) -> CompletionEntry:
    return CompletionEntry(user_id=1, habit_id=habit_id, occurred_on=day, **periods)


class TestIsComplete:
    def test_missing_entry_is_not_complete(self):
        assert is_complete(None) is False

    def test_all_zero_is_not_complete(self):
        assert is_complete(_entry()) is False

    def test_partial_progress_is_not_complete(self):
        assert is_complete(_entry(morning=80, afternoon=80, evening=80, night=80)) is False

    @pytest.mark.parametrize("period", TIME_PERIODS)
    def test_any_single_period_at_100_completes_the_day(self, period):
        assert is_complete(_entry(**{period: 100})) is True

    def test_mapping_with_missing_periods(self):
        assert is_complete({"night": 100}) is True
        assert is_complete({"morning": None}) is False

    def test_monotone_under_raising_other_periods(self):
        """Once one period is at 100, no change to the others undoes completion."""
        rng = random.Random(1234)
        for _ in range(200):
            done_period = rng.choice(TIME_PERIODS)
            values = {period: rng.choice(VALID_PERCENTAGES) for period in TIME_PERIODS}
            values[done_period] = 100
            assert is_complete(values)
            other = rng.choice([p for p in TIME_PERIODS if p != done_period])
            values[other] = rng.choice(VALID_PERCENTAGES)
            assert is_complete(values)

    def test_completed_dates_respects_cap(self):
        entries = [
            _entry("2024-01-01", evening=100),
            _entry("2024-01-02", morning=50),
            _entry("2024-01-03", night=100),
        ]
        assert completed_dates(entries) == {"2024-01-01", "2024-01-03"}
        assert completed_dates(entries, up_to="2024-01-02") == {"2024-01-01"}


class TestValidateProgress:
    def test_accepts_valid_input(self):
        for percentage in VALID_PERCENTAGES:
            validate_progress("2024-01-01", "morning", percentage)

    @pytest.mark.parametrize(
        "occurred_on,period,percentage",
        [
            ("2024-13-01", "morning", 100),
            ("01/01/2024", "morning", 100),
            ("2024-01-01", "noon", 100),
            ("2024-01-01", "Morning", 100),
            ("2024-01-01", "morning", 55),
            ("2024-01-01", "morning", 101),
            ("2024-01-01", "morning", -10),
            ("2024-01-01", "morning", True),
            ("2024-01-01", "morning", "100"),
        ],
    )
    def test_rejects_malformed_input(self, occurred_on, period, percentage):
        with pytest.raises(ValidationError):
            validate_progress(occurred_on, period, percentage)


class TestProjections:
    def test_legacy_view_derives_completed_flag(self):
        assert legacy_view(_entry("2024-01-05", habit_id=7, afternoon=100)) == {
            "habitId": 7,
            "date": "2024-01-05",
            "completed": True,
        }
        assert legacy_view(_entry("2024-01-05", habit_id=7, afternoon=80))["completed"] is False

    def test_summarize_day(self):
        entries = [
            _entry(habit_id=1, morning=100),
            _entry(habit_id=2, afternoon=50),
        ]
        summary = summarize_day(entries, total_habits=2)

        assert summary == {
            "totalHabits": 2,
            "overallProgress": 19,
            "morningProgress": 50,
            "afternoonProgress": 25,
            "eveningProgress": 0,
            "nightProgress": 0,
            "completed": 1,
            "remaining": 7,
        }

    def test_summarize_day_without_habits(self):
        summary = summarize_day([], total_habits=0)
        assert summary["overallProgress"] == 0
        assert summary["remaining"] == 0
