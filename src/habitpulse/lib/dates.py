"""Calendar-day helpers for ``YYYY-MM-DD`` date keys.

Date keys are always derived from local calendar time. Converting to UTC
first would move late-evening completions onto the next day, so only the
timestamp helpers at the bottom (:func:`utcnow`, :func:`to_utc`,
:func:`local_date`) deal with timezones. Timestamps are stored as aware UTC.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterator

from ..errors import ValidationError

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def date_key(value: date | datetime) -> str:
    """Format a date (or a naive local datetime) as ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%Y-%m-%d")


def today_key() -> str:
    return date_key(date.today())


def parse_date_key(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` key into a date.

    Raises:
        ValidationError: if the string is not a well-formed, real calendar date.
    """
    if not isinstance(value, str) or not _DATE_KEY_RE.match(value):
        raise ValidationError(f"Invalid date format {value!r}. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid calendar date {value!r}") from exc


def as_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date_key(value)


def days_between(start: date | str, end: date | str) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if reversed)."""
    return (as_date(end) - as_date(start)).days


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += timedelta(days=1)


def week_bounds(day: date) -> tuple[date, date]:
    """Return the (Sunday, Saturday) pair of the week containing ``day``."""
    # date.weekday(): Monday == 0 ... Sunday == 6
    offset = (day.weekday() + 1) % 7
    start = day - timedelta(days=offset)
    return start, start + timedelta(days=6)


def day_name(day: date) -> str:
    return DAY_NAMES[(day.weekday() + 1) % 7]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month {month!r}; expected 1-12")
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def first_weekday_of_month(year: int, month: int) -> int:
    """Weekday of the 1st of the month with Sunday == 0."""
    return (date(year, month, 1).weekday() + 1) % 7


def utcnow() -> datetime:
    """Aware UTC timestamp, the form persisted in ``*_at`` columns."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalise *value* to aware UTC; naive values are taken to be UTC already."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_date(value: datetime) -> date:
    """Local calendar day of a stored (UTC) timestamp."""
    return to_utc(value).astimezone().date()


__all__ = [
    "DAY_NAMES",
    "as_date",
    "date_key",
    "day_name",
    "days_between",
    "first_weekday_of_month",
    "iter_days",
    "local_date",
    "month_bounds",
    "parse_date_key",
    "to_utc",
    "today_key",
    "utcnow",
    "week_bounds",
]
