"""Date and time utility functions."""

from typing import Optional
from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    SQLite has no timezone-aware column type, so every timestamp the store
    writes is naive UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """Return the naive UTC instant `days` days before `now`."""
    return (now or utcnow()) - timedelta(days=days)


def parse_day(value) -> Optional[date]:
    """
    Parse the result of SQLite's DATE() into a date.

    Args:
        value: "YYYY-MM-DD" string, date, or None

    Returns:
        Parsed date, or None if parsing fails
    """
    if value is None:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None
