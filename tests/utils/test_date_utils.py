"""Tests for date utility functions."""

from datetime import date, datetime, timedelta, timezone
from smartmeet.utils.date_utils import (
    utcnow,
    to_naive_utc,
    days_ago,
    parse_day
)


class TestUtcnow:
    """Tests for utcnow() function."""

    def test_is_naive(self):
        assert utcnow().tzinfo is None

    def test_matches_aware_utc_clock(self):
        aware = datetime.now(timezone.utc).replace(tzinfo=None)
        assert abs(utcnow() - aware) < timedelta(seconds=5)


class TestToNaiveUtc:
    """Tests for to_naive_utc() function."""

    def test_none_passes_through(self):
        assert to_naive_utc(None) is None

    def test_naive_value_unchanged(self):
        dt = datetime(2024, 5, 1, 10, 0)
        assert to_naive_utc(dt) == dt

    def test_offset_converted_to_utc(self):
        dt = datetime(2024, 5, 1, 10, 0, tzinfo=timezone(timedelta(hours=5)))
        result = to_naive_utc(dt)
        assert result == datetime(2024, 5, 1, 5, 0)
        assert result.tzinfo is None


class TestDaysAgo:
    """Tests for days_ago() function."""

    def test_relative_to_given_now(self):
        now = datetime(2024, 5, 31, 8, 0)
        assert days_ago(30, now=now) == datetime(2024, 5, 1, 8, 0)

    def test_zero_days_is_now(self):
        now = datetime(2024, 5, 31, 8, 0)
        assert days_ago(0, now=now) == now


class TestParseDay:
    """Tests for parse_day() function."""

    def test_parses_sqlite_date_string(self):
        assert parse_day("2024-05-01") == date(2024, 5, 1)

    def test_date_passes_through(self):
        assert parse_day(date(2024, 5, 1)) == date(2024, 5, 1)

    def test_invalid_returns_none(self):
        assert parse_day(None) is None
        assert parse_day("2024-13-45") is None
        assert parse_day("not-a-date") is None
