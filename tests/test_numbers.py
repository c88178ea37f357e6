"""
Tests for headhunter.numbers parsing and rounding helpers.

Covers:
- Lenient numeric and datetime parsing (None instead of raising)
- Half-up rounding
- Percentages and averages over partially missing data
- Week bounds
"""

from datetime import datetime, timedelta, timezone

from headhunter.numbers import (
    average,
    clamp,
    days_between,
    parse_datetime,
    parse_int,
    parse_number,
    percentage,
    round_half_up,
    round_to,
    to_iso,
    week_bounds,
)


class TestParseNumber:
    """Tests for parse_number / parse_int."""

    def test_numeric_strings(self):
        """Numeric strings with separators parse."""
        assert parse_number("1,250.5") == 1250.5
        assert parse_number(" 42 ") == 42.0

    def test_invalid_values_return_none(self):
        """Garbage, booleans and non-finite values are None."""
        assert parse_number("abc") is None
        assert parse_number("") is None
        assert parse_number(True) is None
        assert parse_number(float("nan")) is None
        assert parse_number(float("inf")) is None
        assert parse_number({"a": 1}) is None

    def test_zero_is_not_missing(self):
        """A real zero survives parsing."""
        assert parse_number(0) == 0.0
        assert parse_number("0") == 0.0

    def test_parse_int_truncates(self):
        """Floats truncate toward zero."""
        assert parse_int("14.9") == 14
        assert parse_int(None) is None


class TestParseDatetime:
    """Tests for parse_datetime / to_iso."""

    def test_z_suffix(self):
        """Z suffix parses as UTC."""
        parsed = parse_datetime("2024-06-12T15:00:00Z")
        assert parsed == datetime(2024, 6, 12, 15, 0, tzinfo=timezone.utc)

    def test_naive_assumed_utc(self):
        """Naive timestamps are treated as UTC."""
        parsed = parse_datetime("2024-06-12 15:00:00")
        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    def test_offset_converted(self):
        """Offsets are normalised to UTC."""
        parsed = parse_datetime("2024-06-12T17:00:00+02:00")
        assert parsed.hour == 15

    def test_invalid_returns_none(self):
        """Unparsable input is None."""
        assert parse_datetime("not a date") is None
        assert parse_datetime("") is None
        assert parse_datetime(12345) is None

    def test_to_iso_uses_z(self):
        """Rendered timestamps end in Z."""
        assert to_iso(datetime(2024, 6, 12, 15, tzinfo=timezone.utc)) == "2024-06-12T15:00:00Z"
        assert to_iso(None) is None


class TestRounding:
    """Tests for round_to / round_half_up."""

    def test_half_up(self):
        """Halves round away from zero, not to even."""
        assert round_to(2.345, 2) == 2.35
        assert round_to(0.05, 1) == 0.1
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4

    def test_none_passes_through(self):
        """None stays None."""
        assert round_to(None) is None


class TestAggregates:
    """Tests for average / percentage / days_between / clamp."""

    def test_average_skips_missing(self):
        """Unparseable entries do not count toward the mean."""
        assert average([2, None, "4", "x"]) == 3.0

    def test_average_empty(self):
        """No parseable values gives None."""
        assert average([None, "x"]) is None

    def test_average_digits(self):
        """digits rounds the mean."""
        assert average([1, 2, 2], digits=1) == 1.7

    def test_percentage_zero_total(self):
        """A zero denominator is 0.0, not an error."""
        assert percentage(5, 0) == 0.0
        assert percentage(1, 3) == 33.3

    def test_days_between(self):
        """Elapsed days may be fractional or negative."""
        start = datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert days_between(start, start + timedelta(hours=36)) == 1.5
        assert days_between(start + timedelta(days=1), start) == -1.0
        assert days_between(None, start) is None

    def test_clamp(self):
        assert clamp(3, 7, 120) == 7
        assert clamp(500, 7, 120) == 120
        assert clamp(30, 7, 120) == 30


class TestWeekBounds:
    """Tests for week_bounds."""

    def test_monday_start(self):
        """The week runs Monday 00:00 to the next Monday."""
        wednesday = datetime(2024, 6, 12, 15, 30, tzinfo=timezone.utc)
        start, end = week_bounds(wednesday)
        assert start == datetime(2024, 6, 10, tzinfo=timezone.utc)
        assert end == datetime(2024, 6, 17, tzinfo=timezone.utc)

    def test_monday_itself(self):
        """Monday maps to its own midnight."""
        monday = datetime(2024, 6, 10, 0, 0, tzinfo=timezone.utc)
        start, _ = week_bounds(monday)
        assert start == monday
