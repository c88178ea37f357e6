"""
Parsing and rounding helpers shared by the repository boundary and the builders.

Every helper returns None (or a neutral value) for missing, malformed or
non-finite input instead of raising, so a single bad record never fails a
snapshot build. "Missing" and "invalid" both come back as None; a real zero
comes back as 0.0.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

SECONDS_PER_DAY = 86400.0
SECONDS_PER_HOUR = 3600.0


def parse_number(value) -> float | None:
    """Coerce value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def parse_int(value) -> int | None:
    """Coerce value to an int (truncating floats), or None."""
    number = parse_number(value)
    return int(number) if number is not None else None


def parse_datetime(value) -> datetime | None:
    """
    Parse ISO-8601 strings, dates and datetimes into aware UTC datetimes.

    Naive values are assumed to be UTC. Anything unparsable returns None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: datetime | None) -> str | None:
    """Render an aware datetime as an ISO string with a Z suffix."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def round_to(value: float | None, digits: int = 2) -> float | None:
    """Round half-up to digits; None passes through."""
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def average(values: Iterable, digits: int | None = None) -> float | None:
    """Mean of the parseable values; None when there are none."""
    numbers = [n for n in (parse_number(v) for v in values) if n is not None]
    if not numbers:
        return None
    mean = sum(numbers) / len(numbers)
    return round_to(mean, digits) if digits is not None else mean


def percentage(part: float, total: float, digits: int = 1) -> float:
    """part / total as a percentage; 0.0 when total is falsy."""
    if not total:
        return 0.0
    return round_to(part / total * 100, digits)


def days_between(start: datetime | None, end: datetime | None) -> float | None:
    """Elapsed days from start to end (may be negative); None if either is missing."""
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / SECONDS_PER_DAY


def hours_between(start: datetime | None, end: datetime | None) -> float | None:
    """Elapsed hours from start to end; None if either is missing."""
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / SECONDS_PER_HOUR


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def week_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Monday 00:00 of now's week and the following Monday."""
    start = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=7)
