from __future__ import annotations

from datetime import date, datetime, timedelta

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime."""
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid timestamp {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def minutes_between(start: datetime, end: datetime) -> float:
    """Elapsed minutes from ``start`` to ``end``, fractional minutes kept."""
    return (end - start).total_seconds() / 60


def week_start(day: date) -> date:
    """Sunday that opens the week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_bounds(day: date) -> tuple[date, date]:
    first = day.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, next_first - timedelta(days=1)


def week_number(day: date) -> int:
    """ISO-8601 week of year (weeks start Monday, week 1 holds the first Thursday)."""
    return day.isocalendar()[1]
