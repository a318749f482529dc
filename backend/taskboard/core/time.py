"""Time helpers shared by models and services."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime (database convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return the half-open ``[start, end)`` UTC bounds for a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
