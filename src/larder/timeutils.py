"""Clock and day arithmetic shared by the store and the prediction engine."""

from __future__ import annotations

from datetime import datetime, timezone

SECONDS_PER_DAY = 86400.0


def utcnow() -> datetime:
    """Return the current time as a naive UTC datetime (the store's representation)."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize aware datetimes to naive UTC; naive values are assumed to be UTC."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def days_between(start: datetime, end: datetime) -> float:
    """Return the (possibly fractional, possibly negative) number of days from start to end."""

    return (as_naive_utc(end) - as_naive_utc(start)).total_seconds() / SECONDS_PER_DAY


def normalize_name(value: str) -> str:
    """Normalize free-text names for comparison."""
    return " ".join(value.lower().split())
