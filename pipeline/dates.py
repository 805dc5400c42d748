"""Timestamp helpers. Everything is compared as naive UTC."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_datetime(value: Any) -> datetime | None:
    """Parse a datetime, ISO-8601 string or RFC 2822 date (RSS pubDate)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None

    raw = value.strip()
    try:
        return _to_naive_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return _to_naive_utc(parsedate_to_datetime(raw))
    except (TypeError, ValueError, IndexError):
        return None


def age_hours(value: Any, now: datetime | None = None) -> float | None:
    """Hours elapsed since ``value``; None when the timestamp is unparseable."""
    published = parse_datetime(value)
    if published is None:
        return None
    now = now or utcnow()
    return (now - published).total_seconds() / 3600


def age_days(value: Any, now: datetime | None = None) -> float | None:
    hours = age_hours(value, now)
    return None if hours is None else hours / 24


def within_days(value: Any, days: float, now: datetime | None = None) -> bool:
    """True when ``value`` is no older than ``days``. Unparseable dates are never fresh."""
    age = age_days(value, now)
    return age is not None and age <= days
