# app/core.py

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    # canonical clock: timezone-aware UTC
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    # naive values are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_hour(value: datetime) -> datetime:
    return to_utc(value).replace(minute=0, second=0, microsecond=0)


def is_before(value: datetime, now: datetime) -> bool:
    return to_utc(value) < to_utc(now)


def sub_hours(value: datetime, hours: int) -> datetime:
    return value - timedelta(hours=hours)


def get_clock():
    """Dependency: the clock used by the routes. Overridden in tests."""
    return utcnow
