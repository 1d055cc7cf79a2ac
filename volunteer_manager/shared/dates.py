"""Date and time helpers. The database stores naive UTC datetimes."""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import DEFAULT_TIMEZONE


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, matching database storage"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime read from the database"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC for storage"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_zone(value: datetime, tz_name: Optional[str]) -> datetime:
    return as_utc(value).astimezone(ZoneInfo(tz_name or DEFAULT_TIMEZONE))


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")
