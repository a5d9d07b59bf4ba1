"""Datetime helpers shared by services and serializers.

Everything is stored and compared in UTC. SQLite hands back naive
datetimes, so every comparison goes through as_utc() first.
"""

import math
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return a timezone-aware UTC datetime (naive values are assumed UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(target: Optional[datetime], now: datetime) -> Optional[int]:
    """Whole days from `now` until `target`, rounded up (negative when past)."""
    if target is None:
        return None
    seconds = (as_utc(target) - as_utc(now)).total_seconds()
    return math.ceil(seconds / 86400)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()
