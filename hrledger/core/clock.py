"""
Time helpers shared by the ledgers.

All instants are stored in UTC.  "Today" and the late-arrival hour are
evaluated in the configured local offset (``settings.TIMEZONE_OFFSET``).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from hrledger.core.config import settings

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalise a potentially-naive timestamp (SQLite) to UTC-aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def local_timezone(offset: str | None = None) -> timezone:
    """Parse a ``+HH:MM`` offset into a fixed ``timezone``."""
    offset = offset or settings.TIMEZONE_OFFSET
    sign = 1 if offset[0] == "+" else -1
    hours, _, minutes = offset[1:].partition(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes or 0)))


def to_local(dt: datetime) -> datetime:
    return ensure_utc(dt).astimezone(local_timezone())


def local_today(now: datetime) -> date:
    return to_local(now).date()


def date_range(start: date, end: date) -> list[date]:
    """Every calendar day in ``[start, end]`` inclusive."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]
