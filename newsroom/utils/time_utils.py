"""
UTC time helpers shared by the scheduler, slug builder and repositories.

Every timestamp the newsroom persists is an aware UTC ``datetime`` rendered
with ``to_iso()``, so lexical order of stored strings equals time order.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are assumed to already be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_utc_day(now: datetime) -> datetime:
    """Midnight (00:00:00.000) UTC of the calendar day containing ``now``."""
    now = ensure_utc(now)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def utc_day_window(now: datetime) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window of the UTC day containing ``now``.

    Returns:
        ``(start_of_utc_day(now), start_of_utc_day(now) + 1 day)``
    """
    start = start_of_utc_day(now)
    return start, start + timedelta(days=1)


def to_iso(value: datetime) -> str:
    """Render an aware UTC timestamp as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix accepted) into aware UTC."""
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
