"""
Low-level timezone and timestamp utilities.

This module provides helpers for timezone-aware UTC datetime operations.
It is domain-agnostic and should NOT contain battle-specific logic.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

EASTERN = ZoneInfo("America/New_York")


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_et_date(value: datetime) -> date:
    """Return the US Eastern calendar day for a timestamp.

    US sports schedule on Eastern Time. A 10 PM ET game on Feb 5 is a
    "Feb 5 game" even though it's Feb 6 in UTC.
    """
    return ensure_utc(value).astimezone(EASTERN).date()
