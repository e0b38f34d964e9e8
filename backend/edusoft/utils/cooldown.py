"""Weekly retake window shared by the language assessments."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

COOLDOWN_DAYS = 7


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_utc(value)
    return value.isoformat() if value else None


def next_available(completed_at: datetime, days: int = COOLDOWN_DAYS) -> datetime:
    return ensure_utc(completed_at) + timedelta(days=days)


def check_availability(last_completed_at: Optional[datetime], now: Optional[datetime] = None) -> dict:
    """Decide whether a new attempt may start.

    Returns `available`, `next_available_date` and `days_remaining`
    (rounded up). The window is closed on the left: an attempt exactly
    seven days after the previous one is allowed.
    """
    if last_completed_at is None:
        return {"available": True, "next_available_date": None, "days_remaining": 0}
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    opens_at = next_available(last_completed_at)
    if now >= opens_at:
        return {"available": True, "next_available_date": opens_at, "days_remaining": 0}
    remaining = (opens_at - now).total_seconds() / 86400.0
    return {
        "available": False,
        "next_available_date": opens_at,
        "days_remaining": max(1, math.ceil(remaining)),
    }
