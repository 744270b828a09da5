"""
Timezone helpers.

Conventions:
- Bar and tick timestamps are integer epoch seconds (bucket arithmetic stays integral)
- Signal timestamps are timezone-aware UTC datetimes
- Wire format is ISO-8601
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional


UTC = timezone.utc


def now_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as ISO-8601 in UTC, or None."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()
