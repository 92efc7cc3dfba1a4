from __future__ import annotations
from typing import Optional
from datetime import datetime, timezone


def canonicalize_timestamp(dt: datetime) -> datetime:
    """Return a UTC tz-aware timestamp (SQLite hands back naive values)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return canonicalize_timestamp(dt).isoformat().replace('+00:00', 'Z')
