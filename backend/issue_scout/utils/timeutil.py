from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: object) -> datetime | None:
    """Parse a GitHub RFC 3339 timestamp. Returns None for missing or malformed input."""
    if not isinstance(value, str) or not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(dt: datetime) -> str:
    """UTC, second precision. Fixed width so stored values sort in time order."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds")


def whole_hours_between(start: datetime, end: datetime) -> float:
    """Elapsed whole hours from start to end, truncated toward zero."""
    return float(int((end - start).total_seconds() / 3600))
