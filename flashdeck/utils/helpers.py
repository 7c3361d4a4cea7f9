"""Utility functions."""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_remaining(remaining: Optional[timedelta]) -> str:
    """Format a wait time as "Xh Ymin" for status messages."""
    if remaining is None or remaining <= timedelta(0):
        return "0h 0min"
    total = int(remaining.total_seconds())
    hours, rest = divmod(total, 3600)
    return f"{hours}h {rest // 60}min"


def format_elapsed(elapsed: Optional[timedelta]) -> str:
    """
    Describe an elapsed time with its largest whole unit.

    Examples: "2 days", "1 hour", "5 minutes", "just now".
    """
    if elapsed is None:
        return "n/a"
    seconds = int(elapsed.total_seconds())
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        count = seconds // size
        if count > 0:
            return f"{count} {unit}{'s' if count > 1 else ''}"
    return "just now"
