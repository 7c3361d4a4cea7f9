"""Text and timestamp parsing utilities for consistent decoding across the package."""

import unicodedata
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from .helpers import utcnow


class TextParser:
    """Centralized text parsing utilities."""

    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.

        Prevents issues with characters like ã being represented as
        either a single codepoint (NFC) or base + combining accent (NFD),
        which would otherwise yield two different storage ids for one card.

        Args:
            text: Input text

        Returns:
            NFC-normalized text
        """
        if not text:
            return ""
        return unicodedata.normalize("NFC", str(text))

    @classmethod
    def clean_field(cls, value: Any) -> Optional[str]:
        """Return a stripped, normalized string, or None if value is not a non-blank string."""
        if not isinstance(value, str):
            return None
        cleaned = cls.normalize_unicode(value.strip())
        return cleaned or None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(
    value: Any,
    default: Optional[Callable[[], datetime]] = None,
) -> datetime:
    """
    Parse a timestamp from the shapes remote documents and caches use.

    Accepts datetimes, epoch seconds (int/float), ISO-8601 strings
    (including a trailing "Z") and {"seconds": ..., "nanos": ...} maps.
    Anything missing or unparseable falls back to ``default()`` (now).

    Args:
        value: Raw timestamp value
        default: Factory for the fallback value

    Returns:
        Timezone-aware UTC datetime
    """
    fallback = default or utcnow
    try:
        if isinstance(value, datetime):
            return _as_utc(value)
        if isinstance(value, bool):
            return fallback()
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        if isinstance(value, str) and value.strip():
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return _as_utc(datetime.fromisoformat(_trim_fraction(text)))
        if isinstance(value, dict) and "seconds" in value:
            nanos = value.get("nanos", value.get("nanoseconds", 0)) or 0
            seconds = float(value["seconds"]) + float(nanos) / 1e9
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (ValueError, TypeError, OverflowError, OSError):
        pass
    return fallback()


def _trim_fraction(text: str) -> str:
    """Cut fractional seconds to 6 digits; Firestore emits nanosecond precision."""
    if "." not in text:
        return text
    head, _, tail = text.partition(".")
    digits = ""
    for ch in tail:
        if not ch.isdigit():
            break
        digits += ch
    if not digits:
        return text
    return f"{head}.{digits[:6].ljust(6, '0')}{tail[len(digits):]}"
