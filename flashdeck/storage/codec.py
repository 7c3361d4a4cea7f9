"""Versioned JSON payloads for everything persisted in the local store."""

import json
from datetime import datetime
from typing import Any, Optional

from ..exceptions import StorageError
from ..utils.parsing import parse_timestamp

SCHEMA_VERSION = 1


def encode_payload(data: Any) -> str:
    """Wrap data with the schema version and serialize it to JSON."""
    try:
        return json.dumps(
            {"schema_version": SCHEMA_VERSION, "data": data},
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as e:
        raise StorageError(f"Could not encode payload: {e}") from e


def decode_payload(raw: str) -> Any:
    """
    Parse a blob written by encode_payload.

    Raises:
        StorageError: If the blob is not valid JSON or carries another schema version
    """
    try:
        envelope = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Malformed payload: {e}") from e

    if not isinstance(envelope, dict) or "data" not in envelope:
        raise StorageError("Payload has no data envelope")

    version = envelope.get("schema_version")
    if version != SCHEMA_VERSION:
        raise StorageError(f"Unsupported schema version: {version!r}")

    return envelope["data"]


def encode_timestamp(value: datetime) -> str:
    return value.isoformat()


def decode_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp, or None if missing or unreadable."""
    if not raw:
        return None
    marker = object()
    parsed = parse_timestamp(raw, default=lambda: marker)
    return None if parsed is marker else parsed
