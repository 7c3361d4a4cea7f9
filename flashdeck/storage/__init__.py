"""Local persistence: key/value stores and the versioned payload codec."""

from .codec import SCHEMA_VERSION, decode_payload, decode_timestamp, encode_payload, encode_timestamp
from .store import BaseStore, JSONFileStore, SQLiteStore, StorageBackend, create_store

__all__ = [
    'SCHEMA_VERSION',
    'decode_payload',
    'decode_timestamp',
    'encode_payload',
    'encode_timestamp',
    'BaseStore',
    'JSONFileStore',
    'SQLiteStore',
    'StorageBackend',
    'create_store',
]
