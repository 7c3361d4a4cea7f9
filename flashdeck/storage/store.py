"""
Local Store - key to blob persistence for caches, progress and preferences.

Enables switching between a JSON file and SQLite without changing the
services that persist through it.
"""

import json
import logging
import os
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Dict, Generator, List, Optional

logger = logging.getLogger(__name__)


class StorageBackend(Enum):
    """Available storage backends."""
    JSON = "json"
    SQLITE = "sqlite"


class BaseStore(ABC):
    """
    Abstract base class for key/value stores.

    Values are strings (encoded payloads or ISO timestamps). Every
    mutation is written through before the call returns.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key, or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> bool:
        """Store value under key. Returns True if persisted."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if persisted."""
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """List stored keys starting with prefix."""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Remove every key."""
        pass


class JSONFileStore(BaseStore):
    """
    Single JSON file store.

    The whole mapping is loaded at construction and rewritten atomically
    (temp file + rename) on every mutation.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = Lock()
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        """Load the store file; unreadable files start empty."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read store file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold an object, ignoring it", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _save_internal(self) -> bool:
        """Internal save without lock (caller must hold lock)."""
        temp_file = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = f"{self.path}.{uuid.uuid4().hex[:8]}.tmp"
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(temp_file, self.path)
            return True
        except OSError as e:
            logger.warning("Could not write store file %s: %s", self.path, e)
            if temp_file and os.path.exists(temp_file):
                try:
                    os.remove(temp_file)
                except OSError:
                    pass
            return False

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        with self._lock:
            self._data[key] = value
            return self._save_internal()

    def delete(self, key: str) -> bool:
        with self._lock:
            if key not in self._data:
                return True
            del self._data[key]
            return self._save_internal()

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))

    def clear(self) -> bool:
        with self._lock:
            self._data = {}
            return self._save_internal()


class SQLiteStore(BaseStore):
    """
    SQLite-based store.

    Provides transactional single-key updates (no full-file rewrites).
    """

    # Schema version for migrations
    SCHEMA_VERSION = 1

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._init_schema()

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection with context manager."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            cursor.execute("INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
                           (self.SCHEMA_VERSION, datetime.now().isoformat()))

            conn.commit()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            logger.warning("Could not read key %s: %s", key, e)
            return None

    def set(self, key: str, value: str) -> bool:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute(
                        """
                        INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                        """,
                        (key, value, datetime.now().isoformat()),
                    )
                    conn.commit()
                return True
            except sqlite3.Error as e:
                logger.warning("Could not write key %s: %s", key, e)
                return False

    def delete(self, key: str) -> bool:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                    conn.commit()
                return True
            except sqlite3.Error as e:
                logger.warning("Could not delete key %s: %s", key, e)
                return False

    def keys(self, prefix: str = "") -> List[str]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
                return [row[0] for row in rows if row[0].startswith(prefix)]
        except sqlite3.Error as e:
            logger.warning("Could not list keys: %s", e)
            return []

    def clear(self) -> bool:
        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute("DELETE FROM kv_store")
                    conn.commit()
                return True
            except sqlite3.Error as e:
                logger.warning("Could not clear store: %s", e)
                return False


def create_store(backend: StorageBackend, path: str) -> BaseStore:
    """
    Create the store for a backend.

    Args:
        backend: Storage backend to use
        path: File path of the JSON file or SQLite database

    Returns:
        Store instance
    """
    if backend == StorageBackend.SQLITE:
        return SQLiteStore(path)
    return JSONFileStore(path)
