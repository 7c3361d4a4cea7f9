"""Persistent user preferences stored alongside caches and progress."""

import copy
import logging
from typing import Any, Dict

from ..exceptions import StorageError
from ..storage.codec import decode_payload, encode_payload
from ..storage.store import BaseStore

logger = logging.getLogger(__name__)


class UserPreferences:
    """
    Manages user preferences persisted in the local store.

    Changes are immediately persisted.

    Usage:
        prefs = UserPreferences(store)
        if not prefs.has_completed_tutorial:
            ...
            prefs.complete_tutorial()
    """

    STORE_KEY: str = "preferences"

    DEFAULTS: Dict[str, Any] = {
        "has_completed_tutorial": False,
    }

    def __init__(self, store: BaseStore) -> None:
        self._store = store
        self._settings: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        settings = copy.deepcopy(self.DEFAULTS)
        raw = self._store.get(self.STORE_KEY)
        if raw is None:
            return settings
        try:
            stored = decode_payload(raw)
        except StorageError as e:
            logger.warning("Could not load preferences: %s", e)
            return settings
        if isinstance(stored, dict):
            settings.update(stored)
        return settings

    def _save(self) -> bool:
        return self._store.set(self.STORE_KEY, encode_payload(self._settings))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a preference value (copy for mutable types)."""
        value = self._settings.get(key, default)
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a preference value and persist it."""
        self._settings[key] = value
        self._save()

    @property
    def has_completed_tutorial(self) -> bool:
        return bool(self._settings.get("has_completed_tutorial", False))

    def complete_tutorial(self) -> None:
        self.set("has_completed_tutorial", True)

    def reset(self) -> None:
        """Restore defaults. For testing only."""
        self._settings = copy.deepcopy(self.DEFAULTS)
        self._save()
