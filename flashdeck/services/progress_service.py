"""
Progress Service - per-deck learning state, persisted on every change.

Tracks which cards of a deck were answered and how, the resume position
and completion, keyed by the deck's storage id so progress survives
re-fetches of the catalog.
"""

import copy
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ..exceptions import DecodeError, StorageError
from ..models.progress import DeckProgress
from ..storage.codec import decode_payload, encode_payload
from ..storage.store import BaseStore
from ..utils.helpers import utcnow

logger = logging.getLogger(__name__)


class ProgressLedger:
    """
    Ledger of DeckProgress records.

    Loaded in full at construction and written through to the store after
    every mutation. Callers receive copies; only ledger operations change
    the stored records.

    Usage:
        ledger = ProgressLedger(store)
        ledger.record_answer(deck.storage_id, card.storage_id, correct=True)
        ledger.check_completion(deck.storage_id, deck.card_count)
    """

    STORE_KEY = "progress.decks"

    def __init__(self, store: BaseStore, clock: Optional[Callable[[], datetime]] = None):
        self._store = store
        self._clock = clock or utcnow
        self._progress: Dict[str, DeckProgress] = self._load()

    def _load(self) -> Dict[str, DeckProgress]:
        """Load every record; unreadable data is treated as no progress."""
        raw = self._store.get(self.STORE_KEY)
        if raw is None:
            return {}
        try:
            data = decode_payload(raw)
        except StorageError as e:
            logger.warning("Could not load progress: %s", e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Progress payload is not a mapping, ignoring it")
            return {}

        progress: Dict[str, DeckProgress] = {}
        for deck_id, record in data.items():
            try:
                progress[deck_id] = DeckProgress.from_dict(record)
            except DecodeError as e:
                logger.warning("Skipping unreadable progress for %s: %s", deck_id, e)
        return progress

    def _save(self) -> bool:
        try:
            payload = encode_payload({deck_id: p.to_dict() for deck_id, p in self._progress.items()})
        except StorageError as e:
            logger.warning("Could not encode progress: %s", e)
            return False
        return self._store.set(self.STORE_KEY, payload)

    def _record(self, deck_id: str) -> DeckProgress:
        """Internal record for a deck, created and persisted if absent."""
        progress = self._progress.get(deck_id)
        if progress is None:
            progress = DeckProgress.empty(deck_id, self._clock())
            self._progress[deck_id] = progress
            self._save()
        return progress

    def get_progress(self, deck_id: str) -> DeckProgress:
        """Progress of a deck; an empty record is created on first access."""
        return copy.deepcopy(self._record(deck_id))

    def record_answer(self, deck_id: str, card_id: str, correct: bool) -> DeckProgress:
        """
        Record a card outcome. Answering the same card again replaces its
        earlier outcome without double-counting.

        Args:
            deck_id: Deck storage id
            card_id: Card storage id
            correct: Whether the card was known

        Returns:
            Updated progress (copy)
        """
        progress = self._record(deck_id)
        progress.record_answer(card_id, correct, now=self._clock())
        self._save()
        return copy.deepcopy(progress)

    def set_resume_position(self, deck_id: str, index: int) -> DeckProgress:
        """
        Remember the card index to resume a deck from.

        Raises:
            ValueError: If index is negative
        """
        progress = self._record(deck_id)
        progress.set_resume_position(index, now=self._clock())
        self._save()
        return copy.deepcopy(progress)

    def check_completion(self, deck_id: str, total_cards: int) -> bool:
        """
        Mark the deck completed once every card has an answer.

        Completion is never undone here; only reset() clears it.

        Args:
            deck_id: Deck storage id
            total_cards: Number of cards in the deck; non-positive counts never complete

        Returns:
            Whether the deck is completed
        """
        progress = self._record(deck_id)
        if total_cards > 0 and progress.total_answered >= total_cards:
            if progress.mark_completed(now=self._clock()):
                logger.info("Deck %s completed", deck_id)
                self._save()
        return progress.completed

    def reset(self, deck_id: str) -> DeckProgress:
        """Discard a deck's history, leaving an empty record."""
        self._progress[deck_id] = DeckProgress.empty(deck_id, self._clock())
        self._save()
        return copy.deepcopy(self._progress[deck_id])

    def reset_all(self) -> None:
        """Clear every deck's progress. For testing and support."""
        self._progress = {}
        self._save()

    def completed_decks(self) -> List[str]:
        """Storage ids of completed decks."""
        return sorted(deck_id for deck_id, p in self._progress.items() if p.completed)

    def all_progress(self) -> Dict[str, DeckProgress]:
        return copy.deepcopy(self._progress)
