"""Deck record: a materialized grouping of cards."""

import uuid
from dataclasses import dataclass, field
from typing import Tuple

from .card import Card

# Topic label of the synthetic per-language deck holding every card
ALL_TOPIC = "Todos"


@dataclass(frozen=True)
class Deck:
    """Cards sharing a (language, topic) pair, or all cards of a language."""

    name: str
    language: str
    topic: str
    cards: Tuple[Card, ...] = ()

    # Generated once per in-memory deck; not used for persistence
    local_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def storage_id(self) -> str:
        """Key joining a deck to its progress record."""
        return f"{self.language}_{self.topic}"

    @property
    def is_all_deck(self) -> bool:
        return self.topic == ALL_TOPIC

    @property
    def card_count(self) -> int:
        return len(self.cards)
