"""Deck building and caching module."""

from .builder import build_decks, filter_decks, topics_for_decks
from .cache import DeckCacheManager, RefreshOutcome
from .policy import RefreshPolicy, ResourceKind

__all__ = [
    'build_decks',
    'filter_decks',
    'topics_for_decks',
    'DeckCacheManager',
    'RefreshOutcome',
    'RefreshPolicy',
    'ResourceKind',
]
