"""flashdeck - deck catalog cache and learning progress for flashcard apps"""

__version__ = "1.0.0"
__author__ = "flashdeck Team"

from .config import Config, UserPreferences
from .deck import DeckCacheManager, RefreshOutcome, RefreshPolicy, build_decks
from .models import Card, Deck, DeckProgress, Language
from .services import AppServices, ProgressLedger, create_services

__all__ = [
    'Config',
    'UserPreferences',
    'DeckCacheManager',
    'RefreshOutcome',
    'RefreshPolicy',
    'build_decks',
    'Card',
    'Deck',
    'DeckProgress',
    'Language',
    'AppServices',
    'ProgressLedger',
    'create_services',
]
