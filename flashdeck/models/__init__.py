"""Data models for flashdeck."""

from .card import Card, Language
from .deck import ALL_TOPIC, Deck
from .decoding import DecodeResult, decode_card, decode_documents, decode_language
from .progress import DeckProgress

__all__ = [
    'Card',
    'Language',
    'ALL_TOPIC',
    'Deck',
    'DecodeResult',
    'decode_card',
    'decode_documents',
    'decode_language',
    'DeckProgress',
]
