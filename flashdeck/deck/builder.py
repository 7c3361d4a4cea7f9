"""Deck construction from flat card lists."""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from ..models.card import Card
from ..models.deck import ALL_TOPIC, Deck

logger = logging.getLogger(__name__)


def group_cards(cards: Iterable[Card]) -> "OrderedDict[str, OrderedDict[str, List[Card]]]":
    """Group cards by language, then topic, keeping first-seen order at both levels."""
    groups: "OrderedDict[str, OrderedDict[str, List[Card]]]" = OrderedDict()
    for card in cards:
        topics = groups.setdefault(card.language, OrderedDict())
        topics.setdefault(card.topic, []).append(card)
    return groups


def build_decks(cards: Iterable[Card]) -> List[Deck]:
    """
    Build the deck list for a card list.

    One deck per (language, topic) pair holding exactly that pair's cards,
    named "{topic} ({language})", followed for each language by a synthetic
    "Todos ({language})" deck holding every card of the language in input
    order. Deck order follows the first appearance of each language and
    topic, so the same input always produces the same decks.

    Args:
        cards: Cards in remote order

    Returns:
        Decks, topic decks of a language before its "Todos" deck
    """
    cards = list(cards)
    decks: List[Deck] = []
    for language, topics in group_cards(cards).items():
        for topic, topic_cards in topics.items():
            if topic == ALL_TOPIC:
                logger.warning("Topic '%s' of %s shares its storage id with the all-cards deck", topic, language)
            decks.append(Deck(
                name=f"{topic} ({language})",
                language=language,
                topic=topic,
                cards=tuple(topic_cards),
            ))

        decks.append(Deck(
            name=f"{ALL_TOPIC} ({language})",
            language=language,
            topic=ALL_TOPIC,
            cards=tuple(card for card in cards if card.language == language),
        ))
    return decks


def filter_decks(
    decks: Iterable[Deck],
    language: Optional[str] = None,
    topic: Optional[str] = None,
) -> List[Deck]:
    """Filter decks by language and/or topic; None means no constraint."""
    return [
        deck for deck in decks
        if (language is None or deck.language == language)
        and (topic is None or deck.topic == topic)
    ]


def topics_for_decks(decks: Iterable[Deck]) -> List[str]:
    """Sorted distinct topics, with the all-cards topic once at the end."""
    topics = sorted({deck.topic for deck in decks if deck.topic != ALL_TOPIC})
    topics.append(ALL_TOPIC)
    return topics


def index_by_storage_id(decks: Iterable[Deck]) -> Dict[str, Deck]:
    return {deck.storage_id: deck for deck in decks}
