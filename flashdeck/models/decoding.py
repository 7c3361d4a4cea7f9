"""
Typed decoding of raw remote documents.

Each document yields a DecodeResult holding either the record or the
reason it was rejected, so a batch can skip bad documents and keep the rest.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar

from ..utils.parsing import TextParser, parse_timestamp
from .card import Card, Language

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Canonical field name first, then legacy aliases
CARD_FIELDS = {
    "term": ("term", "palavra"),
    "answer": ("answer", "resposta"),
    "language": ("language", "idioma"),
    "topic": ("topic", "tema"),
}
LANGUAGE_NAME_FIELDS = ("name", "nome")
LANGUAGE_ACTIVE_FIELDS = ("active", "ativo")
CREATED_AT_FIELDS = ("createdAt", "dataCriacao")


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding one document."""

    value: Optional[T] = None
    error: Optional[str] = None
    document_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


def _first(document: Mapping[str, Any], names: Tuple[str, ...]) -> Any:
    for name in names:
        if name in document:
            return document[name]
    return None


def _document_id(document: Mapping[str, Any]) -> Optional[str]:
    doc_id = document.get("id")
    return str(doc_id) if doc_id is not None else None


def decode_card(document: Mapping[str, Any]) -> DecodeResult[Card]:
    """Decode a card document; term, answer, language and topic are required strings."""
    doc_id = _document_id(document)
    values = {}
    for field_name, names in CARD_FIELDS.items():
        value = TextParser.clean_field(_first(document, names))
        if value is None:
            return DecodeResult(error=f"missing or invalid field '{field_name}'", document_id=doc_id)
        values[field_name] = value

    card = Card(
        id=doc_id,
        created_at=parse_timestamp(_first(document, CREATED_AT_FIELDS)),
        **values,
    )
    return DecodeResult(value=card, document_id=doc_id)


def decode_language(document: Mapping[str, Any]) -> DecodeResult[Language]:
    """Decode a language document; name (string) and active (bool) are required."""
    doc_id = _document_id(document)
    name = TextParser.clean_field(_first(document, LANGUAGE_NAME_FIELDS))
    if name is None:
        return DecodeResult(error="missing or invalid field 'name'", document_id=doc_id)

    active = _first(document, LANGUAGE_ACTIVE_FIELDS)
    if not isinstance(active, bool):
        return DecodeResult(error="missing or invalid field 'active'", document_id=doc_id)

    language = Language(
        id=doc_id,
        name=name,
        active=active,
        created_at=parse_timestamp(_first(document, CREATED_AT_FIELDS)),
    )
    return DecodeResult(value=language, document_id=doc_id)


def decode_documents(
    documents: Iterable[Any],
    decoder: Callable[[Mapping[str, Any]], DecodeResult[T]],
) -> Tuple[List[T], List[DecodeResult[T]]]:
    """
    Decode a batch, skipping documents that fail.

    Args:
        documents: Raw documents from the remote store
        decoder: decode_card or decode_language

    Returns:
        (decoded values in input order, failed results)
    """
    values: List[T] = []
    failures: List[DecodeResult[T]] = []
    for document in documents:
        if not isinstance(document, Mapping):
            result: DecodeResult[T] = DecodeResult(error="document is not a mapping")
        else:
            result = decoder(document)
        if result.ok:
            values.append(result.value)
        else:
            failures.append(result)
            logger.warning("Skipping document %s: %s", result.document_id or "<unknown>", result.error)
    return values, failures
