"""Card and Language records."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from ..exceptions import DecodeError
from ..utils.helpers import utcnow
from ..utils.parsing import parse_timestamp


@dataclass(frozen=True)
class Card:
    """A single flashcard as served by the remote store."""

    term: str
    answer: str
    language: str
    topic: str

    # Remote document id; may change or be absent across re-fetches
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def storage_id(self) -> str:
        """Key used for progress tracking, stable across re-fetches."""
        return f"{self.language}_{self.topic}_{self.term}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "term": self.term,
            "answer": self.answer,
            "language": self.language,
            "topic": self.topic,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Card":
        """Rebuild a card from to_dict() output. Raises DecodeError on malformed records."""
        try:
            return cls(
                id=data.get("id"),
                term=data["term"],
                answer=data["answer"],
                language=data["language"],
                topic=data["topic"],
                created_at=parse_timestamp(data.get("createdAt")),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Malformed card record: {e!r}") from e


@dataclass(frozen=True)
class Language:
    """A language offered by the catalog; only active ones reach the UI."""

    name: str
    active: bool = True
    id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "active": self.active,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Language":
        try:
            return cls(
                id=data.get("id"),
                name=data["name"],
                active=bool(data.get("active", True)),
                created_at=parse_timestamp(data.get("createdAt")),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Malformed language record: {e!r}") from e
