"""Per-deck learning progress."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from ..exceptions import DecodeError
from ..utils.helpers import utcnow
from ..utils.parsing import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class DeckProgress:
    """
    Learning state of one deck, keyed by the deck's storage id.

    Invariants:
        correct_total + incorrect_total == len(answers)
        completed_at is set once, when completed first becomes True
    """

    deck_id: str
    # card storage id -> answered correctly; presence means answered
    answers: Dict[str, bool] = field(default_factory=dict)
    correct_total: int = 0
    incorrect_total: int = 0
    completed: bool = False
    completed_at: Optional[datetime] = None
    last_interaction_at: datetime = field(default_factory=utcnow)
    last_card_index: int = 0

    @classmethod
    def empty(cls, deck_id: str, now: Optional[datetime] = None) -> "DeckProgress":
        return cls(deck_id=deck_id, last_interaction_at=now or utcnow())

    @property
    def total_answered(self) -> int:
        return len(self.answers)

    @property
    def accuracy(self) -> float:
        """Percentage of answered cards marked correct; 0 before any answer."""
        if self.total_answered == 0:
            return 0.0
        return self.correct_total / self.total_answered * 100.0

    def coverage(self, total_cards: int) -> float:
        """Percentage of the deck's cards answered at least once."""
        if total_cards <= 0:
            return 0.0
        return min(self.total_answered / total_cards * 100.0, 100.0)

    def time_since_completion(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        if self.completed_at is None:
            return None
        return (now or utcnow()) - self.completed_at

    def record_answer(self, card_id: str, correct: bool, now: Optional[datetime] = None) -> None:
        """
        Record the outcome for a card, replacing any earlier outcome.

        The tally of a replaced outcome is taken back first so the totals
        always match the answer mapping.
        """
        previous = self.answers.get(card_id)
        if previous is not None:
            if previous:
                self.correct_total -= 1
            else:
                self.incorrect_total -= 1

        self.answers[card_id] = bool(correct)
        if correct:
            self.correct_total += 1
        else:
            self.incorrect_total += 1
        self.last_interaction_at = now or utcnow()

    def set_resume_position(self, index: int, now: Optional[datetime] = None) -> None:
        if index < 0:
            raise ValueError("card index cannot be negative")
        self.last_card_index = index
        self.last_interaction_at = now or utcnow()

    def mark_completed(self, now: Optional[datetime] = None) -> bool:
        """Flip to completed. Returns True only on the transition."""
        if self.completed:
            return False
        self.completed = True
        if self.completed_at is None:
            self.completed_at = now or utcnow()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deckId": self.deck_id,
            "answers": dict(self.answers),
            "correctTotal": self.correct_total,
            "incorrectTotal": self.incorrect_total,
            "completed": self.completed,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "lastInteractionAt": self.last_interaction_at.isoformat(),
            "lastCardIndex": self.last_card_index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeckProgress":
        """
        Rebuild a record from to_dict() output.

        Tallies are always recomputed from the answer mapping; records
        written by older builds that double-counted changed answers are
        repaired this way.

        Raises:
            DecodeError: If the record is malformed
        """
        try:
            return cls._from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"Malformed progress record: {e!r}") from e

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "DeckProgress":
        answers = {str(k): bool(v) for k, v in dict(data.get("answers") or {}).items()}
        correct = sum(1 for v in answers.values() if v)
        incorrect = len(answers) - correct
        stored = (data.get("correctTotal"), data.get("incorrectTotal"))
        if stored != (correct, incorrect):
            logger.warning("Repairing tallies of deck progress %s", data["deckId"])

        completed_at = data.get("completedAt")
        return cls(
            deck_id=str(data["deckId"]),
            answers=answers,
            correct_total=correct,
            incorrect_total=incorrect,
            completed=bool(data.get("completed", False)),
            completed_at=parse_timestamp(completed_at) if completed_at else None,
            last_interaction_at=parse_timestamp(data.get("lastInteractionAt")),
            last_card_index=max(int(data.get("lastCardIndex", 0)), 0),
        )
