"""
Content Models - Static question and card definitions.

Content is read-only at runtime:
- Questions are drawn by seekers and answered by the hider
- Cards are drawn and played by the hider

Records use plain dicts so a deployment can load its own content
from JSON without touching the engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import InvalidCardTypeError


class QuestionCategory(str, Enum):
    """Fixed set of question categories."""
    MATCHING = "Matching"
    MEASURING = "Measuring"
    RADAR = "Radar"
    THERMOMETER = "Thermometer"
    PHOTO = "Photo"
    TENTACLE = "Tentacle"

    @property
    def question_type(self) -> str:
        """Lower-case type tag mirrored on every question of this category."""
        return self.value.lower()


class CardType(str, Enum):
    """Card types understood by the reducer."""
    TIME_BONUS = "timeBonus"
    CURSE = "curse"
    POWERUP = "powerup"


@dataclass(frozen=True)
class Question:
    """
    A question a seeker can pose to the hider.

    draw_cards/keep_cards tell the hider how many cards answering earns;
    time_limit only drives the UI countdown and the advisory expires_at.
    """
    question_id: str
    category: QuestionCategory
    question: str
    answer: str
    question_type: str = ""
    draw_cards: int = 1
    keep_cards: int = 1
    time_limit: int | None = None

    def __post_init__(self):
        if not self.question_type:
            object.__setattr__(self, "question_type", self.category.question_type)

    @property
    def is_photo(self) -> bool:
        return self.question_type == "photo"

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "category": self.category.value,
            "question": self.question,
            "answer": self.answer,
            "question_type": self.question_type,
            "draw_cards": self.draw_cards,
            "keep_cards": self.keep_cards,
            "time_limit": self.time_limit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        return cls(
            question_id=str(data["question_id"]),
            category=QuestionCategory(data["category"]),
            question=data["question"],
            answer=data.get("answer", ""),
            question_type=data.get("question_type", ""),
            draw_cards=int(data.get("draw_cards", 1)),
            keep_cards=int(data.get("keep_cards", 1)),
            time_limit=data.get("time_limit"),
        )


@dataclass(frozen=True)
class Card:
    """
    A deck card.

    value is seconds for time bonuses and minutes for curses.
    effect is an opaque tag for powerups.
    """
    card_id: str
    card_type: CardType
    name: str
    description: str = ""
    value: int | None = None
    effect: str | None = None

    def to_dict(self) -> dict[str, Any]:
        card_type = self.card_type.value if isinstance(self.card_type, CardType) else self.card_type
        return {
            "card_id": self.card_id,
            "card_type": card_type,
            "name": self.name,
            "description": self.description,
            "value": self.value,
            "effect": self.effect,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        raw_type = data.get("card_type")
        try:
            card_type = CardType(raw_type)
        except ValueError:
            raise InvalidCardTypeError(f"Unknown card type: {raw_type!r}") from None
        return cls(
            card_id=str(data["card_id"]),
            card_type=card_type,
            name=data["name"],
            description=data.get("description", ""),
            value=data.get("value"),
            effect=data.get("effect"),
        )


def categories(question_bank: list[Question]) -> list[QuestionCategory]:
    """Categories present in a bank, in first-seen order."""
    seen: list[QuestionCategory] = []
    for question in question_bank:
        if question.category not in seen:
            seen.append(question.category)
    return seen
