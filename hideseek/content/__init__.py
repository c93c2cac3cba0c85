"""
Content - Static cards and questions.

This module contains:
- Question and Card definitions
- The default deck and question bank
"""

from .models import Card, CardType, Question, QuestionCategory, categories
from .seed import DEFAULT_DECK, DEFAULT_QUESTIONS, get_card_by_id

__all__ = [
    "Card",
    "CardType",
    "Question",
    "QuestionCategory",
    "categories",
    "DEFAULT_DECK",
    "DEFAULT_QUESTIONS",
    "get_card_by_id",
]
