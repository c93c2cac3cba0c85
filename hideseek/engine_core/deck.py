"""
Deck - Drawing cards.

Drawing never touches the Game: the drawn card is held by the hider's
client until it is played through the reducer.
"""

from __future__ import annotations
import random

from ..content.models import Card
from ..errors import EmptyDeckError


def draw_card(deck: list[Card], rng: random.Random | None = None) -> Card:
    """Pick one card uniformly at random. The deck is not modified."""
    if not deck:
        raise EmptyDeckError("No cards in deck")
    return (rng or random).choice(deck)
