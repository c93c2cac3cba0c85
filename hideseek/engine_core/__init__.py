"""
Engine Core - Game state and transition rules.

The engine is the runtime that:
1. Holds the Game record model
2. Builds patches for the store
3. Applies actions via the reducer
4. Draws cards from a deck
"""

from .state import (
    Game,
    GameStatus,
    GameSize,
    Role,
    LatLng,
    Curse,
    ChatMessage,
    MessageType,
    PendingQuestion,
    is_expired,
    unexpired_curses,
)
from .patch import Patch, PatchOp, PatchOpType
from .action import Action, ActionType, ActionPayload, ActionResult, GameEvent
from .reducer import Reducer, apply_action
from .deck import draw_card

__all__ = [
    "Game",
    "GameStatus",
    "GameSize",
    "Role",
    "LatLng",
    "Curse",
    "ChatMessage",
    "MessageType",
    "PendingQuestion",
    "is_expired",
    "unexpired_curses",
    "Patch",
    "PatchOp",
    "PatchOpType",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "GameEvent",
    "Reducer",
    "apply_action",
    "draw_card",
]
