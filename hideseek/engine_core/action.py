"""
Action System - Commands, payloads, events and results.

Actions represent every command a participant can issue against a game:
1. Joining (role assignment)
2. Location samples
3. Card plays
4. Question lifecycle (request, answer, expire)
5. Game administration (end, prune curses)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..content.models import Card, Question
from ..errors import ErrorCode, HideSeekError
from .patch import Patch
from .state import LatLng, Role


class ActionType(Enum):
    """Types of commands in the system."""
    ASSIGN_ROLE = "assign_role"
    UPDATE_LOCATION = "update_location"
    PLAY_CARD = "play_card"
    REQUEST_QUESTION = "request_question"
    ANSWER_QUESTION = "answer_question"
    EXPIRE_QUESTION = "expire_question"
    END_GAME = "end_game"
    PRUNE_CURSES = "prune_curses"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the command parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    user_id: str | None = None

    # Role assignment / location
    role: Role | str | None = None
    preferred_role: Role | None = None
    position: LatLng | None = None

    # Cards
    card: Card | None = None

    # Questions
    category: str | None = None
    question_bank: list[Question] | None = None
    correct: bool | None = None
    photo_url: str | None = None


@dataclass
class Action:
    """
    A complete command to be applied to a game.

    timestamp is the command's notion of "now"; the reducer never reads
    the clock itself.
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float | None = None

    @classmethod
    def assign_role(cls, user_id: str, preferred_role: Role | None = None) -> Action:
        """Factory for joining a game."""
        return cls(
            action_type=ActionType.ASSIGN_ROLE,
            payload=ActionPayload(user_id=user_id, preferred_role=preferred_role),
        )

    @classmethod
    def update_location(cls, user_id: str, role: Role | str, position: LatLng) -> Action:
        """Factory for a location sample."""
        return cls(
            action_type=ActionType.UPDATE_LOCATION,
            payload=ActionPayload(user_id=user_id, role=role, position=position),
        )

    @classmethod
    def play_card(cls, card: Card, now: float, user_id: str | None = None) -> Action:
        """Factory for playing a drawn card."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(user_id=user_id, card=card),
            timestamp=now,
        )

    @classmethod
    def request_question(
        cls,
        category: str,
        now: float,
        question_bank: list[Question] | None = None,
        user_id: str | None = None,
    ) -> Action:
        """Factory for a seeker's question request."""
        return cls(
            action_type=ActionType.REQUEST_QUESTION,
            payload=ActionPayload(
                user_id=user_id, category=category, question_bank=question_bank,
            ),
            timestamp=now,
        )

    @classmethod
    def answer_question(
        cls,
        correct: bool,
        now: float,
        photo_url: str | None = None,
        user_id: str | None = None,
    ) -> Action:
        """Factory for the hider's answer."""
        return cls(
            action_type=ActionType.ANSWER_QUESTION,
            payload=ActionPayload(user_id=user_id, correct=correct, photo_url=photo_url),
            timestamp=now,
        )

    @classmethod
    def expire_question(cls, now: float) -> Action:
        """Factory for timing out the pending question."""
        return cls(
            action_type=ActionType.EXPIRE_QUESTION,
            payload=ActionPayload(),
            timestamp=now,
        )

    @classmethod
    def end_game(cls, now: float) -> Action:
        return cls(action_type=ActionType.END_GAME, payload=ActionPayload(), timestamp=now)

    @classmethod
    def prune_curses(cls, now: float) -> Action:
        return cls(action_type=ActionType.PRUNE_CURSES, payload=ActionPayload(), timestamp=now)


@dataclass
class GameEvent:
    """What an accepted command did, for watchers and the audit log."""
    event_type: ActionType
    game_id: str
    actor: str | None = None
    timestamp: float | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - New state and the patch that produces it (if succeeded)
    - Error and error code (if failed)
    - Command-specific outputs (assigned role, location reveal)
    """
    success: bool
    new_state: Any | None = None  # Game
    patch: Patch | None = None
    event: GameEvent | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    # Command outputs
    role: Role | None = None
    reveals_location: bool = False
    reveal_seconds: int = 0

    @property
    def mutated(self) -> bool:
        return self.patch is not None and not self.patch.is_empty

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_error(cls, error: HideSeekError) -> ActionResult:
        return cls.failure(error.message, error.code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        patch: Patch,
        event: GameEvent | None = None,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            patch=patch,
            event=event,
            state_changes=changes or [],
        )
