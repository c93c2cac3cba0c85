"""
Reducer - Applies actions to a game.

The reducer is the single point of state transition.
All state changes must go through apply_action().

Design principles:
- Pure function: (game, action) -> ActionResult(new game, patch, event)
- Validates before applying; rejections never touch the input game
- The new game is always the old record with the returned patch applied,
  so the store and the caller agree on the result
- Guarded commands pin the patch to the version they read; the rest
  ask the store to refuse them once the game has ended
"""

from __future__ import annotations
import random
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable

from ..content.models import Card, CardType, Question
from ..content.seed import DEFAULT_QUESTIONS
from ..errors import (
    GameEndedError,
    HideSeekError,
    InvalidCardTypeError,
    InvalidRoleError,
    NoPendingQuestionError,
    NoQuestionsInCategoryError,
    PhotoRequiredError,
    QuestionAlreadyPendingError,
    RoleConflictError,
)
from .action import Action, ActionResult, ActionType, GameEvent
from .patch import Patch
from .state import (
    ChatMessage,
    Curse,
    Game,
    GameStatus,
    MessageType,
    PendingQuestion,
    Role,
    unexpired_curses,
)

# Receives the game and the played card, returns the patch for its effect.
PowerupEffect = Callable[[Game, Card], Patch]

DEFAULT_REVEAL_TYPES = frozenset({"radar"})
DEFAULT_REVEAL_SECONDS = 10


@dataclass
class Reducer:
    """
    Reducer applies actions to games.

    Stateless apart from configuration - all game state is in Game.
    rng drives question picks and generated ids, so a seeded Random
    makes the reducer fully deterministic.
    """
    question_bank: list[Question] = field(default_factory=lambda: list(DEFAULT_QUESTIONS))
    reveal_types: frozenset[str] = DEFAULT_REVEAL_TYPES
    reveal_seconds: int = DEFAULT_REVEAL_SECONDS
    rng: random.Random = field(default_factory=random.Random)

    # Extension point: powerup effect tag -> patch builder
    powerup_effects: dict[str, PowerupEffect] = field(default_factory=dict)

    def apply(self, state: Game, action: Action) -> ActionResult:
        """
        Apply an action to the game.

        Returns ActionResult with new state or error.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(f"No handler for action type: {action.action_type}")

        try:
            self._validate_action(state, action)
            return handler(state, action)
        except HideSeekError as e:
            return ActionResult.from_error(e)

    def _validate_action(self, state: Game, action: Action):
        """Raise if the action is not allowed in the game's current status."""
        # Joining and ending handle the terminal status themselves
        if action.action_type in {ActionType.ASSIGN_ROLE, ActionType.END_GAME}:
            return
        if state.status == GameStatus.ENDED:
            raise GameEndedError("Game is over - no actions allowed")

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.ASSIGN_ROLE: self._handle_assign_role,
            ActionType.UPDATE_LOCATION: self._handle_update_location,
            ActionType.PLAY_CARD: self._handle_play_card,
            ActionType.REQUEST_QUESTION: self._handle_request_question,
            ActionType.ANSWER_QUESTION: self._handle_answer_question,
            ActionType.EXPIRE_QUESTION: self._handle_expire_question,
            ActionType.END_GAME: self._handle_end_game,
            ActionType.PRUNE_CURSES: self._handle_prune_curses,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_assign_role(self, state: Game, action: Action) -> ActionResult:
        """Handle a join. Identities that already hold a role are a no-op."""
        user_id = action.payload.user_id
        if not user_id:
            raise InvalidRoleError("A user id is required to join")

        existing = state.role_of(user_id)
        if existing is not None:
            result = ActionResult.success_with_state(state, Patch())
            result.role = existing
            return result

        if state.status == GameStatus.ENDED:
            raise GameEndedError("Game has ended")

        preferred = action.payload.preferred_role
        if preferred == Role.HIDER and state.hider is not None:
            raise RoleConflictError("The hider slot is already taken")

        patch = Patch(expected_version=state.version)
        if state.hider is None and preferred != Role.SEEKER:
            role = Role.HIDER
            patch.set("hider", value=user_id)
        else:
            role = Role.SEEKER
            patch.set("seekers", value=[*state.seekers, user_id])
        if state.status == GameStatus.WAITING:
            patch.set("status", value=GameStatus.ACTIVE.value)

        result = self._success(
            state, action, patch,
            details={"role": role.value},
            changes=[f"{user_id} joined as {role.value}"],
        )
        result.role = role
        return result

    def _handle_update_location(self, state: Game, action: Action) -> ActionResult:
        """Record a position sample. Last write wins."""
        payload = action.payload
        try:
            role = Role(payload.role)
        except ValueError:
            raise InvalidRoleError(f"Unknown role: {payload.role!r}") from None
        if payload.position is None:
            raise InvalidRoleError("A position is required")

        patch = Patch(reject_if_ended=True)
        if role == Role.HIDER:
            patch.set("hider_location", value=payload.position.to_dict())
        else:
            if not payload.user_id:
                raise InvalidRoleError("A seeker location needs a user id")
            patch.set("seeker_locations", payload.user_id, value=payload.position.to_dict())

        return self._success(state, action, patch, details={"role": role.value})

    def _handle_play_card(self, state: Game, action: Action) -> ActionResult:
        """Apply a drawn card's effect."""
        card = action.payload.card
        if card is None:
            raise InvalidCardTypeError("No card to play")
        try:
            card_type = CardType(card.card_type)
        except ValueError:
            raise InvalidCardTypeError(f"Unknown card type: {card.card_type!r}") from None

        now = self._now(action)
        patch = Patch(reject_if_ended=True)
        changes: list[str] = []

        if card_type == CardType.TIME_BONUS:
            bonus = card.value or 0
            patch.increment("total_hiding_time", amount=bonus)
            changes.append(f"Hiding time +{bonus}s ({card.name})")
        elif card_type == CardType.CURSE:
            curse = Curse(
                curse_id=self._new_id(),
                name=card.name,
                description=card.description,
                duration=card.value or 0,
                timestamp=now,
            )
            patch.append("active_curses", value=curse.to_dict())
            changes.append(f"Curse {curse.name} for {curse.duration} min")
        else:
            effect = self.powerup_effects.get(card.effect or "")
            if effect is not None:
                patch.ops.extend(effect(state, card).ops)
                changes.append(f"Powerup {card.name} applied")
            else:
                changes.append(f"Powerup {card.name} has no state effect")

        return self._success(
            state, action, patch,
            details={"card_id": card.card_id, "card_type": card_type.value},
            changes=changes,
        )

    def _handle_request_question(self, state: Game, action: Action) -> ActionResult:
        """Pose a random question from a category. Only one may be pending."""
        if state.pending_question is not None:
            raise QuestionAlreadyPendingError(
                "Please wait for the current question to be answered"
            )

        category = str(action.payload.category or "")
        bank = action.payload.question_bank
        if bank is None:
            bank = self.question_bank
        candidates = [q for q in bank if q.category.value.lower() == category.lower()]
        if not candidates:
            raise NoQuestionsInCategoryError(f"No questions in category {category!r}")

        now = self._now(action)
        question = self.rng.choice(candidates)
        reveals = question.question_type in self.reveal_types
        pending = PendingQuestion(
            category=question.category.value,
            question=question,
            timestamp=now,
            expires_at=now + question.time_limit if question.time_limit else None,
            reveals_location=reveals,
        )
        message = ChatMessage(
            message_id=self._new_id(),
            message_type=MessageType.QUESTION,
            content=question.question,
            timestamp=now,
            sender=Role.SEEKER,
            question=question.question,
            category=pending.category,
        )

        patch = (
            Patch(expected_version=state.version)
            .set("pending_question", value=pending.to_dict())
            .append("chat_messages", value=message.to_dict())
        )
        result = self._success(
            state, action, patch,
            details={"category": pending.category, "question_id": question.question_id},
            changes=[f"Question asked: {question.question}"],
        )
        result.reveals_location = reveals
        result.reveal_seconds = self.reveal_seconds if reveals else 0
        return result

    def _handle_answer_question(self, state: Game, action: Action) -> ActionResult:
        """Resolve the pending question. A correct answer earns one coin."""
        pending = state.pending_question
        if pending is None:
            raise NoPendingQuestionError("No question is waiting for an answer")

        correct = bool(action.payload.correct)
        photo_url = action.payload.photo_url
        if pending.question.is_photo and correct and not photo_url:
            raise PhotoRequiredError("A photo is required to answer this question")

        now = self._now(action)
        message = ChatMessage(
            message_id=self._new_id(),
            message_type=MessageType.PHOTO if photo_url else MessageType.ANSWER,
            content="Correct" if correct else "Incorrect",
            timestamp=now,
            sender=Role.HIDER,
            question=pending.question.question,
            category=pending.category,
            photo_url=photo_url,
        )

        patch = Patch(expected_version=state.version).delete("pending_question")
        if correct:
            patch.increment("coins", amount=1)
        patch.append("chat_messages", value=message.to_dict())

        return self._success(
            state, action, patch,
            details={"correct": correct, "photo_url": photo_url},
            changes=["Answered correctly (+1 coin)" if correct else "Answered incorrectly"],
        )

    def _handle_expire_question(self, state: Game, action: Action) -> ActionResult:
        """Time out the pending question. Same preconditions as a wrong answer."""
        pending = state.pending_question
        if pending is None:
            raise NoPendingQuestionError("No question is waiting for an answer")

        now = self._now(action)
        message = ChatMessage(
            message_id=self._new_id(),
            message_type=MessageType.SYSTEM,
            content="Question expired without an answer",
            timestamp=now,
            sender=Role.HIDER,
            question=pending.question.question,
            category=pending.category,
        )
        patch = (
            Patch(expected_version=state.version)
            .delete("pending_question")
            .append("chat_messages", value=message.to_dict())
        )
        return self._success(
            state, action, patch,
            details={"category": pending.category},
            changes=["Question expired"],
        )

    def _handle_end_game(self, state: Game, action: Action) -> ActionResult:
        """Move the game to its terminal status."""
        if state.status == GameStatus.ENDED:
            return ActionResult.success_with_state(state, Patch())
        patch = Patch(expected_version=state.version).set("status", value=GameStatus.ENDED.value)
        return self._success(state, action, patch, changes=["Game ended"])

    def _handle_prune_curses(self, state: Game, action: Action) -> ActionResult:
        """Drop expired curses. Only happens when explicitly requested."""
        now = self._now(action)
        remaining = unexpired_curses(state.active_curses, now)
        pruned = len(state.active_curses) - len(remaining)
        if pruned == 0:
            return ActionResult.success_with_state(state, Patch())
        patch = Patch(expected_version=state.version).set(
            "active_curses", value=[c.to_dict() for c in remaining],
        )
        return self._success(
            state, action, patch,
            details={"pruned": pruned},
            changes=[f"Removed {pruned} expired curse(s)"],
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _success(
        self,
        state: Game,
        action: Action,
        patch: Patch,
        details: dict | None = None,
        changes: list[str] | None = None,
    ) -> ActionResult:
        event = GameEvent(
            event_type=action.action_type,
            game_id=state.game_id,
            actor=action.payload.user_id,
            timestamp=self._now(action),
            details=details or {},
        )
        new_state = state.apply_patch(patch) if not patch.is_empty else state
        return ActionResult.success_with_state(new_state, patch, event=event, changes=changes)

    def _now(self, action: Action) -> float:
        return action.timestamp if action.timestamp is not None else time.time()

    def _new_id(self) -> str:
        return uuid.UUID(int=self.rng.getrandbits(128), version=4).hex


def apply_action(
    state: Game,
    action: Action,
    question_bank: list[Question] | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer() if question_bank is None else Reducer(question_bank=question_bank)
    return reducer.apply(state, action)
