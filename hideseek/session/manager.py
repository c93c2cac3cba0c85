"""
Session Manager - Runs commands against stored games.

COMMAND CYCLE (every mutating command):
1. Re-read the latest committed Game from the store (never a cached copy)
2. Build the action against that snapshot
3. Run the reducer; a rejection is returned as-is
4. Hand the resulting patch to the store
5. On StoreConflictError, start again from 1, at most
   max_conflict_retries more times

CONCURRENCY RULES:
- No global lock; the store's version check is the race arbiter
- Answer submission (answer/expire) is additionally serialised per game,
  so a doubly-fired submission cannot award coins twice
- Location samples and card plays commit without a version check,
  but the store still refuses them once the game has ended

Commands return ActionResult and never raise for rule, store or
collaborator errors. Lookups (create_game, get_game, find_game_by_code,
draw_card) raise HideSeekError subclasses instead.
"""

from __future__ import annotations
import asyncio
import random
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from ..config import Settings, get_settings
from ..content.models import Card, Question
from ..content.seed import DEFAULT_DECK
from ..engine_core.action import Action, ActionResult
from ..engine_core.deck import draw_card
from ..engine_core.reducer import Reducer
from ..engine_core.state import Curse, Game, GameSize, LatLng, Role, unexpired_curses
from ..errors import (
    ErrorCode,
    GameEndedError,
    HideSeekError,
    InvalidRoleError,
    NoPendingQuestionError,
    NotFoundError,
    StoreConflictError,
)
from ..logging_config import get_logger, log_game_event
from .collaborators import InMemoryUploadSink, LocalUploadSink, UploadSink
from .file_store import FileSessionStore
from .store import InMemorySessionStore, SessionStore

logger = get_logger(__name__)

ActionBuilder = Callable[[Game], Action]


class SessionManager:
    """
    Authoritative command layer over a SessionStore.

    Responsibilities:
    - Create games with a join code
    - Apply player commands with fresh-read and conflict retry
    - Guard answer submission per game
    - Route photo uploads through the UploadSink
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        reducer: Reducer | None = None,
        upload_sink: UploadSink | None = None,
        deck: list[Card] | None = None,
        max_conflict_retries: int = 3,
        code_attempts: int = 20,
        clock: Callable[[], float] | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store or InMemorySessionStore()
        self.reducer = reducer or Reducer()
        self.upload_sink = upload_sink or InMemoryUploadSink()
        self.deck = list(deck) if deck is not None else list(DEFAULT_DECK)
        self.max_conflict_retries = max_conflict_retries
        self.code_attempts = code_attempts
        self.clock = clock or time.time
        self.rng = rng or random.Random()
        # game_id -> (lock, number of holders and waiters)
        self._answer_locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SessionManager:
        """Build a manager with the collaborators the environment asks for."""
        settings = settings or get_settings()
        store = FileSessionStore(settings.data_dir) if settings.data_dir else InMemorySessionStore()
        upload_sink = (
            LocalUploadSink(settings.upload_dir, settings.upload_base_url)
            if settings.upload_dir else InMemoryUploadSink()
        )
        reducer = Reducer(
            reveal_types=settings.reveal_types,
            reveal_seconds=settings.reveal_seconds,
        )
        return cls(
            store=store,
            reducer=reducer,
            upload_sink=upload_sink,
            max_conflict_retries=settings.max_conflict_retries,
            code_attempts=settings.code_attempts,
        )

    # =========================================================================
    # Games
    # =========================================================================

    async def create_game(self, game_size: GameSize = GameSize.MEDIUM) -> Game:
        """Create a waiting game with a fresh join code."""
        code = await self._new_code()
        game = Game.create(
            game_id=uuid.uuid4().hex,
            code=code,
            game_size=game_size,
            now=self.clock(),
        )
        await self.store.create(game)
        log_game_event(game.game_id, "created", code=code, size=game_size.value)
        return game

    async def get_game(self, game_id: str) -> Game:
        return await self.store.get(game_id)

    async def find_game_by_code(self, code: str) -> Game:
        """Resolve a join code. Ended games are not joinable."""
        game = await self.store.query_by_code(code)
        if not game.is_joinable:
            raise GameEndedError("Game is not available")
        return game

    def watch(self, game_id: str) -> AsyncIterator[Game]:
        return self.store.watch(game_id)

    async def _new_code(self) -> str:
        """
        Draw 4-digit codes until one is not used by a joinable game.

        Uniqueness is best-effort: after code_attempts draws the last code
        is used anyway.
        """
        code = ""
        for _ in range(max(1, self.code_attempts)):
            code = str(self.rng.randint(1000, 9999))
            try:
                existing = await self.store.query_by_code(code)
            except NotFoundError:
                return code
            if not existing.is_joinable:
                return code
        logger.warning("No free join code after %d attempts, reusing %s", self.code_attempts, code)
        return code

    # =========================================================================
    # Commands
    # =========================================================================

    async def assign_role(
        self,
        game_id: str,
        user_id: str,
        preferred_role: Role | None = None,
    ) -> ActionResult:
        """Join a game. Safe to call repeatedly with the same identity."""
        return await self._execute(
            game_id, lambda game: Action.assign_role(user_id, preferred_role),
        )

    async def update_location(self, game_id: str, user_id: str, position: LatLng) -> ActionResult:
        """Record a location sample under the identity's current role."""
        def build(game: Game) -> Action:
            role = game.role_of(user_id)
            if role is None:
                raise InvalidRoleError(f"{user_id} has not joined this game")
            return Action.update_location(user_id, role, position)

        return await self._execute(game_id, build)

    def draw_card(self, deck: list[Card] | None = None) -> Card:
        """Draw from the given deck or the manager's deck. Raises EmptyDeckError."""
        return draw_card(self.deck if deck is None else deck, self.rng)

    async def play_card(self, game_id: str, card: Card, user_id: str | None = None) -> ActionResult:
        return await self._execute(
            game_id, lambda game: Action.play_card(card, self.clock(), user_id=user_id),
        )

    async def request_question(
        self,
        game_id: str,
        category: str,
        user_id: str | None = None,
        question_bank: list[Question] | None = None,
    ) -> ActionResult:
        """Pose a question. Rejected while another question is pending."""
        return await self._execute(
            game_id,
            lambda game: Action.request_question(
                category, self.clock(), question_bank=question_bank, user_id=user_id,
            ),
        )

    async def answer_question(
        self,
        game_id: str,
        correct: bool,
        photo_url: str | None = None,
        user_id: str | None = None,
    ) -> ActionResult:
        """Resolve the pending question. Serialised per game."""
        async with self._answer_lock(game_id):
            return await self._execute(
                game_id,
                lambda game: Action.answer_question(
                    correct, self.clock(), photo_url=photo_url, user_id=user_id,
                ),
            )

    async def submit_photo_answer(
        self,
        game_id: str,
        data: bytes,
        filename: str = "photo.jpg",
        user_id: str | None = None,
    ) -> ActionResult:
        """Upload a photo, then answer the pending question as correct with it."""
        try:
            game = await self.store.get(game_id)
            if game.pending_question is None:
                raise NoPendingQuestionError("No question is waiting for an answer")
            suffix = filename.rsplit(".", 1)[-1].lower() if "." in filename else "jpg"
            path = f"games/{game_id}/photos/{uuid.uuid4().hex}.{suffix}"
            photo_url = await self.upload_sink.upload(data, path)
        except HideSeekError as e:
            logger.info("Photo answer for %s rejected: %s", game_id, e.message)
            return ActionResult.from_error(e)
        except OSError as e:
            logger.error("Photo upload for %s failed: %s", game_id, e)
            return ActionResult.failure("Photo storage is unavailable", ErrorCode.COLLABORATOR_UNAVAILABLE)

        return await self.answer_question(game_id, True, photo_url=photo_url, user_id=user_id)

    async def expire_question(self, game_id: str) -> ActionResult:
        """Time out the pending question. Shares the answer guard."""
        async with self._answer_lock(game_id):
            return await self._execute(
                game_id, lambda game: Action.expire_question(self.clock()),
            )

    async def end_game(self, game_id: str) -> ActionResult:
        return await self._execute(game_id, lambda game: Action.end_game(self.clock()))

    async def prune_curses(self, game_id: str) -> ActionResult:
        """Remove expired curses from the record."""
        return await self._execute(game_id, lambda game: Action.prune_curses(self.clock()))

    async def active_curses(self, game_id: str) -> list[Curse]:
        """Curses still in effect, without touching the record."""
        game = await self.store.get(game_id)
        return unexpired_curses(game.active_curses, self.clock())

    # =========================================================================
    # Internals
    # =========================================================================

    @asynccontextmanager
    async def _answer_lock(self, game_id: str):
        """Hold the game's answer lock. The entry is dropped once nobody uses it."""
        lock, users = self._answer_locks.get(game_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._answer_locks[game_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._answer_locks[game_id]
            if users <= 1:
                del self._answer_locks[game_id]
            else:
                self._answer_locks[game_id] = (lock, users - 1)

    def answer_lock_count(self) -> int:
        """Games that currently have an answer in flight."""
        return len(self._answer_locks)

    async def _execute(self, game_id: str, build_action: ActionBuilder) -> ActionResult:
        """Fresh read, reduce, commit; retry on conflict."""
        attempts = self.max_conflict_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                game = await self.store.get(game_id)
                action = build_action(game)
                result = self.reducer.apply(game, action)
                if not result.success:
                    logger.info(
                        "Rejected %s on %s: %s",
                        action.action_type.value, game_id, result.error,
                    )
                    return result
                if not result.mutated:
                    return result
                committed = await self.store.apply_patch(game_id, result.patch)
            except StoreConflictError as e:
                logger.info(
                    "Conflict on %s (attempt %d/%d): %s", game_id, attempt, attempts, e.message,
                )
                continue
            except HideSeekError as e:
                logger.info("Command on %s failed: %s", game_id, e.message)
                return ActionResult.from_error(e)
            except OSError as e:
                logger.error("Store unavailable for %s: %s", game_id, e)
                return ActionResult.failure(
                    "Session store is unavailable", ErrorCode.COLLABORATOR_UNAVAILABLE,
                )

            result.new_state = committed
            log_game_event(
                game_id,
                action.action_type.value,
                actor=action.payload.user_id,
                version=committed.version,
                paths=",".join(result.patch.paths()),
            )
            return result

        logger.warning("Giving up on %s after %d conflicting attempts", game_id, attempts)
        return ActionResult.failure(
            "The game changed too many times, please retry", ErrorCode.STORE_CONFLICT,
        )
