"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to SessionManager calls
2. Converts committed games into response schemas
3. Turns rejections into ErrorResponse values
4. Streams snapshots for the WebSocket endpoint

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable

from ..content.models import Question, categories
from ..content.seed import get_card_by_id
from ..engine_core.action import ActionResult
from ..engine_core.state import Game
from ..errors import ErrorCode, HideSeekError
from ..logging_config import get_logger
from ..session import SessionManager
from .schemas import (
    CardInfo,
    CategoriesResponse,
    CommandResponse,
    CreateGameRequest,
    CurseInfo,
    CursesResponse,
    DeckResponse,
    DrawCardResponse,
    ErrorResponse,
    GameResponse,
    JoinGameRequest,
    LocationRequest,
    PlayCardRequest,
    QuestionInfo,
    QuestionRequest,
)

logger = get_logger(__name__)


@dataclass
class APIService:
    """
    Main API service for the player app.

    Usage:
        service = APIService()

        game = await service.create_game(CreateGameRequest())
        joined = await service.join_game(game.game_id, "player-1", JoinGameRequest())
    """
    manager: SessionManager = field(default_factory=SessionManager.from_settings)

    # =========================================================================
    # Games
    # =========================================================================

    async def create_game(self, request: CreateGameRequest) -> GameResponse | ErrorResponse:
        return await self._lookup(self.manager.create_game(request.game_size))

    async def get_game(self, game_id: str) -> GameResponse | ErrorResponse:
        return await self._lookup(self.manager.get_game(game_id))

    async def find_game(self, code: str) -> GameResponse | ErrorResponse:
        return await self._lookup(self.manager.find_game_by_code(code))

    async def watch(self, game_id: str) -> AsyncIterator[GameResponse]:
        """Snapshots of a game as response models. Raises NotFoundError."""
        async for game in self.manager.watch(game_id):
            yield GameResponse.from_game(game)

    # =========================================================================
    # Commands
    # =========================================================================

    async def join_game(
        self, game_id: str, user_id: str, request: JoinGameRequest
    ) -> CommandResponse | ErrorResponse:
        result = await self.manager.assign_role(game_id, user_id, request.preferred_role)
        return self._command(result)

    async def update_location(
        self, game_id: str, user_id: str, request: LocationRequest
    ) -> CommandResponse | ErrorResponse:
        result = await self.manager.update_location(
            game_id, user_id, request.position.to_latlng(),
        )
        return self._command(result)

    def draw_card(self) -> DrawCardResponse | ErrorResponse:
        try:
            card = self.manager.draw_card()
        except HideSeekError as e:
            return self._error(e.code, e.message)
        return DrawCardResponse(card=CardInfo.from_card(card))

    async def play_card(
        self, game_id: str, user_id: str, request: PlayCardRequest
    ) -> CommandResponse | ErrorResponse:
        card = get_card_by_id(request.card_id, self.manager.deck)
        if card is None:
            return self._error(ErrorCode.NOT_FOUND, f"Card {request.card_id} not found")
        result = await self.manager.play_card(game_id, card, user_id=user_id)
        return self._command(result)

    async def request_question(
        self, game_id: str, user_id: str, request: QuestionRequest
    ) -> CommandResponse | ErrorResponse:
        result = await self.manager.request_question(game_id, request.category, user_id=user_id)
        return self._command(result)

    async def answer_question(
        self,
        game_id: str,
        user_id: str,
        correct: bool | None,
        photo: bytes | None = None,
        filename: str | None = None,
    ) -> CommandResponse | ErrorResponse:
        """
        Answer the pending question.

        A non-empty photo is uploaded first and counts as a correct answer,
        so a photo explicitly marked incorrect is rejected without uploading.
        """
        if photo:
            if correct is False:
                return self._error(
                    ErrorCode.VALIDATION_ERROR,
                    "A photo answer is always correct; omit correct or set it to true",
                )
            result = await self.manager.submit_photo_answer(
                game_id, photo, filename or "photo.jpg", user_id=user_id,
            )
        else:
            result = await self.manager.answer_question(game_id, bool(correct), user_id=user_id)
        return self._command(result)

    async def expire_question(self, game_id: str) -> CommandResponse | ErrorResponse:
        return self._command(await self.manager.expire_question(game_id))

    async def end_game(self, game_id: str) -> CommandResponse | ErrorResponse:
        return self._command(await self.manager.end_game(game_id))

    async def prune_curses(self, game_id: str) -> CommandResponse | ErrorResponse:
        return self._command(await self.manager.prune_curses(game_id))

    async def active_curses(self, game_id: str) -> CursesResponse | ErrorResponse:
        try:
            curses = await self.manager.active_curses(game_id)
        except HideSeekError as e:
            return self._error(e.code, e.message)
        return CursesResponse(curses=[CurseInfo.from_curse(c) for c in curses])

    # =========================================================================
    # Content
    # =========================================================================

    def deck(self) -> DeckResponse:
        cards = [CardInfo.from_card(card) for card in self.manager.deck]
        return DeckResponse(cards=cards, count=len(cards))

    def categories(self) -> CategoriesResponse:
        bank: list[Question] = self.manager.reducer.question_bank
        return CategoriesResponse(
            categories=[c.value for c in categories(bank)],
            questions=[QuestionInfo.from_question(q) for q in bank],
        )

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    async def _lookup(self, pending: Awaitable[Game]) -> GameResponse | ErrorResponse:
        try:
            game = await pending
        except HideSeekError as e:
            return self._error(e.code, e.message)
        return GameResponse.from_game(game)

    def _command(self, result: ActionResult) -> CommandResponse | ErrorResponse:
        if not result.success:
            return self._error(result.error_code or ErrorCode.VALIDATION_ERROR, result.error or "")
        return CommandResponse.from_result(result)

    @staticmethod
    def _error(code: ErrorCode, message: str) -> ErrorResponse:
        logger.debug("API rejection %s: %s", code.value, message)
        return ErrorResponse(error=message, error_code=code)
