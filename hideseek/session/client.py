"""
Player Client - One participant's view of a game.

Wraps a SessionManager with the identity of a single player:
- join() remembers the role the player was given
- track_location() forwards a position feed until the game rejects it
- draw_card() / play_held_card() keep the drawn card on the player's side
  until it is played
"""

from __future__ import annotations
from typing import AsyncIterator

from ..content.models import Card
from ..engine_core.action import ActionResult
from ..engine_core.state import Curse, Game, Role
from ..logging_config import get_logger
from .collaborators import GeoPositionFeed, IdentityProvider
from .manager import SessionManager

logger = get_logger(__name__)


class PlayerClient:
    """
    A player connected to one game.

    Usage:
        client = PlayerClient(manager, game_id, AnonymousIdentityProvider())
        result = await client.join()
        await client.track_location(feed)
    """

    def __init__(self, manager: SessionManager, game_id: str, identity: IdentityProvider):
        self.manager = manager
        self.game_id = game_id
        self.identity = identity
        self.role: Role | None = None
        self.held_card: Card | None = None

    @property
    def user_id(self) -> str:
        return self.identity.current_identity()

    async def join(self, preferred_role: Role | None = None) -> ActionResult:
        result = await self.manager.assign_role(self.game_id, self.user_id, preferred_role)
        if result.success:
            self.role = result.role
        return result

    async def track_location(self, feed: GeoPositionFeed) -> int:
        """
        Push every sample from feed to the game.

        Returns the number of accepted samples. Stops at the first rejected
        sample (e.g. the game ended).
        """
        accepted = 0
        async for position in feed:
            result = await self.manager.update_location(self.game_id, self.user_id, position)
            if not result.success:
                logger.info(
                    "Location tracking for %s stopped: %s", self.user_id, result.error,
                )
                break
            accepted += 1
        return accepted

    def draw_card(self) -> Card:
        """Draw a card and hold it. Raises EmptyDeckError."""
        self.held_card = self.manager.draw_card()
        return self.held_card

    async def play_held_card(self) -> ActionResult:
        if self.held_card is None:
            return ActionResult.failure("No card is held")
        result = await self.manager.play_card(self.game_id, self.held_card, user_id=self.user_id)
        if result.success:
            self.held_card = None
        return result

    async def request_question(self, category: str) -> ActionResult:
        return await self.manager.request_question(self.game_id, category, user_id=self.user_id)

    async def answer(self, correct: bool) -> ActionResult:
        return await self.manager.answer_question(self.game_id, correct, user_id=self.user_id)

    async def submit_photo_answer(self, data: bytes, filename: str = "photo.jpg") -> ActionResult:
        return await self.manager.submit_photo_answer(
            self.game_id, data, filename, user_id=self.user_id,
        )

    async def active_curses(self) -> list[Curse]:
        return await self.manager.active_curses(self.game_id)

    def snapshots(self) -> AsyncIterator[Game]:
        return self.manager.watch(self.game_id)
