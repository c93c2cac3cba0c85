"""
Session Store - Where game records live.

The store is the single owner of every Game record. Participants only
ever see snapshots; they change a record by handing the store a Patch.

Contract:
- get(game_id) -> Game
- watch(game_id) -> async stream of Game (current snapshot first, then
  one full snapshot per committed patch)
- apply_patch(game_id, patch) -> committed Game, or StoreConflictError
  when patch.expected_version does not match the record's version,
  or GameEndedError when patch.reject_if_ended meets an ended record
- create(game) -> game_id
- query_by_code(code) -> Game, or NotFoundError

Every successful apply_patch bumps the record's version by one.
"""

from __future__ import annotations
import asyncio
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from ..engine_core.patch import Patch
from ..engine_core.state import Game, GameStatus
from ..errors import GameEndedError, NotFoundError, StoreConflictError
from ..logging_config import get_logger

logger = get_logger(__name__)


class SessionStore(ABC):
    """Abstract record store for games."""

    @abstractmethod
    async def get(self, game_id: str) -> Game:
        """Latest committed snapshot of a game."""

    @abstractmethod
    def watch(self, game_id: str) -> AsyncIterator[Game]:
        """Stream of full snapshots, one per commit."""

    @abstractmethod
    async def apply_patch(self, game_id: str, patch: Patch) -> Game:
        """Atomically apply a patch and return the committed game."""

    @abstractmethod
    async def create(self, game: Game) -> str:
        """Insert a new game and return its id."""

    @abstractmethod
    async def query_by_code(self, code: str) -> Game:
        """Find a game by its join code."""


class InMemorySessionStore(SessionStore):
    """
    Dict-backed store.

    Each call yields to the event loop once before touching the records,
    which stands in for the network round trip of a remote store: two
    commands issued together really do interleave their reads and writes.
    The read-check-write inside apply_patch has no await, so it is atomic.
    """

    def __init__(self):
        self._records: dict[str, dict[str, Any]] = {}
        self._watchers: dict[str, list[asyncio.Queue]] = {}

    async def get(self, game_id: str) -> Game:
        await asyncio.sleep(0)
        return Game.from_record(self._record(game_id))

    async def create(self, game: Game) -> str:
        await asyncio.sleep(0)
        if game.game_id in self._records:
            raise StoreConflictError(f"Game {game.game_id} already exists")
        record = game.to_record()
        self._persist(game.game_id, record)
        self._records[game.game_id] = record
        logger.info("Created game %s with code %s", game.game_id, game.code)
        return game.game_id

    async def apply_patch(self, game_id: str, patch: Patch) -> Game:
        await asyncio.sleep(0)
        record = self._record(game_id)
        version = int(record.get("version") or 0)
        if patch.expected_version is not None and patch.expected_version != version:
            raise StoreConflictError(
                f"Game {game_id} changed (expected version {patch.expected_version}, "
                f"found {version})",
                expected_version=patch.expected_version,
                actual_version=version,
            )
        if patch.reject_if_ended and record.get("status") == GameStatus.ENDED.value:
            raise GameEndedError(f"Game {game_id} has ended")

        new_record = patch.apply_to(record)
        new_record["version"] = version + 1
        # Persist before swapping so a failed write leaves the old record in place
        self._persist(game_id, new_record)
        self._records[game_id] = new_record

        game = Game.from_record(new_record)
        self._notify(game_id, game)
        return game

    async def query_by_code(self, code: str) -> Game:
        await asyncio.sleep(0)
        matches = [
            Game.from_record(record)
            for record in self._records.values()
            if record.get("code") == code
        ]
        if not matches:
            raise NotFoundError(f"No game with code {code}")
        # Joinable games win over ended ones; newest first within each group
        matches.sort(key=lambda g: (g.is_joinable, g.created_at), reverse=True)
        return matches[0]

    async def watch(self, game_id: str) -> AsyncIterator[Game]:
        record = self._record(game_id)
        queue: asyncio.Queue = asyncio.Queue()
        self._watchers.setdefault(game_id, []).append(queue)
        try:
            yield Game.from_record(record)
            while True:
                yield await queue.get()
        finally:
            watchers = self._watchers.get(game_id, [])
            if queue in watchers:
                watchers.remove(queue)
            if not watchers:
                self._watchers.pop(game_id, None)

    def watcher_count(self, game_id: str) -> int:
        return len(self._watchers.get(game_id, []))

    def list_game_ids(self) -> list[str]:
        return list(self._records)

    def _record(self, game_id: str) -> dict[str, Any]:
        record = self._records.get(game_id)
        if record is None:
            raise NotFoundError(f"Game {game_id} not found")
        return record

    def _notify(self, game_id: str, game: Game):
        for queue in self._watchers.get(game_id, []):
            queue.put_nowait(game)

    def _persist(self, game_id: str, record: dict[str, Any]):
        """Hook for durable subclasses. Called before a record is swapped in."""
