"""
Pytest fixtures for hide-and-seek tests.
"""

import random

import pytest
import pytest_asyncio

from ..content.models import Question, QuestionCategory
from ..engine_core.reducer import Reducer
from ..engine_core.state import Game, GameSize, GameStatus
from ..session.collaborators import InMemoryUploadSink
from ..session.manager import SessionManager
from ..session.store import InMemorySessionStore

NOW = 1_700_000_000.0


@pytest.fixture
def now() -> float:
    return NOW


@pytest.fixture
def waiting_game() -> Game:
    """A fresh game nobody has joined."""
    return Game.create(game_id="game-1", code="1234", game_size=GameSize.MEDIUM, now=NOW)


@pytest.fixture
def active_game(waiting_game: Game) -> Game:
    """A game with one hider and one seeker."""
    record = waiting_game.to_record()
    record.update(
        status=GameStatus.ACTIVE.value,
        hider="hider-1",
        seekers=["seeker-1"],
        version=2,
    )
    return Game.from_record(record)


@pytest.fixture
def photo_bank() -> list[Question]:
    return [
        Question(
            question_id="photo_only",
            category=QuestionCategory.PHOTO,
            question="Send a photo of the sky",
            answer="Submit a photo",
            time_limit=600,
        )
    ]


@pytest.fixture
def reducer() -> Reducer:
    """Reducer with a seeded rng."""
    return Reducer(rng=random.Random(7))


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def upload_sink() -> InMemoryUploadSink:
    return InMemoryUploadSink()


@pytest.fixture
def manager(store: InMemorySessionStore, upload_sink: InMemoryUploadSink) -> SessionManager:
    """Manager over an in-memory store with a frozen clock."""
    return SessionManager(
        store=store,
        reducer=Reducer(rng=random.Random(11)),
        upload_sink=upload_sink,
        clock=lambda: NOW,
        rng=random.Random(5),
    )


@pytest_asyncio.fixture
async def game(manager: SessionManager) -> Game:
    """A stored game with a hider and a seeker."""
    created = await manager.create_game(GameSize.SMALL)
    await manager.assign_role(created.game_id, "hider-1")
    await manager.assign_role(created.game_id, "seeker-1")
    return await manager.get_game(created.game_id)
