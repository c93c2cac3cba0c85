"""
Tests for API layer.

Tests:
- API service methods
- HTTP endpoints and status codes
- WebSocket snapshot stream
"""

import random

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    CommandResponse,
    CreateGameRequest,
    ErrorResponse,
    GameResponse,
    JoinGameRequest,
    PlayCardRequest,
    QuestionRequest,
)
from ..api.service import APIService
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameSize, Role
from ..errors import ErrorCode
from ..session.collaborators import InMemoryUploadSink
from ..session.manager import SessionManager


@pytest.fixture
def service():
    """A fresh API service over in-memory collaborators."""
    return APIService(manager=SessionManager(
        reducer=Reducer(rng=random.Random(3)),
        upload_sink=InMemoryUploadSink(),
    ))


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client


def create_game(client) -> dict:
    response = client.post("/api/v1/games", json={"game_size": "small"})
    assert response.status_code == 200
    return response.json()


def join(client, game_id: str, player_id: str, **body):
    return client.post(
        f"/api/v1/games/{game_id}/join",
        json=body or None,
        headers={"X-Player-Id": player_id},
    )


@pytest.fixture
def started(client) -> dict:
    """A game with a hider and a seeker, joined over HTTP."""
    game = create_game(client)
    join(client, game["game_id"], "hider-1")
    join(client, game["game_id"], "seeker-1")
    return game


class TestAPIService:
    """Tests for APIService."""

    @pytest.mark.asyncio
    async def test_create_and_join(self, service):
        game = await service.create_game(CreateGameRequest(game_size=GameSize.SMALL))

        joined = await service.join_game(game.game_id, "alice", JoinGameRequest())

        assert isinstance(game, GameResponse)
        assert isinstance(joined, CommandResponse)
        assert joined.role == Role.HIDER
        assert joined.game.hider == "alice"

    @pytest.mark.asyncio
    async def test_missing_game_is_error(self, service):
        response = await service.get_game("missing")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_play_unknown_card(self, service):
        game = await service.create_game(CreateGameRequest())

        response = await service.play_card(game.game_id, "hider", PlayCardRequest(card_id="nope"))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_request_question_reports_reveal(self, service):
        game = await service.create_game(CreateGameRequest())

        response = await service.request_question(game.game_id, "s", QuestionRequest(category="Radar"))

        assert response.reveals_location
        assert response.reveal_seconds == 10
        assert response.game.pending_question.category == "Radar"

    def test_categories(self, service):
        response = service.categories()

        assert response.categories == [
            "Matching", "Measuring", "Radar", "Thermometer", "Photo", "Tentacle",
        ]

    def test_deck(self, service):
        response = service.deck()

        assert response.count == len(response.cards) == 10


class TestGameEndpoints:
    """Tests for game endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/health"

    def test_create_game(self, client):
        game = create_game(client)

        assert game["status"] == "waiting"
        assert game["game_size"] == "small"
        assert len(game["code"]) == 4

    def test_get_missing_game(self, client):
        response = client.get("/api/v1/games/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_find_by_code(self, client, started):
        response = client.get(f"/api/v1/games/by-code/{started['code']}")

        assert response.status_code == 200
        assert response.json()["game_id"] == started["game_id"]

    def test_join_roles(self, client):
        game = create_game(client)

        hider = join(client, game["game_id"], "alice").json()
        seeker = join(client, game["game_id"], "bob").json()

        assert hider["role"] == "hider"
        assert seeker["role"] == "seeker"
        assert seeker["game"]["status"] == "active"

    def test_join_taken_hider(self, client, started):
        response = join(client, started["game_id"], "carol", preferred_role="hider")

        assert response.status_code == 409
        assert response.json()["error_code"] == "ROLE_CONFLICT"

    def test_join_requires_player_header(self, client, started):
        response = client.post(f"/api/v1/games/{started['game_id']}/join")

        assert response.status_code == 422

    def test_end_game(self, client, started):
        game_id = started["game_id"]

        ended = client.post(f"/api/v1/games/{game_id}/end")
        late = client.post(
            f"/api/v1/games/{game_id}/cards/play",
            json={"card_id": "extra_minute"},
            headers={"X-Player-Id": "hider-1"},
        )

        assert ended.json()["game"]["status"] == "ended"
        assert late.status_code == 400
        assert late.json()["error_code"] == "GAME_ENDED"


class TestLocationEndpoint:
    """Tests for location samples over HTTP."""

    def test_seeker_location(self, client, started):
        response = client.post(
            f"/api/v1/games/{started['game_id']}/location",
            json={"position": {"lat": 40.0, "lng": -74.0}},
            headers={"X-Player-Id": "seeker-1"},
        )

        assert response.status_code == 200
        assert response.json()["game"]["seeker_locations"] == {
            "seeker-1": {"lat": 40.0, "lng": -74.0},
        }

    def test_out_of_range_position_is_stored(self, client, started):
        """Implausible coordinates are accepted and read back unchanged."""
        game_id = started["game_id"]

        response = client.post(
            f"/api/v1/games/{game_id}/location",
            json={"position": {"lat": 91.0, "lng": 0.0}},
            headers={"X-Player-Id": "seeker-1"},
        )
        snapshot = client.get(f"/api/v1/games/{game_id}")

        assert response.status_code == 200
        assert snapshot.status_code == 200
        assert snapshot.json()["seeker_locations"]["seeker-1"] == {"lat": 91.0, "lng": 0.0}


class TestCardEndpoints:
    """Tests for card endpoints."""

    def test_draw_card(self, client):
        response = client.post("/api/v1/cards/draw")

        assert response.status_code == 200
        assert response.json()["card"]["card_type"] in {"timeBonus", "curse", "powerup"}

    def test_play_curse(self, client, started):
        game_id = started["game_id"]

        client.post(
            f"/api/v1/games/{game_id}/cards/play",
            json={"card_id": "freeze"},
            headers={"X-Player-Id": "hider-1"},
        )
        curses = client.get(f"/api/v1/games/{game_id}/curses").json()["curses"]
        pruned = client.post(f"/api/v1/games/{game_id}/curses/prune")

        assert [c["name"] for c in curses] == ["FREEZE"]
        assert pruned.status_code == 200
        assert len(pruned.json()["game"]["active_curses"]) == 1

    def test_play_unknown_card(self, client, started):
        response = client.post(
            f"/api/v1/games/{started['game_id']}/cards/play",
            json={"card_id": "nope"},
            headers={"X-Player-Id": "hider-1"},
        )

        assert response.status_code == 404

    def test_deck_and_categories(self, client):
        assert client.get("/api/v1/cards").json()["count"] == 10
        assert "Radar" in client.get("/api/v1/questions/categories").json()["categories"]


class TestQuestionEndpoints:
    """Tests for the question cycle over HTTP."""

    def ask(self, client, game_id, category):
        return client.post(
            f"/api/v1/games/{game_id}/questions",
            json={"category": category},
            headers={"X-Player-Id": "seeker-1"},
        )

    def test_ask_and_answer(self, client, started):
        game_id = started["game_id"]

        asked = self.ask(client, game_id, "Matching")
        answered = client.post(
            f"/api/v1/games/{game_id}/answer",
            data={"correct": "true"},
            headers={"X-Player-Id": "hider-1"},
        )

        assert asked.status_code == 200
        assert answered.status_code == 200
        body = answered.json()
        assert body["game"]["coins"] == 1
        assert body["game"]["pending_question"] is None

    def test_second_question_conflicts(self, client, started):
        self.ask(client, started["game_id"], "Matching")

        response = self.ask(client, started["game_id"], "Radar")

        assert response.status_code == 409
        assert response.json()["error_code"] == "QUESTION_ALREADY_PENDING"

    def test_photo_answer(self, client, started):
        game_id = started["game_id"]
        self.ask(client, game_id, "Photo")

        response = client.post(
            f"/api/v1/games/{game_id}/answer",
            files={"photo": ("view.jpg", b"\xff\xd8jpeg", "image/jpeg")},
            headers={"X-Player-Id": "hider-1"},
        )

        assert response.status_code == 200
        message = response.json()["game"]["chat_messages"][-1]
        assert message["message_type"] == "photo"
        assert message["photo_url"].startswith("memory://")

    def test_photo_marked_incorrect_is_rejected(self, client, started, service):
        """A photo sent with correct=false is refused and nothing is uploaded."""
        game_id = started["game_id"]
        self.ask(client, game_id, "Photo")

        response = client.post(
            f"/api/v1/games/{game_id}/answer",
            data={"correct": "false"},
            files={"photo": ("view.jpg", b"\xff\xd8jpeg", "image/jpeg")},
            headers={"X-Player-Id": "hider-1"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert service.manager.upload_sink.blobs == {}
        game = client.get(f"/api/v1/games/{game_id}").json()
        assert game["coins"] == 0
        assert game["pending_question"] is not None

    def test_photo_question_without_photo(self, client, started):
        game_id = started["game_id"]
        self.ask(client, game_id, "Photo")

        response = client.post(
            f"/api/v1/games/{game_id}/answer",
            data={"correct": "true"},
            headers={"X-Player-Id": "hider-1"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "PHOTO_REQUIRED"

    def test_expire_without_question(self, client, started):
        response = client.post(f"/api/v1/games/{started['game_id']}/questions/expire")

        assert response.status_code == 400
        assert response.json()["error_code"] == "NO_PENDING_QUESTION"


class TestWebSocket:
    """Tests for the snapshot WebSocket."""

    def test_initial_snapshot_and_ping(self, client, started):
        with client.websocket_connect(f"/api/v1/games/{started['game_id']}/ws") as websocket:
            snapshot = websocket.receive_json()
            websocket.send_text('{"type": "ping"}')
            pong = websocket.receive_json()

        assert snapshot["type"] == "state_update"
        assert snapshot["payload"]["hider"] == "hider-1"
        assert pong == {"type": "pong"}

    def test_missing_game(self, client):
        with client.websocket_connect("/api/v1/games/missing/ws") as websocket:
            message = websocket.receive_json()

        assert message["type"] == "error"
        assert message["payload"]["error_code"] == "NOT_FOUND"
