"""
FastAPI Application - REST API for the player app.

Endpoints:
    POST   /api/v1/games                       Create a game
    GET    /api/v1/games/by-code/{code}        Resolve a join code
    GET    /api/v1/games/{id}                  Get a game snapshot
    POST   /api/v1/games/{id}/join             Join (assigns hider or seeker)
    POST   /api/v1/games/{id}/location         Report a location sample
    POST   /api/v1/games/{id}/cards/play       Play a card
    POST   /api/v1/games/{id}/questions        Ask a question
    POST   /api/v1/games/{id}/answer           Answer (multipart, optional photo)
    POST   /api/v1/games/{id}/questions/expire Expire the pending question
    POST   /api/v1/games/{id}/end              End the game
    GET    /api/v1/games/{id}/curses           Curses still in effect
    POST   /api/v1/games/{id}/curses/prune     Drop expired curses
    POST   /api/v1/cards/draw                  Draw a card
    GET    /api/v1/cards                       The deck
    GET    /api/v1/questions/categories        Question categories
    WS     /api/v1/games/{id}/ws               Snapshot stream

Player commands carry the player's id in the X-Player-Id header.
All responses are JSON with explicit Pydantic schemas.
"""

import asyncio
import json
from typing import Annotated, Optional, Union

from fastapi import FastAPI, File, Form, Header, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_settings
from ..errors import ErrorCode, NotFoundError
from ..logging_config import get_logger, setup_logging
from ..session import StaticIdentityProvider
from .service import APIService
from .schemas import (
    CategoriesResponse,
    CommandResponse,
    CreateGameRequest,
    CursesResponse,
    DeckResponse,
    DrawCardResponse,
    ErrorResponse,
    GameResponse,
    HealthResponse,
    JoinGameRequest,
    LocationRequest,
    PlayCardRequest,
    QuestionRequest,
)

logger = get_logger(__name__)

ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.STORE_CONFLICT: 409,
    ErrorCode.QUESTION_ALREADY_PENDING: 409,
    ErrorCode.ROLE_CONFLICT: 409,
    ErrorCode.COLLABORATOR_UNAVAILABLE: 503,
}

PlayerId = Annotated[str, Header(alias="X-Player-Id", description="Opaque player identity")]

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Command rejected"},
    404: {"model": ErrorResponse, "description": "Game not found"},
    409: {"model": ErrorResponse, "description": "Conflicting state"},
}


def make_error_response(error: ErrorResponse) -> JSONResponse:
    """Create a standardized error response with the status for its code."""
    return JSONResponse(
        status_code=ERROR_STATUS.get(error.error_code, 400),
        content=error.model_dump(mode="json"),
    )


def create_app(service: APIService | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    settings = get_settings()
    setup_logging()

    app = FastAPI(
        title="Hide and Seek API",
        description="""
Shared game sessions for a real-world hide-and-seek game.

## Error Codes

| Code | Status | Description |
|------|--------|-------------|
| `NOT_FOUND` | 404 | Game or join code does not exist |
| `ROLE_CONFLICT` | 409 | The hider slot is taken |
| `QUESTION_ALREADY_PENDING` | 409 | Another question is waiting |
| `STORE_CONFLICT` | 409 | The game kept changing, retry |
| `COLLABORATOR_UNAVAILABLE` | 503 | Storage is unreachable |
| anything else | 400 | Command rejected by the game rules |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()
    app.state.service = api_service

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    def player(player_id: str) -> str:
        return StaticIdentityProvider(player_id.strip()).current_identity()

    def bad_player() -> JSONResponse:
        return make_error_response(ErrorResponse(
            error="X-Player-Id header must not be empty",
            error_code=ErrorCode.VALIDATION_ERROR,
        ))

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=GameResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Create a new game",
    )
    async def create_game(request: CreateGameRequest) -> Union[GameResponse, JSONResponse]:
        """Create a waiting game. The response carries its 4-digit join code."""
        return respond(await api_service.create_game(request))

    @app.get(
        "/api/v1/games/by-code/{code}",
        response_model=GameResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Find a joinable game by code",
    )
    async def find_game(code: str) -> Union[GameResponse, JSONResponse]:
        return respond(await api_service.find_game(code))

    @app.get(
        "/api/v1/games/{game_id}",
        response_model=GameResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Get a game snapshot",
    )
    async def get_game(game_id: str) -> Union[GameResponse, JSONResponse]:
        return respond(await api_service.get_game(game_id))

    @app.post(
        "/api/v1/games/{game_id}/join",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Join a game",
    )
    async def join_game(
        game_id: str,
        x_player_id: PlayerId,
        request: Optional[JoinGameRequest] = None,
    ) -> Union[CommandResponse, JSONResponse]:
        """
        Join a game.

        The first player becomes the hider, everyone after a seeker.
        Joining again returns the role already held.
        """
        try:
            user_id = player(x_player_id)
        except ValueError:
            return bad_player()
        return respond(await api_service.join_game(game_id, user_id, request or JoinGameRequest()))

    @app.post(
        "/api/v1/games/{game_id}/end",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="End the game",
    )
    async def end_game(game_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond(await api_service.end_game(game_id))

    # =========================================================================
    # Location Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/games/{game_id}/location",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Game Loop"],
        summary="Report a location sample",
    )
    async def update_location(
        game_id: str,
        request: LocationRequest,
        x_player_id: PlayerId,
    ) -> Union[CommandResponse, JSONResponse]:
        try:
            user_id = player(x_player_id)
        except ValueError:
            return bad_player()
        return respond(await api_service.update_location(game_id, user_id, request))

    # =========================================================================
    # Card Endpoints
    # =========================================================================

    @app.get("/api/v1/cards", response_model=DeckResponse, tags=["Cards"], summary="List the deck")
    async def get_deck() -> DeckResponse:
        return api_service.deck()

    @app.post(
        "/api/v1/cards/draw",
        response_model=DrawCardResponse,
        responses=ERROR_RESPONSES,
        tags=["Cards"],
        summary="Draw a random card",
    )
    async def draw_card() -> Union[DrawCardResponse, JSONResponse]:
        """Draw a card. Nothing is stored until the card is played."""
        return respond(api_service.draw_card())

    @app.post(
        "/api/v1/games/{game_id}/cards/play",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Cards"],
        summary="Play a card",
    )
    async def play_card(
        game_id: str,
        request: PlayCardRequest,
        x_player_id: PlayerId,
    ) -> Union[CommandResponse, JSONResponse]:
        try:
            user_id = player(x_player_id)
        except ValueError:
            return bad_player()
        return respond(await api_service.play_card(game_id, user_id, request))

    @app.get(
        "/api/v1/games/{game_id}/curses",
        response_model=CursesResponse,
        responses=ERROR_RESPONSES,
        tags=["Cards"],
        summary="Curses still in effect",
    )
    async def active_curses(game_id: str) -> Union[CursesResponse, JSONResponse]:
        return respond(await api_service.active_curses(game_id))

    @app.post(
        "/api/v1/games/{game_id}/curses/prune",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Cards"],
        summary="Remove expired curses",
    )
    async def prune_curses(game_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond(await api_service.prune_curses(game_id))

    # =========================================================================
    # Question Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/questions/categories",
        response_model=CategoriesResponse,
        tags=["Questions"],
        summary="List question categories",
    )
    async def get_categories() -> CategoriesResponse:
        return api_service.categories()

    @app.post(
        "/api/v1/games/{game_id}/questions",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Questions"],
        summary="Ask the hider a question",
    )
    async def request_question(
        game_id: str,
        request: QuestionRequest,
        x_player_id: PlayerId,
    ) -> Union[CommandResponse, JSONResponse]:
        """
        Ask a random question from a category.

        Only one question may be pending at a time. When the response has
        `reveals_location=true` the hider's position is shown for
        `reveal_seconds`.
        """
        try:
            user_id = player(x_player_id)
        except ValueError:
            return bad_player()
        return respond(await api_service.request_question(game_id, user_id, request))

    @app.post(
        "/api/v1/games/{game_id}/answer",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Questions"],
        summary="Answer the pending question",
    )
    async def answer_question(
        game_id: str,
        x_player_id: PlayerId,
        correct: Annotated[Optional[bool], Form(description="Whether the answer is correct")] = None,
        photo: Annotated[Optional[UploadFile], File(description="Photo answer")] = None,
    ) -> Union[CommandResponse, JSONResponse]:
        """
        Answer the pending question.

        Photo questions need a photo to be answered correctly. An uploaded
        photo is a correct answer; sending one with correct=false is rejected.
        Without a photo, a missing correct field means incorrect.
        """
        try:
            user_id = player(x_player_id)
        except ValueError:
            return bad_player()

        data = None
        filename = None
        if photo is not None:
            data = await photo.read()
            filename = photo.filename
            if not data:
                return make_error_response(ErrorResponse(
                    error="Empty photo file",
                    error_code=ErrorCode.VALIDATION_ERROR,
                ))

        return respond(await api_service.answer_question(
            game_id, user_id, correct, photo=data, filename=filename,
        ))

    @app.post(
        "/api/v1/games/{game_id}/questions/expire",
        response_model=CommandResponse,
        responses=ERROR_RESPONSES,
        tags=["Questions"],
        summary="Expire the pending question",
    )
    async def expire_question(game_id: str) -> Union[CommandResponse, JSONResponse]:
        return respond(await api_service.expire_question(game_id))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/games/{game_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, game_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: full game snapshot (sent on connect and after every commit)
        - pong: reply to ping
        - error: error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        lookup = await api_service.get_game(game_id)
        if isinstance(lookup, ErrorResponse):
            await websocket.send_json({"type": "error", "payload": lookup.model_dump(mode="json")})
            await websocket.close(code=4404)
            return

        async def pump():
            try:
                async for snapshot in api_service.watch(game_id):
                    await websocket.send_json({
                        "type": "state_update",
                        "payload": snapshot.model_dump(mode="json"),
                    })
            except NotFoundError as e:
                await websocket.send_json({"type": "error", "payload": {"message": e.message}})

        sender = asyncio.create_task(pump())
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            logger.debug("WebSocket for %s disconnected", game_id)
        finally:
            sender.cancel()

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="hideseek",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Hide and Seek API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn hideseek.api.app:app
app = create_app()
