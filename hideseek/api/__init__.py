"""
API Module - Player app interface.

Exposes the session manager via REST and WebSocket.
The player app:
1. Creates a game or looks one up by code
2. Joins it and gets a role
3. Streams its location
4. Draws and plays cards, asks and answers questions
5. Watches the game over a WebSocket

Identity is an opaque id sent in the X-Player-Id header. No accounts.
"""

from .schemas import (
    # Requests
    CreateGameRequest,
    JoinGameRequest,
    LocationRequest,
    PlayCardRequest,
    QuestionRequest,
    # Responses
    GameResponse,
    CommandResponse,
    DrawCardResponse,
    DeckResponse,
    CategoriesResponse,
    CursesResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    Position,
    CardInfo,
    QuestionInfo,
    PendingQuestionInfo,
    CurseInfo,
    ChatMessageInfo,
)
from .service import APIService
from .app import create_app, make_error_response

__all__ = [
    # Requests
    "CreateGameRequest",
    "JoinGameRequest",
    "LocationRequest",
    "PlayCardRequest",
    "QuestionRequest",
    # Responses
    "GameResponse",
    "CommandResponse",
    "DrawCardResponse",
    "DeckResponse",
    "CategoriesResponse",
    "CursesResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "Position",
    "CardInfo",
    "QuestionInfo",
    "PendingQuestionInfo",
    "CurseInfo",
    "ChatMessageInfo",
    # Service
    "APIService",
    "create_app",
    "make_error_response",
]
