"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the player app and the server.
Every response is built from a committed Game snapshot.

Error Codes:
- NOT_FOUND: Game or code does not exist
- GAME_ENDED: The game no longer accepts commands
- ROLE_CONFLICT: The requested role is already taken
- QUESTION_ALREADY_PENDING: Another question is waiting for an answer
- NO_PENDING_QUESTION: Nothing to answer or expire
- PHOTO_REQUIRED: A photo question needs a photo to be answered correctly
- STORE_CONFLICT: The game kept changing, retry the command
- COLLABORATOR_UNAVAILABLE: Storage is unreachable
"""

from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, Field

from ..content.models import Card, Question
from ..engine_core.action import ActionResult
from ..engine_core.state import (
    ChatMessage,
    Curse,
    Game,
    GameSize,
    GameStatus,
    LatLng,
    MessageType,
    PendingQuestion,
    Role,
)
from ..errors import ErrorCode


# =============================================================================
# Shared Models
# =============================================================================

class Position(BaseModel):
    """A coordinate as reported by the device. Stored as given."""
    lat: float
    lng: float

    def to_latlng(self) -> LatLng:
        return LatLng(lat=self.lat, lng=self.lng)

    @classmethod
    def from_latlng(cls, position: LatLng | None) -> Optional[Position]:
        if position is None:
            return None
        return cls(lat=position.lat, lng=position.lng)


class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    card_type: str = Field(description="timeBonus, curse, powerup")
    name: str
    description: str
    value: Optional[int] = None
    effect: Optional[str] = None

    @classmethod
    def from_card(cls, card: Card) -> CardInfo:
        return cls(
            card_id=card.card_id,
            card_type=card.card_type.value,
            name=card.name,
            description=card.description,
            value=card.value,
            effect=card.effect,
        )


class QuestionInfo(BaseModel):
    """A question as shown to players."""
    question_id: str
    category: str
    question: str
    question_type: str
    draw_cards: int = 1
    keep_cards: int = 1
    time_limit: Optional[int] = None

    @classmethod
    def from_question(cls, question: Question) -> QuestionInfo:
        return cls(
            question_id=question.question_id,
            category=question.category.value,
            question=question.question,
            question_type=question.question_type,
            draw_cards=question.draw_cards,
            keep_cards=question.keep_cards,
            time_limit=question.time_limit,
        )


class PendingQuestionInfo(BaseModel):
    """The question currently waiting for the hider."""
    category: str
    question: QuestionInfo
    timestamp: float
    expires_at: Optional[float] = None
    reveals_location: bool = False

    @classmethod
    def from_pending(cls, pending: PendingQuestion | None) -> Optional[PendingQuestionInfo]:
        if pending is None:
            return None
        return cls(
            category=pending.category,
            question=QuestionInfo.from_question(pending.question),
            timestamp=pending.timestamp,
            expires_at=pending.expires_at,
            reveals_location=pending.reveals_location,
        )


class CurseInfo(BaseModel):
    """A curse played on the seekers."""
    curse_id: str
    name: str
    description: str
    duration: int = Field(description="Minutes")
    timestamp: float
    expires_at: float

    @classmethod
    def from_curse(cls, curse: Curse) -> CurseInfo:
        return cls(
            curse_id=curse.curse_id,
            name=curse.name,
            description=curse.description,
            duration=curse.duration,
            timestamp=curse.timestamp,
            expires_at=curse.expires_at,
        )


class ChatMessageInfo(BaseModel):
    """One entry of the game chat log."""
    message_id: str
    message_type: MessageType
    content: str
    timestamp: float
    sender: Role
    question: Optional[str] = None
    category: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_message(cls, message: ChatMessage) -> ChatMessageInfo:
        return cls(
            message_id=message.message_id,
            message_type=message.message_type,
            content=message.content,
            timestamp=message.timestamp,
            sender=message.sender,
            question=message.question,
            category=message.category,
            photo_url=message.photo_url,
        )


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to create a new game."""
    game_size: GameSize = Field(GameSize.MEDIUM, description="small, medium, large")


class JoinGameRequest(BaseModel):
    """Request to join a game."""
    preferred_role: Optional[Role] = Field(
        None, description="Ask for a role; hider fails with ROLE_CONFLICT if taken"
    )


class LocationRequest(BaseModel):
    """A location sample from the player's device."""
    position: Position


class PlayCardRequest(BaseModel):
    """Play a card from the deck by id."""
    card_id: str = Field(..., description="Id of the card to play")


class QuestionRequest(BaseModel):
    """Ask the hider a question from a category."""
    category: str = Field(..., description="Matching, Measuring, Radar, ...")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict] = None


class GameResponse(BaseModel):
    """Full snapshot of a game."""
    game_id: str
    code: str
    status: GameStatus
    version: int
    hider: Optional[str] = None
    seekers: list[str] = Field(default_factory=list)
    total_hiding_time: int = 0
    coins: int = 0
    active_curses: list[CurseInfo] = Field(default_factory=list)
    hider_location: Optional[Position] = None
    seeker_locations: dict[str, Position] = Field(default_factory=dict)
    pending_question: Optional[PendingQuestionInfo] = None
    chat_messages: list[ChatMessageInfo] = Field(default_factory=list)
    game_size: GameSize
    hiding_zone_radius: float
    hiding_period_ends_at: float
    created_at: float

    @classmethod
    def from_game(cls, game: Game) -> GameResponse:
        return cls(
            game_id=game.game_id,
            code=game.code,
            status=game.status,
            version=game.version,
            hider=game.hider,
            seekers=list(game.seekers),
            total_hiding_time=game.total_hiding_time,
            coins=game.coins,
            active_curses=[CurseInfo.from_curse(c) for c in game.active_curses],
            hider_location=Position.from_latlng(game.hider_location),
            seeker_locations={
                uid: Position.from_latlng(loc)
                for uid, loc in game.seeker_locations.items()
            },
            pending_question=PendingQuestionInfo.from_pending(game.pending_question),
            chat_messages=[ChatMessageInfo.from_message(m) for m in game.chat_messages],
            game_size=game.game_size,
            hiding_zone_radius=game.hiding_zone_radius,
            hiding_period_ends_at=game.hiding_period_ends_at,
            created_at=game.created_at,
        )


class CommandResponse(BaseModel):
    """Outcome of a command that changed (or kept) a game."""
    success: bool = True
    game: GameResponse
    role: Optional[Role] = None
    reveals_location: bool = False
    reveal_seconds: int = 0
    state_changes: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ActionResult) -> CommandResponse:
        return cls(
            success=result.success,
            game=GameResponse.from_game(result.new_state),
            role=result.role,
            reveals_location=result.reveals_location,
            reveal_seconds=result.reveal_seconds,
            state_changes=result.state_changes,
        )


class DrawCardResponse(BaseModel):
    """A card drawn from the deck."""
    card: CardInfo


class DeckResponse(BaseModel):
    """All cards in the deck."""
    cards: list[CardInfo]
    count: int


class CategoriesResponse(BaseModel):
    """Question categories with their questions."""
    categories: list[str]
    questions: list[QuestionInfo]


class CursesResponse(BaseModel):
    """Curses still in effect."""
    curses: list[CurseInfo]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
