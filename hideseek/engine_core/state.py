"""
Game State - The shared session record and its parts.

Design principles:
- Immutable-friendly: the reducer never edits a Game in place
- Serializable: to_record()/from_record() give the opaque store record
- Patch-driven: every new Game is the old record with a Patch applied
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..content.models import Question
from .patch import Patch


class GameStatus(str, Enum):
    """Lifecycle of a game. ENDED is terminal."""
    WAITING = "waiting"
    ACTIVE = "active"
    ENDED = "ended"


class Role(str, Enum):
    """Player roles."""
    HIDER = "hider"
    SEEKER = "seeker"


class GameSize(str, Enum):
    """Game size chosen at creation."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def hiding_zone_radius(self) -> float:
        """Hiding zone radius in meters (a quarter or half mile)."""
        return 804.672 if self == GameSize.LARGE else 402.336

    @property
    def hiding_period_minutes(self) -> int:
        return {GameSize.SMALL: 30, GameSize.MEDIUM: 60, GameSize.LARGE: 180}[self]


class MessageType(str, Enum):
    """Chat log entry types."""
    QUESTION = "question"
    ANSWER = "answer"
    SYSTEM = "system"
    PHOTO = "photo"


@dataclass(frozen=True)
class LatLng:
    """A position sample."""
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LatLng | None:
        if not data:
            return None
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True)
class Curse:
    """
    A curse created by playing a curse card.

    Never mutated. Expiry is advisory: see is_expired().
    """
    curse_id: str
    name: str
    description: str
    duration: int  # minutes
    timestamp: float

    @property
    def expires_at(self) -> float:
        return self.timestamp + self.duration * 60

    def to_dict(self) -> dict[str, Any]:
        return {
            "curse_id": self.curse_id,
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Curse:
        return cls(
            curse_id=data["curse_id"],
            name=data["name"],
            description=data.get("description", ""),
            duration=int(data.get("duration", 0)),
            timestamp=float(data["timestamp"]),
        )


def is_expired(curse: Curse, now: float) -> bool:
    """True once duration minutes have passed since the curse was played."""
    return now >= curse.expires_at


def unexpired_curses(curses: tuple[Curse, ...] | list[Curse], now: float) -> list[Curse]:
    """Curses still in effect at now, oldest first."""
    return [c for c in curses if not is_expired(c, now)]


@dataclass(frozen=True)
class ChatMessage:
    """An entry in the append-only question/answer log."""
    message_id: str
    message_type: MessageType
    content: str
    timestamp: float
    sender: Role
    question: str | None = None
    category: str | None = None
    photo_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "message_type": self.message_type.value,
            "content": self.content,
            "timestamp": self.timestamp,
            "sender": self.sender.value,
            "question": self.question,
            "category": self.category,
            "photo_url": self.photo_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        return cls(
            message_id=data["message_id"],
            message_type=MessageType(data["message_type"]),
            content=data.get("content", ""),
            timestamp=float(data["timestamp"]),
            sender=Role(data["sender"]),
            question=data.get("question"),
            category=data.get("category"),
            photo_url=data.get("photo_url"),
        )


@dataclass(frozen=True)
class PendingQuestion:
    """The one challenge currently waiting on the hider."""
    category: str
    question: Question
    timestamp: float
    expires_at: float | None = None
    reveals_location: bool = False

    def is_overdue(self, now: float) -> bool:
        """Advisory only; nothing cancels an overdue question automatically."""
        return self.expires_at is not None and now >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "question": self.question.to_dict(),
            "timestamp": self.timestamp,
            "expires_at": self.expires_at,
            "reveals_location": self.reveals_location,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PendingQuestion | None:
        if not data:
            return None
        return cls(
            category=data["category"],
            question=Question.from_dict(data["question"]),
            timestamp=float(data["timestamp"]),
            expires_at=data.get("expires_at"),
            reveals_location=bool(data.get("reveals_location", False)),
        )


@dataclass(frozen=True)
class Game:
    """
    Complete session state at one committed version.

    This is the canonical record the store owns. All changes go through
    the reducer, which produces a Patch; the store applies the same Patch
    to its copy and bumps version.
    """
    game_id: str
    code: str
    status: GameStatus = GameStatus.WAITING

    # Players
    hider: str | None = None
    seekers: tuple[str, ...] = ()

    # Hider economy
    total_hiding_time: int = 0
    coins: int = 0
    active_curses: tuple[Curse, ...] = ()

    # Locations
    hider_location: LatLng | None = None
    seeker_locations: dict[str, LatLng] = field(default_factory=dict)

    # Questions
    pending_question: PendingQuestion | None = None
    chat_messages: tuple[ChatMessage, ...] = ()

    # Fixed at creation
    game_size: GameSize = GameSize.MEDIUM
    hiding_zone_radius: float = GameSize.MEDIUM.hiding_zone_radius
    hiding_period_ends_at: float = 0.0
    created_at: float = 0.0

    # Store commit counter
    version: int = 0

    @classmethod
    def create(cls, game_id: str, code: str, game_size: GameSize, now: float) -> Game:
        """A fresh waiting game with size-derived configuration."""
        return cls(
            game_id=game_id,
            code=code,
            game_size=game_size,
            hiding_zone_radius=game_size.hiding_zone_radius,
            hiding_period_ends_at=now + game_size.hiding_period_minutes * 60,
            created_at=now,
        )

    @property
    def is_joinable(self) -> bool:
        return self.status in {GameStatus.WAITING, GameStatus.ACTIVE}

    def role_of(self, user_id: str) -> Role | None:
        """Role already held by an identity, if any."""
        if self.hider is not None and user_id == self.hider:
            return Role.HIDER
        if user_id in self.seekers:
            return Role.SEEKER
        return None

    def apply_patch(self, patch: Patch) -> Game:
        """Return the game with a patch applied (version is left to the store)."""
        return Game.from_record(patch.apply_to(self.to_record()))

    def to_record(self) -> dict[str, Any]:
        """Plain JSON-compatible dict for the store."""
        return {
            "game_id": self.game_id,
            "code": self.code,
            "status": self.status.value,
            "hider": self.hider,
            "seekers": list(self.seekers),
            "total_hiding_time": self.total_hiding_time,
            "coins": self.coins,
            "active_curses": [c.to_dict() for c in self.active_curses],
            "hider_location": self.hider_location.to_dict() if self.hider_location else None,
            "seeker_locations": {
                uid: loc.to_dict() for uid, loc in self.seeker_locations.items()
            },
            "pending_question": (
                self.pending_question.to_dict() if self.pending_question else None
            ),
            "chat_messages": [m.to_dict() for m in self.chat_messages],
            "game_size": self.game_size.value,
            "hiding_zone_radius": self.hiding_zone_radius,
            "hiding_period_ends_at": self.hiding_period_ends_at,
            "created_at": self.created_at,
            "version": self.version,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Game:
        game_size = GameSize(record.get("game_size", GameSize.MEDIUM.value))
        return cls(
            game_id=record["game_id"],
            code=record["code"],
            status=GameStatus(record.get("status", GameStatus.WAITING.value)),
            hider=record.get("hider"),
            seekers=tuple(record.get("seekers") or ()),
            total_hiding_time=int(record.get("total_hiding_time") or 0),
            coins=int(record.get("coins") or 0),
            active_curses=tuple(
                Curse.from_dict(c) for c in record.get("active_curses") or ()
            ),
            hider_location=LatLng.from_dict(record.get("hider_location")),
            seeker_locations={
                uid: LatLng.from_dict(loc)
                for uid, loc in (record.get("seeker_locations") or {}).items()
                if loc
            },
            pending_question=PendingQuestion.from_dict(record.get("pending_question")),
            chat_messages=tuple(
                ChatMessage.from_dict(m) for m in record.get("chat_messages") or ()
            ),
            game_size=game_size,
            hiding_zone_radius=float(
                record.get("hiding_zone_radius", game_size.hiding_zone_radius)
            ),
            hiding_period_ends_at=float(record.get("hiding_period_ends_at") or 0.0),
            created_at=float(record.get("created_at") or 0.0),
            version=int(record.get("version") or 0),
        )
