"""
Errors - Rejections raised by the engine and its collaborators.

Every error is local and recoverable. The reducer converts rule errors
into failed ActionResults; the session manager does the same for store
and collaborator errors, so no command ever crashes a session.
"""

from __future__ import annotations
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable rejection codes."""
    EMPTY_DECK = "EMPTY_DECK"
    INVALID_CARD_TYPE = "INVALID_CARD_TYPE"
    QUESTION_ALREADY_PENDING = "QUESTION_ALREADY_PENDING"
    NO_QUESTIONS_IN_CATEGORY = "NO_QUESTIONS_IN_CATEGORY"
    NO_PENDING_QUESTION = "NO_PENDING_QUESTION"
    PHOTO_REQUIRED = "PHOTO_REQUIRED"
    ROLE_CONFLICT = "ROLE_CONFLICT"
    INVALID_ROLE = "INVALID_ROLE"
    GAME_ENDED = "GAME_ENDED"
    STORE_CONFLICT = "STORE_CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    COLLABORATOR_UNAVAILABLE = "COLLABORATOR_UNAVAILABLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class HideSeekError(Exception):
    """Base class for all engine rejections."""
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class EmptyDeckError(HideSeekError):
    """Raised when drawing from an empty deck."""
    code = ErrorCode.EMPTY_DECK


class InvalidCardTypeError(HideSeekError):
    """Raised when a card carries an unrecognised type."""
    code = ErrorCode.INVALID_CARD_TYPE


class QuestionAlreadyPendingError(HideSeekError):
    """Raised when a question is requested while another is outstanding."""
    code = ErrorCode.QUESTION_ALREADY_PENDING


class NoQuestionsInCategoryError(HideSeekError):
    """Raised when the question bank has nothing for a category."""
    code = ErrorCode.NO_QUESTIONS_IN_CATEGORY


class NoPendingQuestionError(HideSeekError):
    """Raised when answering or expiring with no question outstanding."""
    code = ErrorCode.NO_PENDING_QUESTION


class PhotoRequiredError(HideSeekError):
    """Raised when a photo question is marked correct without a photo."""
    code = ErrorCode.PHOTO_REQUIRED


class RoleConflictError(HideSeekError):
    """Raised when the hider slot was requested but is already held."""
    code = ErrorCode.ROLE_CONFLICT


class InvalidRoleError(HideSeekError):
    """Raised for an unknown role or an identity that has not joined."""
    code = ErrorCode.INVALID_ROLE


class GameEndedError(HideSeekError):
    """Raised when mutating a game that has ended."""
    code = ErrorCode.GAME_ENDED


class StoreConflictError(HideSeekError):
    """Raised by a store when a patch was computed against a stale version."""
    code = ErrorCode.STORE_CONFLICT

    def __init__(self, message: str, expected_version: int | None = None,
                 actual_version: int | None = None):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(message)


class NotFoundError(HideSeekError):
    """Raised when a game id or join code does not resolve."""
    code = ErrorCode.NOT_FOUND


class CollaboratorUnavailableError(HideSeekError):
    """Raised when a store, upload sink or other collaborator fails."""
    code = ErrorCode.COLLABORATOR_UNAVAILABLE
