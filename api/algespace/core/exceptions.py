"""
Custom exceptions for the application.
"""
from enum import Enum


class AlgeSpaceException(Exception):
    """Base exception for all AlgeSpace application exceptions."""
    pass


class ValidationError(AlgeSpaceException):
    """Raised when validation fails."""
    pass


class NotFoundError(AlgeSpaceException):
    """Raised when a requested resource is not found."""
    pass


class ConflictError(AlgeSpaceException):
    """Raised when there's a conflict (e.g., duplicate entry)."""
    pass


class AuthenticationError(AlgeSpaceException):
    """Raised when authentication fails."""
    pass


class AuthorizationError(AlgeSpaceException):
    """Raised when authorization fails."""
    pass


class ExerciseError(AlgeSpaceException):
    """Raised when exercise data references something that does not exist or is inconsistent."""
    pass


class TrackingError(AlgeSpaceException):
    """Raised when a tracking request to the study backend fails."""
    pass


class GameErrorType(str, Enum):
    """Kinds of unrecoverable errors raised while driving an exercise."""
    AUTH_ERROR = "auth-error"
    STUDY_ID_ERROR = "study-id-error"
    EXERCISE_ID_ERROR = "exercise-id-error"
    GAME_LOGIC_ERROR = "game-logic-error"
    EXERCISE_ERROR = "exercise-error"


class GameError(AlgeSpaceException):
    """
    Raised when an exercise cannot continue.

    A GAME_LOGIC_ERROR means a phase was entered without the results of the
    phases before it; callers should abandon the attempt and return.
    """

    def __init__(self, error_type: GameErrorType, message: str = ""):
        self.error_type = error_type
        super().__init__(message or error_type.value)
