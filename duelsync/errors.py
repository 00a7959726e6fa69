"""
Errors - Exception taxonomy for the engine.

- Validation errors: an action was illegal. The resolver reports these
  as ActionResult failures; GameInstance.dispatch raises ActionRejectedError.
- Load-time errors: a deck or player could not be resolved. Fatal to
  game creation, propagated to the caller.
- Transport errors: a store call failed. The engine state is untouched.
- Snapshot format errors: a persisted document could not be decoded.

Resource exhaustion (drawing from an empty deck) is not an error; it is
resolved by the rules (fatigue).
"""

from __future__ import annotations
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Structured codes for rejected actions and API errors."""
    GAME_OVER = "GAME_OVER"
    PHASE_MISMATCH = "PHASE_MISMATCH"
    WRONG_TURN = "WRONG_TURN"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    MALFORMED_ACTION = "MALFORMED_ACTION"
    CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
    INSUFFICIENT_MANA = "INSUFFICIENT_MANA"
    BOARD_FULL = "BOARD_FULL"
    UNIT_CANNOT_ATTACK = "UNIT_CANNOT_ATTACK"
    INVALID_TARGET = "INVALID_TARGET"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"
    # Outer surface
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_EXISTS = "ROOM_EXISTS"
    LOAD_FAILED = "LOAD_FAILED"
    SNAPSHOT_INVALID = "SNAPSHOT_INVALID"


class DuelSyncError(Exception):
    """Base class for all engine errors."""


class ActionRejectedError(DuelSyncError):
    """Raised by GameInstance.dispatch when the resolver rejects an action."""

    def __init__(self, message: str, error_code: ErrorCode | str | None = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


# =============================================================================
# Load-time errors
# =============================================================================

class LoadError(DuelSyncError):
    """A deck or player record could not be loaded."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnknownDeckError(LoadError):
    pass


class EmptyDeckError(LoadError):
    """The deck resolved to zero playable cards."""


class PlayerNotFoundError(LoadError):
    pass


class InvalidCardRecordError(LoadError):
    """A raw card record failed validation at the loader boundary."""


# =============================================================================
# Sync errors
# =============================================================================

class TransportError(DuelSyncError):
    """A room store call failed. Safe to retry with the current state."""


class SnapshotFormatError(DuelSyncError):
    """A snapshot document does not decode to a GameState."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)


# =============================================================================
# Room errors
# =============================================================================

class RoomNotFoundError(DuelSyncError):
    """No live session or stored snapshot for the room."""


class RoomExistsError(DuelSyncError):
    """A room with this id is already live."""
