"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between game clients and the room
host. Snapshots travel as the same JSON document the room store keeps
(see engine_core.serialization); everything else is a summary.

Error Codes (see duelsync.errors.ErrorCode):
- ROOM_NOT_FOUND: No live room with this id
- ROOM_EXISTS: Room id already taken
- LOAD_FAILED: A deck or player could not be loaded
- SNAPSHOT_INVALID: Uploaded snapshot does not decode
- WRONG_TURN, INSUFFICIENT_MANA, BOARD_FULL, ...: action rejected by the rules
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from ..engine_core.action import Action, ActionPayload, ActionType
from ..errors import ErrorCode


# =============================================================================
# Enums
# =============================================================================

class ActionTypeName(str, Enum):
    """Action types accepted by the actions endpoint."""
    PLAY_CARD = "play_card"
    ATTACK = "attack"
    END_TURN = "end_turn"
    COMPLETE_MULLIGAN = "complete_mulligan"
    EFFECT_TRIGGER = "effect_trigger"
    CONCEDE = "concede"
    TIMEOUT = "timeout"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerSummary(BaseModel):
    """Public view of one player."""
    player_id: str
    name: str
    avatar_url: Optional[str] = None
    health: int
    mana: int
    max_mana: int
    hand_size: int
    deck_size: int
    board_size: int
    mulligan_complete: bool
    is_active: bool = False


class RoomResponse(BaseModel):
    """Room summary."""
    room_id: str
    phase: str = Field(description="mulligan, playing or ended")
    current_turn: int
    active_player_id: str
    winner_id: Optional[str] = None
    is_draw: bool = False
    sequence: int
    players: list[PlayerSummary] = Field(default_factory=list)


class LegalAction(BaseModel):
    action_type: ActionTypeName
    player_id: str
    card_id: Optional[str] = None
    attacker_id: Optional[str] = None
    source_unit_id: Optional[str] = None
    trigger: Optional[str] = None
    target_id: Optional[str] = None


# =============================================================================
# Requests
# =============================================================================

class CreateRoomRequest(BaseModel):
    """Create a room from two players and their decks."""
    player1_id: str
    deck1_id: str
    player2_id: str
    deck2_id: str
    room_id: Optional[str] = None
    random_seed: Optional[int] = None
    first_player_id: Optional[str] = None
    auto_mulligan: bool = Field(default=False, description="Skip the mulligan phase")


class ActionRequest(BaseModel):
    """An action as sent by a client. Field use depends on action_type."""
    action_type: ActionTypeName
    player_id: str
    card_id: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=0)
    target_id: Optional[str] = None
    attacker_id: Optional[str] = None
    cards_to_replace: list[str] = Field(default_factory=list)
    source_unit_id: Optional[str] = None
    trigger: Optional[str] = None
    timestamp: Optional[float] = None

    def to_action(self) -> Action:
        return Action(
            action_type=ActionType(self.action_type.value),
            payload=ActionPayload(
                player_id=self.player_id,
                card_id=self.card_id,
                position=self.position,
                target_id=self.target_id,
                attacker_id=self.attacker_id,
                cards_to_replace=list(self.cards_to_replace),
                source_unit_id=self.source_unit_id,
                trigger=self.trigger,
            ),
            timestamp=self.timestamp,
        )


class PublishSnapshotRequest(BaseModel):
    """A client publishing its full snapshot document."""
    snapshot: dict[str, Any]


class PresenceRequest(BaseModel):
    player_id: str
    connected: bool = True


# =============================================================================
# Responses
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: Union[ErrorCode, str]
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str


class RoomListResponse(BaseModel):
    rooms: list[RoomResponse] = Field(default_factory=list)
    total: int = 0


class SnapshotResponse(BaseModel):
    room_id: str
    sequence: int
    snapshot: dict[str, Any]


class PublishSnapshotResponse(BaseModel):
    room_id: str
    accepted: bool
    sequence: int
    reasons: list[str] = Field(default_factory=list)


class ActionResponse(BaseModel):
    success: bool
    room: RoomResponse
    changes: list[str] = Field(default_factory=list)
    effects_resolved: list[str] = Field(default_factory=list)


class LegalActionsResponse(BaseModel):
    room_id: str
    player_id: str
    actions: list[LegalAction] = Field(default_factory=list)


class PresenceResponse(BaseModel):
    room_id: str
    players: dict[str, bool] = Field(default_factory=dict)


class EndRoomResponse(BaseModel):
    room_id: str
    ended: bool
