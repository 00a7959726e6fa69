"""
API Module - Room host interface.

Exposes the engine via REST API for game clients.
A client:
1. Creates a room from two players and their decks
2. Sends actions, or publishes whole snapshots it resolved locally
3. Fetches or subscribes to the latest room snapshot
4. Reports presence

All rooms are held in memory by the host process.
"""

from .schemas import (
    # Requests
    ActionRequest,
    CreateRoomRequest,
    PresenceRequest,
    PublishSnapshotRequest,
    # Responses
    ActionResponse,
    EndRoomResponse,
    ErrorResponse,
    HealthResponse,
    LegalActionsResponse,
    PresenceResponse,
    PublishSnapshotResponse,
    RoomListResponse,
    RoomResponse,
    SnapshotResponse,
    # Shared
    LegalAction,
    PlayerSummary,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "CreateRoomRequest",
    "PresenceRequest",
    "PublishSnapshotRequest",
    # Responses
    "ActionResponse",
    "EndRoomResponse",
    "ErrorResponse",
    "HealthResponse",
    "LegalActionsResponse",
    "PresenceResponse",
    "PublishSnapshotResponse",
    "RoomListResponse",
    "RoomResponse",
    "SnapshotResponse",
    # Shared
    "LegalAction",
    "PlayerSummary",
    # Service
    "APIService",
    "create_app",
]
