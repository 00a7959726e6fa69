"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /health                                        Health check
    POST   /api/v1/rooms                                  Create a room
    GET    /api/v1/rooms                                  List live rooms
    GET    /api/v1/rooms/{id}                             Room summary
    GET    /api/v1/rooms/{id}/snapshot                    Latest snapshot document
    PUT    /api/v1/rooms/{id}/snapshot                    Publish a client snapshot
    POST   /api/v1/rooms/{id}/actions                     Apply an action on the host
    GET    /api/v1/rooms/{id}/legal-actions/{player_id}   Legal actions for a player
    POST   /api/v1/rooms/{id}/presence                    Report presence
    GET    /api/v1/rooms/{id}/presence                    Presence of both players
    DELETE /api/v1/rooms/{id}                             End the room
    WS     /api/v1/rooms/{id}/ws                          Push channel for snapshots

Clients may either send actions to the host or run their own engine and
PUT whole snapshots; the host reconciles both paths the same way.
"""

import asyncio
from contextlib import asynccontextmanager
import json
import os
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..engine_core.serialization import snapshot_to_dict
from ..errors import (
    ActionRejectedError,
    ErrorCode,
    LoadError,
    RoomExistsError,
    RoomNotFoundError,
    SnapshotFormatError,
)
from .schemas import (
    ActionRequest,
    ActionResponse,
    CreateRoomRequest,
    EndRoomResponse,
    ErrorResponse,
    HealthResponse,
    LegalActionsResponse,
    PresenceRequest,
    PresenceResponse,
    PublishSnapshotRequest,
    PublishSnapshotResponse,
    RoomListResponse,
    RoomResponse,
    SnapshotResponse,
)
from .service import APIService

# Environment configuration
DUELSYNC_ENV = os.getenv("DUELSYNC_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    api_service = service or APIService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await api_service.session_manager.shutdown()

    app = FastAPI(
        title="DuelSync API",
        description="""
Room host for two-player card duels.

## Sync model

Each client runs its own engine and keeps the room snapshot in sync:
send actions to `POST /actions`, or publish whole snapshots with
`PUT /snapshot`. Remote snapshots are reconciled, never merged field by
field. Subscribe to `WS /ws` for pushes; poll `GET /snapshot` otherwise.

## Error Codes

| Code | Description |
|------|-------------|
| `ROOM_NOT_FOUND` | No live room with this id |
| `ROOM_EXISTS` | Room id already taken |
| `LOAD_FAILED` | Deck or player could not be loaded |
| `SNAPSHOT_INVALID` | Snapshot document does not decode |
| `WRONG_TURN`, `INSUFFICIENT_MANA`, ... | Action rejected by the rules |
        """,
        version=__version__,
        docs_url=None if DUELSYNC_ENV == "production" else "/api/docs",
        redoc_url=None if DUELSYNC_ENV == "production" else "/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(RoomNotFoundError)
    async def room_not_found(request, exc: RoomNotFoundError):
        return make_error_response(ErrorCode.ROOM_NOT_FOUND, str(exc), 404)

    @app.exception_handler(RoomExistsError)
    async def room_exists(request, exc: RoomExistsError):
        return make_error_response(ErrorCode.ROOM_EXISTS, str(exc), 409)

    @app.exception_handler(LoadError)
    async def load_failed(request, exc: LoadError):
        return make_error_response(
            ErrorCode.LOAD_FAILED, exc.message, 422,
            details={"error_type": type(exc).__name__, **exc.details},
        )

    @app.exception_handler(SnapshotFormatError)
    async def snapshot_invalid(request, exc: SnapshotFormatError):
        return make_error_response(ErrorCode.SNAPSHOT_INVALID, str(exc), 422, details={"errors": exc.errors})

    @app.exception_handler(ActionRejectedError)
    async def action_rejected(request, exc: ActionRejectedError):
        return make_error_response(exc.error_code or ErrorCode.MALFORMED_ACTION, exc.message, 409)

    # =========================================================================
    # Rooms
    # =========================================================================

    @app.post(
        "/api/v1/rooms",
        response_model=RoomResponse,
        status_code=201,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Create a room",
    )
    async def create_room(request: CreateRoomRequest) -> RoomResponse:
        """
        Load both decks and players, build the initial snapshot and
        publish it. The room starts in the mulligan phase unless
        `auto_mulligan` is set.
        """
        return await api_service.create_room(request)

    @app.get("/api/v1/rooms", response_model=RoomListResponse, tags=["Rooms"], summary="List live rooms")
    async def list_rooms() -> RoomListResponse:
        return api_service.list_rooms()

    @app.get(
        "/api/v1/rooms/{room_id}",
        response_model=RoomResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="Room summary",
    )
    async def get_room(room_id: str) -> RoomResponse:
        return api_service.get_room(room_id)

    @app.delete(
        "/api/v1/rooms/{room_id}",
        response_model=EndRoomResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Rooms"],
        summary="End a room",
    )
    async def end_room(room_id: str) -> EndRoomResponse:
        """Stop every session of the room and discard its snapshot."""
        return await api_service.end_room(room_id)

    # =========================================================================
    # Snapshots and actions
    # =========================================================================

    @app.get(
        "/api/v1/rooms/{room_id}/snapshot",
        response_model=SnapshotResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sync"],
        summary="Latest snapshot",
    )
    async def get_snapshot(room_id: str) -> SnapshotResponse:
        return await api_service.get_snapshot(room_id)

    @app.put(
        "/api/v1/rooms/{room_id}/snapshot",
        response_model=PublishSnapshotResponse,
        responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Sync"],
        summary="Publish a snapshot",
    )
    async def put_snapshot(room_id: str, request: PublishSnapshotRequest) -> PublishSnapshotResponse:
        """Whole-snapshot replace. The host reconciles it on arrival."""
        return await api_service.put_snapshot(room_id, request.snapshot)

    @app.post(
        "/api/v1/rooms/{room_id}/actions",
        response_model=ActionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Sync"],
        summary="Apply an action",
    )
    async def submit_action(room_id: str, request: ActionRequest) -> ActionResponse:
        """Rejected actions return 409 with the rule's error code; state is unchanged."""
        return await api_service.submit_action(room_id, request)

    @app.get(
        "/api/v1/rooms/{room_id}/legal-actions/{player_id}",
        response_model=LegalActionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sync"],
        summary="Legal actions for a player",
    )
    async def get_legal_actions(room_id: str, player_id: str) -> LegalActionsResponse:
        return api_service.get_legal_actions(room_id, player_id)

    # =========================================================================
    # Presence
    # =========================================================================

    @app.post(
        "/api/v1/rooms/{room_id}/presence",
        response_model=PresenceResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Presence"],
        summary="Report presence",
    )
    async def set_presence(room_id: str, request: PresenceRequest) -> PresenceResponse:
        """Best effort; no rule depends on presence."""
        return await api_service.set_presence(room_id, request)

    @app.get(
        "/api/v1/rooms/{room_id}/presence",
        response_model=PresenceResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Presence"],
        summary="Presence of both players",
    )
    async def get_presence(room_id: str) -> PresenceResponse:
        return await api_service.get_presence(room_id)

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/rooms/{room_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, room_id: str):
        """
        Push channel for room snapshots.

        Messages from server:
        - snapshot: a snapshot was published to the room
        - error: room unknown or invalid message

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()
        session = api_service.session_manager.get_session(room_id)
        if session is None:
            await websocket.send_json({"type": "error", "payload": {"error_code": ErrorCode.ROOM_NOT_FOUND.value}})
            await websocket.close()
            return

        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = api_service.store.subscribe_to_room(room_id, queue.put_nowait)
        await websocket.send_json({"type": "snapshot", "payload": snapshot_to_dict(session.instance.get_state())})

        async def pump():
            while True:
                state = await queue.get()
                await websocket.send_json({"type": "snapshot", "payload": snapshot_to_dict(state)})

        pump_task = asyncio.create_task(pump())
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({"type": "error", "payload": {"message": "Invalid JSON"}})
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            pass
        finally:
            unsubscribe()
            pump_task.cancel()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"], summary="Health check")
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(status="healthy", service="duelsync", version=__version__)

    return app


# For running directly: uvicorn duelsync.api.app:app
app = create_app()
