"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Creates rooms through the SessionManager (host sessions)
2. Applies client actions to the host's GameInstance
3. Reconciles snapshots published by clients and stores the applied ones
4. Reports presence and legal actions

This layer is framework-agnostic. Failures are raised as DuelSyncError
subclasses and mapped to HTTP responses by the app.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Any

from ..config import EngineConfig, load_config
from ..engine_core.action_generator import legal_actions
from ..engine_core.serialization import snapshot_from_dict, snapshot_to_dict
from ..engine_core.state import GameState
from ..errors import ErrorCode, RoomNotFoundError, SnapshotFormatError
from ..games.starter import starter_loader
from ..loader import DeckLoader
from ..session import RoomSession, SessionManager
from ..sync.store import InMemoryRoomStore, RoomStore
from .schemas import (
    ActionRequest,
    ActionResponse,
    CreateRoomRequest,
    EndRoomResponse,
    LegalAction,
    LegalActionsResponse,
    PlayerSummary,
    PresenceRequest,
    PresenceResponse,
    PublishSnapshotResponse,
    RoomListResponse,
    RoomResponse,
    SnapshotResponse,
)

logger = logging.getLogger(__name__)


def room_summary(room_id: str, state: GameState) -> RoomResponse:
    """Convert a snapshot into the public room summary."""
    return RoomResponse(
        room_id=room_id,
        phase=state.phase.value,
        current_turn=state.current_turn,
        active_player_id=state.active_player_id,
        winner_id=state.winner_id,
        is_draw=state.is_draw,
        sequence=state.sequence,
        players=[
            PlayerSummary(
                player_id=p.player_id,
                name=p.name,
                avatar_url=p.avatar_url,
                health=p.health,
                mana=p.mana,
                max_mana=p.max_mana,
                hand_size=len(p.hand),
                deck_size=len(p.deck),
                board_size=len(p.board),
                mulligan_complete=p.mulligan_complete,
                is_active=p.player_id == state.active_player_id,
            )
            for p in state.players
        ],
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        room = await service.create_room(CreateRoomRequest(...))
        await service.submit_action(room.room_id, ActionRequest(...))
    """
    loader: DeckLoader = field(default_factory=starter_loader)
    store: RoomStore = field(default_factory=InMemoryRoomStore)
    config: EngineConfig = field(default_factory=load_config)
    session_manager: SessionManager | None = None

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(self.loader, self.store, self.config)

    def _host(self, room_id: str) -> RoomSession:
        session = self.session_manager.get_session(room_id)
        if session is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        return session

    async def create_room(self, request: CreateRoomRequest) -> RoomResponse:
        session = await self.session_manager.create_room(
            player1_id=request.player1_id,
            deck1_id=request.deck1_id,
            player2_id=request.player2_id,
            deck2_id=request.deck2_id,
            room_id=request.room_id,
            random_seed=request.random_seed,
            first_player_id=request.first_player_id,
            auto_mulligan=request.auto_mulligan,
        )
        return room_summary(session.room_id, session.instance.get_state())

    def get_room(self, room_id: str) -> RoomResponse:
        return room_summary(room_id, self._host(room_id).instance.get_state())

    def list_rooms(self) -> RoomListResponse:
        rooms = [self.get_room(room_id) for room_id in self.session_manager.list_rooms()
                 if self.session_manager.get_session(room_id) is not None]
        return RoomListResponse(rooms=rooms, total=len(rooms))

    async def get_snapshot(self, room_id: str) -> SnapshotResponse:
        session = self._host(room_id)
        await session.sync.sync_now()
        state = session.instance.get_state()
        return SnapshotResponse(room_id=room_id, sequence=state.sequence, snapshot=snapshot_to_dict(state))

    async def put_snapshot(self, room_id: str, document: dict[str, Any]) -> PublishSnapshotResponse:
        """
        Offer a client-computed snapshot to the room host.

        The host reconciles it first. Only an applied snapshot is written
        to the store; a refused one (stale, other game, behind the host's
        own moves) leaves the room slot untouched.
        """
        session = self._host(room_id)
        state = snapshot_from_dict(document)
        if state.game_id != room_id:
            raise SnapshotFormatError(
                f"Snapshot belongs to game {state.game_id}, not room {room_id}",
                errors=[{"loc": ["game_id"], "msg": "does not match room", "type": ErrorCode.SNAPSHOT_INVALID.value}],
            )
        result = session.sync.reconciler.receive(state)
        current = session.instance.get_state()
        if result.apply:
            # Remote applies are never echoed by RoomSync, so the host persists here
            accepted = await self.store.publish_snapshot(room_id, current)
        else:
            accepted = not result.reasons
            logger.info("Room %s: client snapshot not applied: %s", room_id, result.summary)
        return PublishSnapshotResponse(
            room_id=room_id,
            accepted=accepted,
            sequence=current.sequence,
            reasons=[r.value for r in result.reasons],
        )

    async def submit_action(self, room_id: str, request: ActionRequest) -> ActionResponse:
        """
        Apply an action on the host instance and wait for it to be published.

        Raises:
            ActionRejectedError: the rules rejected the action
        """
        session = self._host(room_id)
        state = session.instance.dispatch(request.to_action())
        await session.sync.flush()
        result = session.instance.last_result
        return ActionResponse(
            success=True,
            room=room_summary(room_id, state),
            changes=result.state_changes if result else [],
            effects_resolved=result.effects_resolved if result else [],
        )

    def get_legal_actions(self, room_id: str, player_id: str) -> LegalActionsResponse:
        state = self._host(room_id).instance.get_state()
        actions = [
            LegalAction(
                action_type=a.action_type.value,
                player_id=player_id,
                card_id=a.payload.card_id,
                attacker_id=a.payload.attacker_id,
                source_unit_id=a.payload.source_unit_id,
                trigger=a.payload.trigger,
                target_id=a.payload.target_id,
            )
            for a in legal_actions(state, player_id, self.config.rules)
        ]
        return LegalActionsResponse(room_id=room_id, player_id=player_id, actions=actions)

    async def set_presence(self, room_id: str, request: PresenceRequest) -> PresenceResponse:
        self._host(room_id)
        await self.store.set_presence(room_id, request.player_id, request.connected)
        return await self.get_presence(room_id)

    async def get_presence(self, room_id: str) -> PresenceResponse:
        self._host(room_id)
        presence = await self.store.get_presence(room_id)
        return PresenceResponse(
            room_id=room_id,
            players={player_id: p.connected for player_id, p in presence.items()},
        )

    async def end_room(self, room_id: str) -> EndRoomResponse:
        ended = await self.session_manager.end_room(room_id)
        if not ended:
            raise RoomNotFoundError(f"Room {room_id} not found")
        return EndRoomResponse(room_id=room_id, ended=True)
