"""
Session Manager - Creates, joins and ends room sessions.

LIFECYCLE:
1. create_room: load both decks and players, build the initial
   snapshot, publish it to the store, keep a host session
2. join_room: a client resumes from the stored snapshot with its own
   GameInstance and RoomSync
3. During the duel: every session dispatches locally and syncs through
   the store
4. end_room: stop every session of the room and discard the snapshot

Load errors are fatal to room creation and propagate to the caller,
so no half-built room is ever published.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import time
import uuid

from ..config import EngineConfig
from ..engine_core.action import Action
from ..engine_core.reducer import Reducer
from ..engine_core.setup import create_game
from ..errors import PlayerNotFoundError, RoomExistsError, RoomNotFoundError
from ..loader import DeckLoader
from ..sync.store import RoomStore
from .game_instance import GameInstance
from .room_sync import RoomSync

logger = logging.getLogger(__name__)


class RoomStatus(Enum):
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class RoomSession:
    """
    One participant's live view of a room.

    `player_id` is None for the host session created with the room.
    """
    room_id: str
    instance: GameInstance
    sync: RoomSync
    player_id: str | None = None
    created_at: float = field(default_factory=time.time)
    status: RoomStatus = RoomStatus.ACTIVE

    def is_active(self) -> bool:
        return self.status == RoomStatus.ACTIVE and not self.instance.get_state().is_over


class SessionManager:
    """
    Manages room sessions.

    Responsibilities:
    - Create rooms from loaded decks
    - Attach clients to existing rooms
    - Track live sessions and tear them down
    """

    def __init__(self, loader: DeckLoader, store: RoomStore, config: EngineConfig | None = None):
        self.loader = loader
        self.store = store
        self.config = config or EngineConfig()
        self._sessions: dict[tuple[str, str | None], RoomSession] = {}

    def _reducer(self) -> Reducer:
        return Reducer(rules=self.config.rules)

    async def create_room(
        self,
        player1_id: str,
        deck1_id: str,
        player2_id: str,
        deck2_id: str,
        room_id: str | None = None,
        random_seed: int | None = None,
        first_player_id: str | None = None,
        auto_mulligan: bool = False,
    ) -> RoomSession:
        """
        Create a room and publish its initial snapshot.

        Args:
            auto_mulligan: keep both opening hands and start turn 1 right away

        Raises:
            LoadError: a deck or player could not be loaded
            RoomExistsError: the room id is already live
        """
        room_id = room_id or uuid.uuid4().hex
        if self.list_sessions(room_id) or await self.store.get_snapshot(room_id) is not None:
            raise RoomExistsError(f"Room {room_id} already exists")

        player1 = self.loader.load_player(player1_id).unwrap()
        player2 = self.loader.load_player(player2_id).unwrap()
        deck1 = self.loader.load_deck(deck1_id).unwrap()
        deck2 = self.loader.load_deck(deck2_id).unwrap()

        state = create_game(
            player1, deck1, player2, deck2,
            game_id=room_id,
            random_seed=random_seed,
            first_player_id=first_player_id,
            rules=self.config.rules,
        )
        instance = GameInstance(state, reducer=self._reducer())
        if auto_mulligan:
            instance.dispatch(Action.complete_mulligan(player1_id))
            instance.dispatch(Action.complete_mulligan(player2_id))

        await self.store.publish_snapshot(room_id, instance.get_state())
        session = self._attach(room_id, instance, player_id=None)
        logger.info("Created room %s: %s (%s) vs %s (%s)", room_id, player1_id, deck1_id, player2_id, deck2_id)
        return session

    async def join_room(self, room_id: str, player_id: str) -> RoomSession:
        """
        Attach a client to an existing room, resuming from the store.

        Joining twice returns the existing session.
        """
        existing = self._sessions.get((room_id, player_id))
        if existing is not None:
            return existing

        snapshot = await self.store.get_snapshot(room_id)
        if snapshot is None:
            raise RoomNotFoundError(f"Room {room_id} not found")
        if snapshot.get_player(player_id) is None:
            raise PlayerNotFoundError(
                f"Player {player_id} is not seated in room {room_id}",
                details={"room_id": room_id, "player_id": player_id},
            )
        instance = GameInstance(snapshot, reducer=self._reducer())
        return self._attach(room_id, instance, player_id=player_id)

    def _attach(self, room_id: str, instance: GameInstance, player_id: str | None) -> RoomSession:
        sync = RoomSync(room_id, instance, self.store, player_id=player_id, config=self.config.sync)
        sync.start()
        session = RoomSession(room_id=room_id, instance=instance, sync=sync, player_id=player_id)
        self._sessions[(room_id, player_id)] = session
        return session

    def get_session(self, room_id: str, player_id: str | None = None) -> RoomSession | None:
        """Get a session; player_id None is the host session."""
        return self._sessions.get((room_id, player_id))

    def list_sessions(self, room_id: str) -> list[RoomSession]:
        return [s for (rid, _), s in self._sessions.items() if rid == room_id]

    async def leave_room(self, room_id: str, player_id: str) -> bool:
        session = self._sessions.pop((room_id, player_id), None)
        if session is None:
            return False
        await session.sync.stop()
        session.status = RoomStatus.ENDED
        return True

    async def end_room(self, room_id: str) -> bool:
        """
        Stop every session of the room and discard its snapshot.

        Returns False if the room was unknown.
        """
        sessions = self.list_sessions(room_id)
        for session in sessions:
            self._sessions.pop((session.room_id, session.player_id), None)
            await session.sync.stop()
            session.status = RoomStatus.ENDED
        deleted = await self.store.delete_room(room_id)
        if sessions or deleted:
            logger.info("Ended room %s", room_id)
        return bool(sessions) or deleted

    def list_rooms(self) -> list[str]:
        """Ids of rooms with a live session, in creation order."""
        return list(dict.fromkeys(rid for rid, _ in self._sessions))

    async def shutdown(self) -> None:
        for room_id in self.list_rooms():
            await self.end_room(room_id)
