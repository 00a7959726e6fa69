"""
Room Store - The shared snapshot slot each room syncs through.

The engine only needs three things from a transport:
- get_snapshot(room_id) -> GameState | None
- publish_snapshot(room_id, state) -> bool
- subscribe_to_room(room_id, on_change) -> unsubscribe

plus a best-effort presence signal that no rule depends on. Whether
updates arrive by push, by poll or both is the transport's business.

InMemoryRoomStore is the reference implementation used by the CLI,
the HTTP API and the tests. It keeps serialized documents, so every
reader gets its own decoded copy and whole-snapshot replace semantics
hold exactly as they would against a remote database row.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable

from ..engine_core.serialization import snapshot_from_dict, snapshot_to_dict
from ..engine_core.state import GameState

logger = logging.getLogger(__name__)

RoomListener = Callable[[GameState], None]
Unsubscribe = Callable[[], None]


@dataclass
class Presence:
    """Last presence report of one player in one room."""
    player_id: str
    connected: bool
    last_seen: float


class RoomStore(ABC):
    """Transport interface. Implementations raise TransportError on I/O failure."""

    @abstractmethod
    async def get_snapshot(self, room_id: str) -> GameState | None:
        """Latest snapshot for the room, or None if nothing was published."""

    @abstractmethod
    async def publish_snapshot(self, room_id: str, state: GameState) -> bool:
        """Replace the room's snapshot. Returns False if the room is closed."""

    @abstractmethod
    def subscribe_to_room(self, room_id: str, on_change: RoomListener) -> Unsubscribe:
        """Call `on_change` with every snapshot published to the room."""

    async def set_presence(self, room_id: str, player_id: str, connected: bool) -> None:
        """Report a client as connected or gone. Best effort, default no-op."""

    async def get_presence(self, room_id: str) -> dict[str, Presence]:
        return {}

    async def is_connected(self, room_id: str, player_id: str) -> bool:
        presence = (await self.get_presence(room_id)).get(player_id)
        return presence is not None and presence.connected

    async def delete_room(self, room_id: str) -> bool:
        """Archive or discard the room. Stores that keep rooms return False."""
        return False


@dataclass
class _Room:
    document: dict[str, Any] | None = None
    version: int = 0
    listeners: list[RoomListener] = field(default_factory=list)
    presence: dict[str, Presence] = field(default_factory=dict)
    closed: bool = False


class InMemoryRoomStore(RoomStore):
    """
    Process-local room store.

    Rooms are created on first publish. A deleted room rejects further
    publishes so late writers cannot resurrect it.
    """

    def __init__(self):
        self._rooms: dict[str, _Room] = {}

    def _room(self, room_id: str) -> _Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = _Room()
            self._rooms[room_id] = room
        return room

    async def get_snapshot(self, room_id: str) -> GameState | None:
        room = self._rooms.get(room_id)
        if room is None or room.document is None:
            return None
        return snapshot_from_dict(room.document)

    async def get_document(self, room_id: str) -> dict[str, Any] | None:
        """Raw stored document, as a remote client would download it."""
        room = self._rooms.get(room_id)
        return room.document if room else None

    async def publish_snapshot(self, room_id: str, state: GameState) -> bool:
        room = self._room(room_id)
        if room.closed:
            logger.info("Publish to closed room %s ignored", room_id)
            return False
        room.document = snapshot_to_dict(state)
        room.version += 1
        logger.debug("Room %s at version %d (sequence %d)", room_id, room.version, state.sequence)
        self._notify(room_id, room)
        return True

    def _notify(self, room_id: str, room: _Room) -> None:
        for listener in list(room.listeners):
            try:
                listener(snapshot_from_dict(room.document))
            except Exception:
                logger.exception("Room %s listener failed", room_id)

    def subscribe_to_room(self, room_id: str, on_change: RoomListener) -> Unsubscribe:
        room = self._room(room_id)
        room.listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in room.listeners:
                room.listeners.remove(on_change)

        return unsubscribe

    async def set_presence(self, room_id: str, player_id: str, connected: bool) -> None:
        room = self._room(room_id)
        room.presence[player_id] = Presence(player_id, connected, time.time())

    async def get_presence(self, room_id: str) -> dict[str, Presence]:
        room = self._rooms.get(room_id)
        return dict(room.presence) if room else {}

    async def delete_room(self, room_id: str) -> bool:
        room = self._rooms.get(room_id)
        if room is None or room.closed:
            return False
        room.closed = True
        room.document = None
        room.listeners.clear()
        return True

    def version(self, room_id: str) -> int:
        room = self._rooms.get(room_id)
        return room.version if room else 0
