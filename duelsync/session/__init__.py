"""
Session Module - Live views of a room.

A session represents one participant's view of a duel:
- GameInstance holds the snapshot and validates local moves
- RoomSync publishes local snapshots and reconciles remote ones
- SessionManager creates rooms from loaded decks and attaches clients
"""

from .game_instance import GameInstance, SyncState
from .room_sync import RoomSync
from .manager import RoomSession, RoomStatus, SessionManager

__all__ = [
    "GameInstance",
    "SyncState",
    "RoomSync",
    "RoomSession",
    "RoomStatus",
    "SessionManager",
]
