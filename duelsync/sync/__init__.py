"""
Sync - Keeps two clients' snapshots of a room consistent.

Components:
- reconciler: decides whether a remote snapshot replaces local state
- store: the room store interface and an in-memory implementation
- poller: periodic fetch as a cancellable task
"""

from .reconciler import (
    ChangeReason,
    ReconciliationResult,
    SnapshotReconciler,
    detect_changes,
    reconcile,
)
from .store import InMemoryRoomStore, Presence, RoomStore
from .poller import RoomPoller

__all__ = [
    "ChangeReason",
    "ReconciliationResult",
    "SnapshotReconciler",
    "detect_changes",
    "reconcile",
    "InMemoryRoomStore",
    "Presence",
    "RoomStore",
    "RoomPoller",
]
