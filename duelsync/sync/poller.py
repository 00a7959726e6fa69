"""
Room Poller - Periodic fetch of the room snapshot.

Push notifications can be missed (dropped socket, backgrounded client),
so each client also polls. The poller is a cancellable asyncio task
with explicit start/stop, owned by the room session rather than by
whoever happens to display the game.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable

from ..engine_core.state import GameState
from ..errors import DuelSyncError
from .store import RoomStore

logger = logging.getLogger(__name__)


class RoomPoller:
    """Fetches the latest snapshot every `interval` seconds."""

    def __init__(
        self,
        store: RoomStore,
        room_id: str,
        on_snapshot: Callable[[GameState | None], None],
        interval: float = 2.0,
    ):
        self.store = store
        self.room_id = room_id
        self.on_snapshot = on_snapshot
        self.interval = interval
        self.polls = 0
        self.failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_loop())

    async def stop(self) -> None:
        """Cancel the poll task and wait for it to exit."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def poll_once(self) -> GameState | None:
        """
        Fetch and deliver one snapshot.

        Fetch failures are logged and counted; the next poll retries.
        """
        self.polls += 1
        try:
            snapshot = await self.store.get_snapshot(self.room_id)
        except DuelSyncError as e:
            self.failures += 1
            logger.warning("Poll of room %s failed: %s", self.room_id, e)
            return None
        self.on_snapshot(snapshot)
        return snapshot

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.poll_once()
