"""
Room Sync - Connects one GameInstance to a shared room store.

Per client, RoomSync wires:
- a persistence subscriber on the instance, separate from any render
  subscriber, that publishes each accepted local snapshot
- a push subscription and a poller on the room, both feeding remote
  snapshots through the reconciler
- presence reporting on start/stop

Local dispatch never waits on the store: publishing is a fire-and-forget
task. A failed publish leaves the instance untouched; the error is kept
in last_publish_error and republish() sends the current snapshot again.
"""

from __future__ import annotations
import asyncio
import logging

from ..config import SyncConfig
from ..engine_core.state import GameState
from ..errors import TransportError
from ..sync.poller import RoomPoller
from ..sync.reconciler import ReconciliationResult, SnapshotReconciler
from ..sync.store import RoomStore
from .game_instance import GameInstance

logger = logging.getLogger(__name__)


class RoomSync:
    """
    Synchronizes one client's GameInstance with a room.

    Usage:
        sync = RoomSync(room_id, instance, store, player_id="alice")
        sync.start()          # inside a running event loop
        instance.end_turn("alice")
        await sync.flush()    # optional, wait for in-flight publishes
        await sync.stop()
    """

    def __init__(
        self,
        room_id: str,
        instance: GameInstance,
        store: RoomStore,
        player_id: str | None = None,
        config: SyncConfig | None = None,
    ):
        self.room_id = room_id
        self.instance = instance
        self.store = store
        self.player_id = player_id
        self.config = config or SyncConfig()
        self.reconciler = SnapshotReconciler(instance)
        self.poller = RoomPoller(store, room_id, self._on_remote, self.config.poll_interval)

        self.published = 0
        self.skipped_publishes = 0
        self.last_publish_error: Exception | None = None

        self._pending: set[asyncio.Task] = set()
        self._unsubscribe_instance = None
        self._unsubscribe_room = None

    @property
    def running(self) -> bool:
        return self._unsubscribe_instance is not None

    def start(self) -> None:
        """Subscribe to both sides and start polling. Needs a running loop."""
        if self.running:
            return
        self._unsubscribe_instance = self.instance.subscribe(self._on_local_change)
        self._unsubscribe_room = self.store.subscribe_to_room(self.room_id, self._on_remote)
        self.poller.start()
        if self.player_id:
            self._spawn(self.store.set_presence(self.room_id, self.player_id, True))
        logger.info("Room %s: sync started for %s", self.room_id, self.player_id)

    async def stop(self) -> None:
        """Unsubscribe, cancel polling and let in-flight publishes finish."""
        if self._unsubscribe_instance:
            self._unsubscribe_instance()
            self._unsubscribe_instance = None
        if self._unsubscribe_room:
            self._unsubscribe_room()
            self._unsubscribe_room = None
        await self.poller.stop()
        await self.flush()
        if self.player_id:
            await self.store.set_presence(self.room_id, self.player_id, False)
        logger.info("Room %s: sync stopped for %s", self.room_id, self.player_id)

    async def flush(self) -> None:
        """Wait for every outstanding publish task."""
        while self._pending:
            tasks = list(self._pending)
            await asyncio.gather(*tasks, return_exceptions=True)
            self._pending.difference_update(tasks)

    # =========================================================================
    # Outbound
    # =========================================================================

    def _on_local_change(self, state: GameState) -> None:
        if not self.instance.should_publish():
            self.skipped_publishes += 1
            return
        self.instance.begin_publish()
        self._spawn(self._publish(state))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _publish(self, state: GameState) -> bool:
        try:
            ok = await asyncio.wait_for(
                self.store.publish_snapshot(self.room_id, state),
                timeout=self.config.publish_timeout,
            )
            if not ok:
                raise TransportError(f"Room {self.room_id} refused the snapshot")
        except (TransportError, asyncio.TimeoutError) as e:
            self.last_publish_error = e
            logger.warning("Room %s: publish of sequence %d failed: %s", self.room_id, state.sequence, e)
            return False
        except Exception as e:
            self.last_publish_error = e
            logger.exception("Room %s: publish of sequence %d failed", self.room_id, state.sequence)
            return False
        finally:
            self.instance.end_publish()
        self.published += 1
        self.last_publish_error = None
        return True

    async def republish(self) -> bool:
        """Publish the current snapshot again, e.g. after a failed publish."""
        self.instance.begin_publish()
        return await self._publish(self.instance.get_state())

    # =========================================================================
    # Inbound
    # =========================================================================

    def _on_remote(self, snapshot: GameState | None) -> ReconciliationResult:
        return self.reconciler.receive(snapshot)

    async def sync_now(self) -> ReconciliationResult:
        """Fetch and reconcile immediately instead of waiting for the poller."""
        snapshot = await self.store.get_snapshot(self.room_id)
        return self._on_remote(snapshot)
