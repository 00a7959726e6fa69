"""
Game Instance - Stateful holder of one client's view of a duel.

The instance owns the current snapshot and mediates every change to it:
- dispatch(action): local moves, validated by the reducer
- set_state(snapshot): externally sourced snapshots
- apply_remote(snapshot): set_state on behalf of the reconciler

Subscribers receive the complete new snapshot after every accepted
change. Rendering and persistence subscribe independently, so a failing
subscriber never blocks the others.

Sync state machine:

    IDLE --begin_publish--> PUBLISHING_LOCAL --end_publish--> IDLE
    any  --apply_remote-->  APPLYING_REMOTE  --(done)-->      previous

While APPLYING_REMOTE, should_publish() is False so a remote snapshot
is never echoed back to the store as a local change. The state returns
synchronously when apply_remote finishes.
"""

from __future__ import annotations
from enum import Enum
import logging
from typing import Callable

from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameState
from ..errors import ActionRejectedError

logger = logging.getLogger(__name__)

Subscriber = Callable[[GameState], None]


class SyncState(Enum):
    IDLE = "idle"
    APPLYING_REMOTE = "applying_remote"
    PUBLISHING_LOCAL = "publishing_local"


class GameInstance:
    """
    Holds the current GameState for one client.

    Usage:
        instance = GameInstance(create_game(...))
        unsubscribe = instance.subscribe(render)
        instance.complete_mulligan("alice", [])
        instance.play_card("alice", card_id)
    """

    def __init__(self, initial_state: GameState, reducer: Reducer | None = None):
        self._state = initial_state.clone()
        self._reducer = reducer or Reducer()
        self._subscribers: list[Subscriber] = []
        self._history: list[Action] = []
        self._sync_state = SyncState.IDLE
        self._pending_publishes = 0
        self.last_result: ActionResult | None = None

    @property
    def game_id(self) -> str:
        return self._state.game_id

    @property
    def reducer(self) -> Reducer:
        return self._reducer

    @property
    def history(self) -> list[Action]:
        """Actions dispatched locally, oldest first."""
        return list(self._history)

    # =========================================================================
    # State access
    # =========================================================================

    def get_state(self) -> GameState:
        """Current snapshot. Treat as read-only; changes go through dispatch."""
        return self._state

    def dispatch(self, action: Action) -> GameState:
        """
        Apply a local action and notify subscribers.

        Raises:
            ActionRejectedError: the action is invalid; state is unchanged
        """
        result = self._reducer.apply(self._state, action)
        self.last_result = result
        if not result.success:
            logger.info(
                "Rejected %s from %s: %s",
                action.action_type.value, action.player_id, result.error,
            )
            raise ActionRejectedError(result.error or "Action rejected", result.error_code)

        if result.new_state is not self._state:
            self._state = result.new_state
            self._history.append(action)
        # Repeat mulligans are no-ops but still count as a successful dispatch
        self._notify()
        return self._state

    def set_state(self, remote_state: GameState, notify: bool = False) -> None:
        """Replace the snapshot with an externally sourced one."""
        self._state = remote_state.clone()
        if notify:
            self._notify()

    # =========================================================================
    # Subscribers
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        state = self._state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception:
                logger.exception("Subscriber %r failed", callback)

    # =========================================================================
    # Sync state machine
    # =========================================================================

    @property
    def sync_state(self) -> SyncState:
        return self._sync_state

    @property
    def has_unacknowledged_local(self) -> bool:
        """A local snapshot is on its way to the store."""
        return self._pending_publishes > 0

    def should_publish(self) -> bool:
        return self._sync_state != SyncState.APPLYING_REMOTE

    def apply_remote(self, snapshot: GameState) -> None:
        """Adopt a remote snapshot and notify, without triggering a publish."""
        previous = self._sync_state
        self._sync_state = SyncState.APPLYING_REMOTE
        try:
            self.set_state(snapshot, notify=True)
        finally:
            self._sync_state = previous

    def begin_publish(self) -> None:
        self._pending_publishes += 1
        if self._sync_state == SyncState.IDLE:
            self._sync_state = SyncState.PUBLISHING_LOCAL

    def end_publish(self) -> None:
        self._pending_publishes = max(0, self._pending_publishes - 1)
        if self._pending_publishes == 0 and self._sync_state == SyncState.PUBLISHING_LOCAL:
            self._sync_state = SyncState.IDLE

    # =========================================================================
    # Convenience wrappers around dispatch
    # =========================================================================

    def complete_mulligan(self, player_id: str, cards_to_replace: list[str] | None = None) -> GameState:
        return self.dispatch(Action.complete_mulligan(player_id, cards_to_replace))

    def play_card(
        self,
        player_id: str,
        card_id: str,
        position: int | None = None,
        target_id: str | None = None,
    ) -> GameState:
        return self.dispatch(Action.play_card(player_id, card_id, position, target_id))

    def attack(self, player_id: str, attacker_id: str, target_id: str) -> GameState:
        return self.dispatch(Action.attack(player_id, attacker_id, target_id))

    def end_turn(self, player_id: str) -> GameState:
        return self.dispatch(Action.end_turn(player_id))

    def concede(self, player_id: str) -> GameState:
        return self.dispatch(Action.concede(player_id))

    def trigger_effect(
        self,
        player_id: str,
        source_unit_id: str,
        trigger: str,
        target_id: str | None = None,
    ) -> GameState:
        return self.dispatch(Action.trigger_effect(player_id, source_unit_id, trigger, target_id))

    def timeout(self, player_id: str) -> GameState:
        return self.dispatch(Action.timeout(player_id))
