"""
Snapshot Reconciler - Decides whether a remote snapshot replaces local state.

Two clients each run their own GameInstance for the same room and
publish whole snapshots to the store. When a remote snapshot arrives
the reconciler compares it with the local one and picks a side:

1. Remote last_action timestamp is newer -> apply
2. active player, turn or phase differ -> apply
3. any player's board size, hand size or health differ -> apply

Timestamps alone are not trusted across clients without clock sync,
hence the structural fallback. Extra no-op applies are acceptable,
missed opponent moves are not.

Guards on top of the rule:
- No remote snapshot, or one for another game, is never applied
- While a local publish is unacknowledged, a remote snapshot that is
  both older and behind in sequence is held back so the local change
  is not discarded before it reaches the store
- A remote snapshot behind in both sequence and phase is stale

Reconciliation never raises.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING

from ..engine_core.state import PHASE_ORDER, GameState

if TYPE_CHECKING:
    from ..session.game_instance import GameInstance

logger = logging.getLogger(__name__)


class ChangeReason(Enum):
    """Why a remote snapshot was (or was not) applied."""
    NEWER_TIMESTAMP = "newer_timestamp"
    ACTIVE_PLAYER = "active_player"
    TURN = "turn"
    PHASE = "phase"
    BOARD_SIZE = "board_size"
    HAND_SIZE = "hand_size"
    HEALTH = "health"
    # Not applied
    NO_REMOTE = "no_remote"
    OTHER_GAME = "other_game"
    UNACKNOWLEDGED_LOCAL = "unacknowledged_local"
    STALE = "stale"


@dataclass
class ReconciliationResult:
    """Outcome of comparing a remote snapshot with the local one."""
    apply: bool
    merged: GameState | None = None
    reasons: list[ChangeReason] = field(default_factory=list)

    @property
    def summary(self) -> str:
        verdict = "apply" if self.apply else "keep local"
        return f"{verdict} ({', '.join(r.value for r in self.reasons) or 'identical'})"


def detect_changes(local: GameState, remote: GameState) -> list[ChangeReason]:
    """List every rule under which `remote` differs from `local`."""
    reasons = []
    if remote.last_action_timestamp > local.last_action_timestamp:
        reasons.append(ChangeReason.NEWER_TIMESTAMP)
    if remote.active_player_id != local.active_player_id:
        reasons.append(ChangeReason.ACTIVE_PLAYER)
    if remote.current_turn != local.current_turn:
        reasons.append(ChangeReason.TURN)
    if remote.phase != local.phase:
        reasons.append(ChangeReason.PHASE)

    local_players = {p.player_id: p for p in local.players}
    board = hand = health = False
    for remote_player in remote.players:
        local_player = local_players.get(remote_player.player_id)
        if local_player is None:
            continue
        board = board or len(remote_player.board) != len(local_player.board)
        hand = hand or len(remote_player.hand) != len(local_player.hand)
        health = health or remote_player.health != local_player.health
    if board:
        reasons.append(ChangeReason.BOARD_SIZE)
    if hand:
        reasons.append(ChangeReason.HAND_SIZE)
    if health:
        reasons.append(ChangeReason.HEALTH)
    return reasons


def reconcile(
    local: GameState,
    remote: GameState | None,
    *,
    has_unacknowledged_local: bool = False,
) -> ReconciliationResult:
    """
    Decide whether `remote` should replace `local`.

    `merged` is a private copy of the remote snapshot when applying, so
    the caller's object is never aliased into the live instance.
    """
    if remote is None:
        return ReconciliationResult(apply=False, reasons=[ChangeReason.NO_REMOTE])
    if remote.game_id != local.game_id:
        return ReconciliationResult(apply=False, reasons=[ChangeReason.OTHER_GAME])

    behind = (
        remote.sequence < local.sequence
        and remote.last_action_timestamp < local.last_action_timestamp
    )
    if has_unacknowledged_local and behind:
        return ReconciliationResult(apply=False, reasons=[ChangeReason.UNACKNOWLEDGED_LOCAL])
    if remote.sequence < local.sequence and PHASE_ORDER[remote.phase] < PHASE_ORDER[local.phase]:
        return ReconciliationResult(apply=False, reasons=[ChangeReason.STALE])

    reasons = detect_changes(local, remote)
    if not reasons:
        return ReconciliationResult(apply=False)
    return ReconciliationResult(apply=True, merged=remote.clone(), reasons=reasons)


@dataclass
class SnapshotReconciler:
    """
    Feeds remote snapshots into one GameInstance.

    Keeps counters for diagnostics; the decision itself is reconcile().
    """
    instance: GameInstance
    applied: int = 0
    skipped: int = 0

    def receive(self, remote: GameState | None) -> ReconciliationResult:
        result = reconcile(
            self.instance.get_state(),
            remote,
            has_unacknowledged_local=self.instance.has_unacknowledged_local,
        )
        if result.apply and result.merged is not None:
            self.instance.apply_remote(result.merged)
            self.applied += 1
            logger.debug("Applied remote snapshot: %s", result.summary)
        else:
            self.skipped += 1
            logger.debug("Skipped remote snapshot: %s", result.summary)
        return result
