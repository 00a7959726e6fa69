"""
Tests for snapshot reconciliation.
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.reducer import apply_action
from ..engine_core.state import FACE, GamePhase
from ..session import GameInstance
from ..sync import ChangeReason, SnapshotReconciler, detect_changes, reconcile
from .conftest import make_unit


def advance(state, action, timestamp):
    action.timestamp = timestamp
    result = apply_action(state, action)
    assert result.success, result.error
    return result.new_state


@pytest.fixture
def base(playing_state):
    playing_state.get_player("alice").board.append(make_unit("raider", 4, 2))
    return playing_state


class TestDetectChanges:
    def test_identical(self, base):
        assert detect_changes(base, base.clone()) == []

    def test_attack_changes(self, base):
        remote = advance(base, Action.attack("alice", "raider", FACE), 100.0)

        reasons = detect_changes(base, remote)

        assert reasons == [ChangeReason.NEWER_TIMESTAMP, ChangeReason.HEALTH]

    def test_structural_change_without_timestamp(self, base):
        """Clock skew: an older timestamp still applies on structural change."""
        local = advance(base, Action.end_turn("alice"), 500.0)
        remote = local.clone()
        remote.get_player("bob").board.append(make_unit("b1"))

        reasons = detect_changes(local, remote)

        assert reasons == [ChangeReason.BOARD_SIZE]


class TestReconcile:
    """Tests for the apply/keep decision."""

    def test_no_remote(self, base):
        result = reconcile(base, None)

        assert not result.apply
        assert result.reasons == [ChangeReason.NO_REMOTE]

    def test_other_game(self, base):
        remote = base.clone()
        remote.game_id = "elsewhere"
        remote.current_turn = 9

        result = reconcile(base, remote)

        assert not result.apply
        assert result.reasons == [ChangeReason.OTHER_GAME]

    def test_identical_is_kept(self, base):
        result = reconcile(base, base.clone())

        assert not result.apply
        assert result.merged is None
        assert "identical" in result.summary

    def test_opponent_move_applies(self, base):
        remote = advance(base, Action.end_turn("alice"), 100.0)

        result = reconcile(base, remote)

        assert result.apply
        assert ChangeReason.ACTIVE_PLAYER in result.reasons
        assert result.merged == remote
        assert result.merged is not remote

    def test_unacknowledged_local_is_kept(self, base):
        """An older remote cannot overwrite a local move still being published."""
        local = advance(base, Action.attack("alice", "raider", FACE), 200.0)
        remote = base.clone()

        held = reconcile(local, remote, has_unacknowledged_local=True)
        later = reconcile(local, remote, has_unacknowledged_local=False)

        assert not held.apply
        assert held.reasons == [ChangeReason.UNACKNOWLEDGED_LOCAL]
        assert later.apply

    def test_stale_phase(self, new_game):
        """A snapshot from an earlier phase with a lower sequence is stale."""
        remote = new_game
        local = advance(remote, Action.complete_mulligan("alice"), 10.0)
        local = advance(local, Action.complete_mulligan("bob"), 11.0)
        assert local.phase == GamePhase.PLAYING

        result = reconcile(local, remote)

        assert not result.apply
        assert result.reasons == [ChangeReason.STALE]


def set_turn(state):
    state.current_turn += 1


def set_phase(state):
    state.phase = GamePhase.ENDED


def set_active(state):
    state.active_player_id = "bob"


def grow_hand(state):
    state.get_player("bob").hand.append(state.get_player("bob").deck.pop())


def grow_board(state):
    state.get_player("bob").board.append(make_unit("b1"))


def set_health(state):
    state.get_player("alice").health -= 3


class TestSingleRule:
    """Each rule applies a remote snapshot on its own, with timestamps equal."""

    @pytest.mark.parametrize("change, reason", [
        (set_turn, ChangeReason.TURN),
        (set_phase, ChangeReason.PHASE),
        (set_active, ChangeReason.ACTIVE_PLAYER),
        (grow_hand, ChangeReason.HAND_SIZE),
        (grow_board, ChangeReason.BOARD_SIZE),
        (set_health, ChangeReason.HEALTH),
    ])
    def test_rule_alone_applies(self, base, change, reason):
        remote = base.clone()
        change(remote)
        assert remote.last_action_timestamp == base.last_action_timestamp

        result = reconcile(base, remote)

        assert result.apply
        assert result.reasons == [reason]
        assert result.merged == remote

    def test_newer_timestamp_alone_applies(self, base):
        local = advance(base, Action.end_turn("alice"), 100.0)
        remote = local.clone()
        remote.last_action.timestamp = 200.0

        result = reconcile(local, remote)

        assert result.apply
        assert result.reasons == [ChangeReason.NEWER_TIMESTAMP]

    def test_unrelated_field_is_ignored(self, base):
        """Differences no rule looks at keep the local snapshot."""
        remote = base.clone()
        remote.get_player("alice").mana -= 1

        result = reconcile(base, remote)

        assert not result.apply
        assert result.reasons == []


class TestSnapshotReconciler:
    def test_counters_and_apply(self, base):
        instance = GameInstance(base)
        reconciler = SnapshotReconciler(instance)
        remote = advance(base, Action.end_turn("alice"), 100.0)

        reconciler.receive(remote)
        reconciler.receive(remote)
        reconciler.receive(None)

        assert reconciler.applied == 1
        assert reconciler.skipped == 2
        assert instance.get_state() == remote

    def test_reconciled_remote_is_not_republished(self, base):
        instance = GameInstance(base)
        publish_flags = []
        instance.subscribe(lambda state: publish_flags.append(instance.should_publish()))

        SnapshotReconciler(instance).receive(advance(base, Action.end_turn("alice"), 100.0))

        assert publish_flags == [False]
