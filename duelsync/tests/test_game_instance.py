"""
Tests for GameInstance.

Tests:
- Dispatch and subscriber notification
- Rejected actions
- set_state / apply_remote and the sync state machine
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.state import FACE, GamePhase
from ..errors import ActionRejectedError, ErrorCode
from ..session import GameInstance, SyncState
from .conftest import make_unit


@pytest.fixture
def instance(playing_state):
    playing_state.get_player("alice").board.append(make_unit("raider", 4, 2))
    return GameInstance(playing_state)


class TestDispatch:
    """Tests for local dispatch."""

    def test_dispatch_notifies_with_new_state(self, instance):
        seen = []
        instance.subscribe(seen.append)

        state = instance.attack("alice", "raider", FACE)

        assert seen == [state]
        assert instance.get_state() is state
        assert state.get_player("bob").health == 26

    def test_rejected_dispatch_leaves_state(self, instance):
        """A rejected action raises and leaves the snapshot deep-equal."""
        before = instance.get_state().clone()
        seen = []
        instance.subscribe(seen.append)

        with pytest.raises(ActionRejectedError) as exc_info:
            instance.end_turn("bob")

        assert exc_info.value.error_code == ErrorCode.WRONG_TURN
        assert instance.get_state() == before
        assert seen == []
        assert instance.history == []

    def test_history_records_accepted_actions(self, instance):
        instance.attack("alice", "raider", FACE)
        instance.end_turn("alice")

        assert [a.action_type.value for a in instance.history] == ["attack", "end_turn"]

    def test_repeat_mulligan_notifies_unchanged_state(self, new_game):
        """A repeat mulligan succeeds, announces the same snapshot and records nothing."""
        instance = GameInstance(new_game)
        seen = []
        instance.subscribe(seen.append)

        first = instance.complete_mulligan("alice")
        second = instance.complete_mulligan("alice")

        assert second is first
        assert seen == [first, first]
        assert len(instance.history) == 1

    def test_full_game_start(self, new_game):
        instance = GameInstance(new_game)
        instance.complete_mulligan("alice")
        state = instance.complete_mulligan("bob")

        assert state.phase == GamePhase.PLAYING
        assert state.current_turn == 1

    def test_failing_subscriber_is_isolated(self, instance):
        """One subscriber raising does not stop the others."""
        seen = []

        def broken(state):
            raise RuntimeError("render failed")

        instance.subscribe(broken)
        instance.subscribe(seen.append)

        instance.attack("alice", "raider", FACE)

        assert len(seen) == 1

    def test_unsubscribe(self, instance):
        seen = []
        unsubscribe = instance.subscribe(seen.append)
        unsubscribe()
        unsubscribe()

        instance.attack("alice", "raider", FACE)

        assert seen == []


class TestSetState:
    """Tests for externally sourced snapshots."""

    def test_convergence(self, playing_state):
        """B adopting A's snapshot ends deep-equal to A."""
        playing_state.get_player("alice").board.append(make_unit("raider", 4, 2))
        a = GameInstance(playing_state)
        b = GameInstance(playing_state)

        a.attack("alice", "raider", FACE)
        b.set_state(a.get_state())

        assert b.get_state() == a.get_state()
        assert b.get_state() is not a.get_state()

    def test_set_state_copies_input(self, instance, playing_state):
        remote = playing_state.clone()
        instance.set_state(remote)

        remote.get_player("bob").health = 1

        assert instance.get_state().get_player("bob").health == 30

    def test_set_state_notifies_only_when_asked(self, instance, playing_state):
        seen = []
        instance.subscribe(seen.append)

        instance.set_state(playing_state)
        assert seen == []

        instance.set_state(playing_state, notify=True)
        assert len(seen) == 1


class TestSyncStateMachine:
    """Tests for idle / applying_remote / publishing_local."""

    def test_apply_remote_suppresses_publish(self, instance, playing_state):
        observed = []
        instance.subscribe(lambda state: observed.append((instance.sync_state, instance.should_publish())))

        instance.apply_remote(playing_state)

        assert observed == [(SyncState.APPLYING_REMOTE, False)]
        assert instance.sync_state == SyncState.IDLE
        assert instance.should_publish()

    def test_publish_counter(self, instance):
        instance.begin_publish()
        instance.begin_publish()
        assert instance.sync_state == SyncState.PUBLISHING_LOCAL
        assert instance.has_unacknowledged_local

        instance.end_publish()
        assert instance.has_unacknowledged_local

        instance.end_publish()
        assert instance.sync_state == SyncState.IDLE
        assert not instance.has_unacknowledged_local

    def test_apply_remote_restores_publishing(self, instance, playing_state):
        instance.begin_publish()

        instance.apply_remote(playing_state)

        assert instance.sync_state == SyncState.PUBLISHING_LOCAL

    def test_end_publish_never_negative(self, instance):
        instance.end_publish()

        assert not instance.has_unacknowledged_local
        assert instance.sync_state == SyncState.IDLE
