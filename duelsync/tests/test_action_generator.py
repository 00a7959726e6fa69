"""
Tests for legal-action generation.

Drives whole games with seeded random play over the generated actions,
checking that the generator and the reducer agree at every step.
"""

import random

import pytest

from ..engine_core.action import ActionType
from ..engine_core.action_generator import legal_actions
from ..engine_core.state import GamePhase

MAX_STEPS = 3000


def acting_player(state):
    """The player expected to move next."""
    if state.phase == GamePhase.MULLIGAN:
        return next(p.player_id for p in state.players if not p.mulligan_complete)
    return state.active_player_id


def self_play(state, reducer, seed, check_every_action=False):
    rng = random.Random(seed)
    steps = 0
    while state.phase != GamePhase.ENDED:
        assert steps < MAX_STEPS, "game did not finish"
        player_id = acting_player(state)
        actions = legal_actions(state, player_id, reducer.rules)
        moves = [a for a in actions if a.action_type != ActionType.CONCEDE]
        assert moves, f"no move for {player_id} in {state.phase.value} on turn {state.current_turn}"

        if check_every_action:
            for action in actions:
                result = reducer.apply(state, action)
                assert result.success, (action, result.error)

        action = rng.choice(moves)
        result = reducer.apply(state, action)
        assert result.success, (action, result.error)
        state = result.new_state
        steps += 1
    return state, steps


class TestLegalActions:
    """Every reachable running state has an accepted outgoing action."""

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_self_play_reaches_the_end(self, new_game, reducer, seed):
        state, steps = self_play(new_game, reducer, seed)

        assert state.phase == GamePhase.ENDED
        assert steps > 2
        assert legal_actions(state, "alice") == []
        assert legal_actions(state, "bob") == []

    def test_every_generated_action_is_accepted(self, new_game, reducer):
        state, _ = self_play(new_game, reducer, seed=4, check_every_action=True)

        assert state.phase == GamePhase.ENDED

    def test_mulligan_phase(self, new_game):
        alice = legal_actions(new_game, "alice")

        assert [a.action_type for a in alice] == [ActionType.COMPLETE_MULLIGAN, ActionType.CONCEDE]

    def test_waiting_player_may_only_concede(self, playing_state):
        assert [a.action_type for a in legal_actions(playing_state, "bob")] == [ActionType.CONCEDE]

    def test_unknown_player(self, playing_state):
        assert legal_actions(playing_state, "mallory") == []

    def test_end_turn_always_offered(self, playing_state):
        actions = legal_actions(playing_state, "alice")

        assert ActionType.END_TURN in {a.action_type for a in actions}
