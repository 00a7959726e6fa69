"""
Tests for keywords and triggered effects.

Uses the starter cards so the tests read like the cards do.
"""

from ..card_schema import CardEffect, EffectAction, EffectTarget, EffectTrigger, Keyword
from ..config import RulesConfig
from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import legal_actions
from ..engine_core.effect_resolver import valid_effect_targets
from ..engine_core.reducer import Reducer
from ..engine_core.state import FACE
from ..errors import ErrorCode
from ..games.starter.cards import (
    EAGER_RECRUIT,
    FIELD_SCOUT,
    FIREBALL,
    FROST_BOLT,
    GRAND_CHAMPION,
    HIVE_MOTHER,
    HUSH,
    RALLY,
    RECALL,
    SHADOW_BLADE,
    SHIELD_BEARER,
    SPARKCALLER,
    VOLLEY,
    WARDEN,
    WARLORD,
)
from .conftest import make_card, make_design, make_unit


def unit_from(design, instance_id, ready=True, **kwargs):
    return make_unit(instance_id, design.attack, design.health, design=design, ready=ready, **kwargs)


class TestKeywords:
    """Tests for frontline, quick, evasion and boost."""

    def test_frontline_blocks_face(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(make_unit("raider", 3, 3))
        playing_state.get_player("bob").board.extend([
            unit_from(SHIELD_BEARER, "guard"),
            make_unit("b2"),
        ])

        face = reducer.apply(playing_state, Action.attack("alice", "raider", FACE))
        other = reducer.apply(playing_state, Action.attack("alice", "raider", "b2"))
        guard = reducer.apply(playing_state, Action.attack("alice", "raider", "guard"))

        assert face.error_code == ErrorCode.INVALID_TARGET
        assert other.error_code == ErrorCode.INVALID_TARGET
        assert guard.success

    def test_quick_attacks_immediately(self, playing_state, reducer):
        playing_state.get_player("alice").hand.append(make_card("h1", EAGER_RECRUIT))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1")).new_state
        result = reducer.apply(state, Action.attack("alice", "h1", FACE))

        assert result.success
        assert result.new_state.get_player("bob").health == 29

    def test_boost(self, playing_state, reducer):
        alice = playing_state.get_player("alice")
        alice.mana = alice.max_mana = 6
        alice.hand.append(make_card("h1", GRAND_CHAMPION))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1")).new_state

        unit = state.get_player("alice").find_unit("h1")
        assert (unit.current_attack, unit.current_health, unit.max_health) == (6, 6, 6)

    def test_evasion_cannot_be_chosen(self, playing_state, reducer):
        playing_state.get_player("bob").board.append(unit_from(SHADOW_BLADE, "shade"))
        playing_state.get_player("alice").hand.append(make_card("h1", FIREBALL))

        result = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="shade"))

        assert result.error_code == ErrorCode.INVALID_TARGET
        assert valid_effect_targets(playing_state, FIREBALL.effects[0], "alice") == []

    def test_evasion_can_be_attacked(self, playing_state, reducer):
        """Evasion only protects from effects."""
        playing_state.get_player("alice").board.append(make_unit("raider", 3, 3))
        playing_state.get_player("bob").board.append(unit_from(SHADOW_BLADE, "shade"))

        result = reducer.apply(playing_state, Action.attack("alice", "raider", "shade"))

        assert result.success


class TestOnPlayEffects:
    """Tests for targeted and untargeted on_play effects."""

    def test_fireball_destroys(self, playing_state, reducer):
        playing_state.get_player("bob").board.append(make_unit("b1", 3, 3))
        playing_state.get_player("alice").hand.append(make_card("h1", FIREBALL))

        result = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="b1"))

        state = result.new_state
        assert state.get_player("bob").board == []
        assert [c.instance_id for c in state.get_player("bob").graveyard] == ["b1"]
        assert state.get_player("alice").mana == 3
        assert result.effects_resolved == ["Fireball: damage any_unit"]

    def test_untargeted_play_fizzles(self, playing_state, reducer):
        """No target_id: the card is spent and nothing is hit."""
        playing_state.get_player("bob").board.append(make_unit("b1", 3, 3))
        playing_state.get_player("alice").hand.append(make_card("h1", FIREBALL))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1")).new_state

        assert state.get_player("bob").find_unit("b1").current_health == 3
        assert state.get_player("alice").hand == []

    def test_volley_hits_all_enemies(self, playing_state, reducer):
        playing_state.get_player("bob").board.extend([make_unit("b1", 1, 1), make_unit("b2", 2, 3)])
        playing_state.get_player("alice").board.append(make_unit("a1", 1, 1))
        playing_state.get_player("alice").hand.append(make_card("h1", VOLLEY))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1")).new_state

        bob_board = state.get_player("bob").board
        assert [u.instance_id for u in bob_board] == ["b2"]
        assert bob_board[0].current_health == 2
        assert state.get_player("alice").find_unit("a1") is not None

    def test_hush_silences(self, playing_state, reducer):
        """Silence strips keywords, so a silenced frontline no longer blocks."""
        guard = unit_from(SHIELD_BEARER, "guard", attack_buff=2)
        guard.current_attack = 3
        playing_state.get_player("bob").board.append(guard)
        playing_state.get_player("alice").board.append(make_unit("raider", 2, 2))
        playing_state.get_player("alice").hand.append(make_card("h1", HUSH))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="guard")).new_state

        silenced = state.get_player("bob").find_unit("guard")
        assert silenced.is_silenced
        assert silenced.current_attack == 1
        assert not silenced.has_keyword(Keyword.FRONTLINE)
        assert reducer.apply(state, Action.attack("alice", "raider", FACE)).success

    def test_recall_returns_to_hand(self, playing_state, reducer):
        playing_state.get_player("bob").board.append(make_unit("b1", 3, 3))
        playing_state.get_player("alice").hand.append(make_card("h1", RECALL))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="b1")).new_state

        bob = state.get_player("bob")
        assert bob.board == []
        assert len(bob.hand) == 1
        assert bob.hand[0].card_instance_id == "ci_b1"
        assert bob.hand[0].instance_id != "b1"

    def test_rally_summons_tokens(self, playing_state, reducer):
        playing_state.get_player("alice").hand.append(make_card("h1", RALLY))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1")).new_state

        board = state.get_player("alice").board
        assert [u.design.name for u in board] == ["Militia", "Militia"]
        assert all(u.is_token for u in board)
        assert len({u.instance_id for u in board}) == 2

    def test_tokens_stop_at_board_cap(self, playing_state, reducer):
        alice = playing_state.get_player("alice")
        alice.board.extend(make_unit(f"u{i}") for i in range(6))
        alice.hand.append(make_card("h1", RALLY))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1")).new_state

        assert len(state.get_player("alice").board) == 7

    def test_warlord_destroys_target(self, playing_state, reducer):
        playing_state.get_player("bob").board.append(make_unit("b1", 5, 9))
        playing_state.get_player("alice").hand.append(make_card("h1", WARLORD))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="b1")).new_state

        assert state.get_player("bob").board == []
        assert state.get_player("alice").find_unit("h1") is not None


class TestTriggeredEffects:
    """Tests for on_damaged, on_destroy, start_of_turn and stun timing."""

    def test_hive_mother_spawns_on_damage(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(make_unit("raider", 3, 3))
        playing_state.get_player("bob").board.append(unit_from(HIVE_MOTHER, "hive"))

        state = reducer.apply(playing_state, Action.attack("alice", "raider", "hive")).new_state

        bob = state.get_player("bob")
        assert [u.design.name for u in bob.board] == ["Hive Mother", "Drone"]
        assert bob.find_unit("hive").summons_used == 1

    def test_hive_mother_summon_cap(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(make_unit("raider", 3, 3))
        playing_state.get_player("bob").board.append(unit_from(HIVE_MOTHER, "hive", summons_used=3))

        state = reducer.apply(playing_state, Action.attack("alice", "raider", "hive")).new_state

        assert len(state.get_player("bob").board) == 1

    def test_on_destroy_summons_from_graveyard(self, playing_state, reducer):
        """The design's on_destroy token fires after the unit left the board."""
        alice = playing_state.get_player("alice")
        alice.board.append(make_unit("lord", 6, 5, design=WARLORD))
        alice.hand.append(make_card("h1", FIREBALL))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="lord")).new_state

        alice = state.get_player("alice")
        assert [u.design.name for u in alice.board] == ["Squire", "Squire"]
        assert "lord" in [c.instance_id for c in alice.graveyard]

    def test_start_of_turn_heal(self, playing_state, reducer):
        warden = unit_from(WARDEN, "warden")
        warden.current_health = 2
        playing_state.get_player("bob").board.append(warden)

        state = reducer.apply(playing_state, Action.end_turn("alice")).new_state

        assert state.get_player("bob").find_unit("warden").current_health == 4

    def test_stun_lasts_through_owner_turn(self, playing_state, reducer):
        """A stunned unit misses its owner's next turn and recovers after it."""
        playing_state.get_player("bob").board.append(make_unit("b1", 2, 4))
        playing_state.get_player("alice").hand.append(make_card("h1", FROST_BOLT))

        state = reducer.apply(playing_state, Action.play_card("alice", "h1", target_id="b1")).new_state
        target = state.get_player("bob").find_unit("b1")
        assert target.current_health == 2
        assert target.is_stunned

        state = reducer.apply(state, Action.end_turn("alice")).new_state
        stunned = reducer.apply(state, Action.attack("bob", "b1", FACE))
        assert stunned.error_code == ErrorCode.UNIT_CANNOT_ATTACK

        state = reducer.apply(state, Action.end_turn("bob")).new_state
        assert not state.get_player("bob").find_unit("b1").is_stunned

    def test_trigger_effect_unknown_trigger(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(unit_from(SPARKCALLER, "spark"))

        result = reducer.apply(playing_state, Action.trigger_effect("alice", "spark", "at_dawn"))

        assert result.error_code == ErrorCode.MALFORMED_ACTION

    def test_trigger_effect_without_effect(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(make_unit("plain"))

        result = reducer.apply(playing_state, Action.trigger_effect("alice", "plain", "activated"))

        assert result.error_code == ErrorCode.INVALID_TARGET

    def test_silenced_unit_does_not_trigger(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(make_unit("raider", 3, 3))
        playing_state.get_player("bob").board.append(unit_from(HIVE_MOTHER, "hive", is_silenced=True))

        state = reducer.apply(playing_state, Action.attack("alice", "raider", "hive")).new_state

        assert len(state.get_player("bob").board) == 1


class TestActivatedAbilities:
    """Tests for abilities fired through effect_trigger."""

    def test_activation_hits_target(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(unit_from(SPARKCALLER, "spark"))
        playing_state.get_player("bob").board.append(make_unit("b1", 2, 4))

        result = reducer.apply(playing_state, Action.trigger_effect("alice", "spark", "activated", "b1"))

        assert result.success
        state = result.new_state
        assert state.get_player("bob").find_unit("b1").current_health == 3
        assert state.get_player("alice").find_unit("spark").ability_used
        assert state.get_player("alice").mana == 7

    def test_once_per_turn(self, playing_state, reducer):
        """The ability comes back when its owner's next turn begins."""
        playing_state.get_player("alice").board.append(unit_from(SPARKCALLER, "spark"))
        playing_state.get_player("bob").board.append(make_unit("b1", 2, 4))
        activate = Action.trigger_effect("alice", "spark", "activated", "b1")

        state = reducer.apply(playing_state, activate).new_state
        again = reducer.apply(state, activate)
        assert again.error_code == ErrorCode.INVALID_TARGET

        state = reducer.apply(state, Action.end_turn("alice")).new_state
        state = reducer.apply(state, Action.end_turn("bob")).new_state
        assert not state.get_player("alice").find_unit("spark").ability_used

        result = reducer.apply(state, activate)
        assert result.success
        assert result.new_state.get_player("bob").find_unit("b1").current_health == 2

    def test_on_play_cannot_be_repeated(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(unit_from(FIELD_SCOUT, "scout"))

        for _ in range(3):
            result = reducer.apply(playing_state, Action.trigger_effect("alice", "scout", "on_play"))
            assert result.error_code == ErrorCode.INVALID_TARGET

        assert playing_state.get_player("alice").hand == []

    def test_on_destroy_needs_a_destroyed_unit(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(unit_from(WARLORD, "warlord"))

        result = reducer.apply(playing_state, Action.trigger_effect("alice", "warlord", "on_destroy"))

        assert result.error_code == ErrorCode.INVALID_TARGET
        assert len(playing_state.get_player("alice").board) == 1

    def test_turn_triggers_are_refused(self, playing_state, reducer):
        warden = unit_from(WARDEN, "warden")
        warden.current_health = 3
        playing_state.get_player("alice").board.append(warden)

        result = reducer.apply(playing_state, Action.trigger_effect("alice", "warden", "start_of_turn"))

        assert result.error_code == ErrorCode.INVALID_TARGET

    def test_silenced_unit_cannot_activate(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(unit_from(SPARKCALLER, "spark", is_silenced=True))
        playing_state.get_player("bob").board.append(make_unit("b1", 2, 4))

        result = reducer.apply(playing_state, Action.trigger_effect("alice", "spark", "activated", "b1"))

        assert result.error_code == ErrorCode.INVALID_TARGET

    def test_legal_actions_offer_activation_once(self, playing_state, reducer):
        playing_state.get_player("alice").board.append(unit_from(SPARKCALLER, "spark", ready=False))
        playing_state.get_player("bob").board.append(make_unit("b1", 2, 4))

        def activations(state):
            return [
                (a.payload.source_unit_id, a.payload.target_id)
                for a in legal_actions(state, "alice")
                if a.action_type == ActionType.EFFECT_TRIGGER
            ]

        assert activations(playing_state) == [("spark", "b1")]
        state = reducer.apply(playing_state, Action.trigger_effect("alice", "spark", "activated", "b1")).new_state
        assert activations(state) == []


class TestDrawing:
    """Tests for fatigue and hand burn."""

    def test_fatigue_grows(self, playing_state, reducer):
        playing_state.get_player("bob").deck = []

        state = reducer.apply(playing_state, Action.end_turn("alice")).new_state
        assert state.get_player("bob").health == 29

        state = reducer.apply(state, Action.end_turn("bob")).new_state
        state = reducer.apply(state, Action.end_turn("alice")).new_state
        assert state.get_player("bob").health == 27
        assert state.get_player("bob").fatigue_count == 2

    def test_fatigue_disabled(self, playing_state):
        reducer = Reducer(rules=RulesConfig(fatigue_enabled=False))
        playing_state.get_player("bob").deck = []

        state = reducer.apply(playing_state, Action.end_turn("alice")).new_state

        assert state.get_player("bob").health == 30

    def test_full_hand_burns(self, playing_state, reducer):
        bob = playing_state.get_player("bob")
        bob.hand = [make_card(f"bh{i}", make_design("filler", 1, 1)) for i in range(10)]

        state = reducer.apply(playing_state, Action.end_turn("alice")).new_state

        bob = state.get_player("bob")
        assert len(bob.hand) == 10
        assert len(bob.graveyard) == 1
        assert len(bob.deck) == 9


class TestEffectChain:
    def test_chain_is_bounded(self, playing_state):
        """Mutually retriggering units stop at max_effect_chain batches."""
        pinger = make_design(
            "pinger", 1, 50,
            effects=(CardEffect(EffectTrigger.ON_DAMAGED, EffectAction.DAMAGE, EffectTarget.ALL_ENEMIES, 1),),
        )
        playing_state.get_player("alice").board.append(make_unit("a1", 1, 50, design=pinger))
        playing_state.get_player("bob").board.append(make_unit("b1", 1, 50, design=pinger))
        reducer = Reducer(rules=RulesConfig(max_effect_chain=5))

        result = reducer.apply(playing_state, Action.attack("alice", "a1", "b1"))

        assert result.success
        a1 = result.new_state.get_player("alice").find_unit("a1")
        b1 = result.new_state.get_player("bob").find_unit("b1")
        assert a1.current_health > 40
        assert b1.current_health > 40
