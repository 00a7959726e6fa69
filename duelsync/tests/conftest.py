"""
Pytest fixtures for DuelSync tests.
"""

import pytest

from ..card_schema import CardDesign
from ..config import RulesConfig
from ..engine_core.reducer import Reducer
from ..engine_core.setup import create_game
from ..engine_core.state import CardInHand, GamePhase, GameState, PlayerState, UnitInPlay
from ..games.starter import ARCANE_DECK, VANGUARD_DECK, starter_loader


def make_design(card_id="grunt", attack=2, health=2, mana_cost=1, **kwargs) -> CardDesign:
    """Build a unit design with just enough fields for a test."""
    return CardDesign(
        id=card_id,
        name=card_id.replace("_", " ").title(),
        mana_cost=mana_cost,
        attack=attack,
        health=health,
        **kwargs,
    )


def make_unit(instance_id, attack=2, health=2, design=None, ready=True, **kwargs) -> UnitInPlay:
    """A unit already on the board, ready to attack unless told otherwise."""
    design = design or make_design(f"{instance_id}_design", attack, health)
    return UnitInPlay(
        instance_id=instance_id,
        card_instance_id=f"ci_{instance_id}",
        design=design,
        current_attack=attack,
        current_health=health,
        max_health=health,
        can_attack=ready,
        has_summoning_sickness=not ready,
        **kwargs,
    )


def make_card(instance_id, design) -> CardInHand:
    return CardInHand(instance_id=instance_id, card_instance_id=f"ci_{instance_id}", design=design)


def make_deck(prefix, count=10) -> list[CardInHand]:
    filler = make_design("filler", 1, 1)
    return [make_card(f"{prefix}-d{i}", filler) for i in range(count)]


@pytest.fixture
def rules() -> RulesConfig:
    return RulesConfig()


@pytest.fixture
def reducer(rules) -> Reducer:
    return Reducer(rules=rules)


@pytest.fixture
def playing_state() -> GameState:
    """
    Mid-game state: alice to act on turn 7 with 7 mana, empty boards
    and hands, ten filler cards in each deck.
    """
    return GameState(
        game_id="test_game",
        players=[
            PlayerState(player_id="alice", name="Alice", mana=7, max_mana=7, deck=make_deck("a")),
            PlayerState(player_id="bob", name="Bob", mana=7, max_mana=7, deck=make_deck("b")),
        ],
        active_player_id="alice",
        first_player_id="alice",
        current_turn=7,
        phase=GamePhase.PLAYING,
        random_seed=42,
    )


@pytest.fixture
def loader():
    return starter_loader()


@pytest.fixture
def new_game(loader) -> GameState:
    """Freshly created starter duel in the mulligan phase, alice first."""
    return create_game(
        loader.load_player("alice").unwrap(),
        loader.load_deck(VANGUARD_DECK).unwrap(),
        loader.load_player("bob").unwrap(),
        loader.load_deck(ARCANE_DECK).unwrap(),
        game_id="room-1",
        random_seed=7,
        first_player_id="alice",
        now=1000.0,
    )
