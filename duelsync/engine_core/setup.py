"""
Game Setup - Creates the initial snapshot of a duel.

This module handles:
- Validating that both decks hold cards
- Assigning game-unique instance ids
- Shuffling with a seed for determinism
- Choosing the first player
- Dealing opening hands (3 for the first player, 4 for the second)

The returned state is in the mulligan phase; turn 1 begins once both
players complete their mulligan.
"""

from __future__ import annotations
from dataclasses import dataclass
import random
import time
import uuid

from ..config import DEFAULT_RULES, RulesConfig
from ..errors import EmptyDeckError
from .state import CardInHand, GamePhase, GameState, PlayerState


@dataclass(frozen=True)
class PlayerProfile:
    """Display identity of a player, as resolved by the loader."""
    player_id: str
    name: str
    avatar_url: str | None = None


def create_game(
    player1: PlayerProfile,
    deck1: list[CardInHand],
    player2: PlayerProfile,
    deck2: list[CardInHand],
    game_id: str | None = None,
    random_seed: int | None = None,
    first_player_id: str | None = None,
    rules: RulesConfig | None = None,
    now: float | None = None,
) -> GameState:
    """
    Set up a new duel.

    Args:
        player1, player2: Player identities (player 1 is listed first)
        deck1, deck2: Loaded decks, not modified
        game_id: Room/game id (random if omitted)
        random_seed: Seed for shuffles and in-game randomness
        first_player_id: Force the first player (random if omitted)
        rules: Rules constants
        now: Creation timestamp

    Returns:
        Initial GameState in the mulligan phase

    Raises:
        EmptyDeckError: if either deck has no cards
        ValueError: if the player ids collide or first_player_id is unknown
    """
    rules = rules or DEFAULT_RULES
    for profile, deck in ((player1, deck1), (player2, deck2)):
        if not deck:
            raise EmptyDeckError(
                f"Deck for {profile.player_id} has no cards",
                details={"player_id": profile.player_id},
            )
    if player1.player_id == player2.player_id:
        raise ValueError("A duel needs two different players")

    seed = random_seed if random_seed is not None else random.randrange(2**31)
    rng = random.Random(f"{seed}:setup")
    created_at = now if now is not None else time.time()

    players = [
        _create_player(player1, deck1, "p1", rules, rng),
        _create_player(player2, deck2, "p2", rules, rng),
    ]

    if first_player_id is None:
        first_player_id = rng.choice(players).player_id
    elif first_player_id not in {p.player_id for p in players}:
        raise ValueError(f"First player {first_player_id} is not in this game")

    first = players[0] if players[0].player_id == first_player_id else players[1]
    second = players[1] if first is players[0] else players[0]
    _deal(first, rules.starting_hand_size)
    _deal(second, rules.second_player_hand_size)

    return GameState(
        game_id=game_id or uuid.uuid4().hex,
        players=players,
        active_player_id=first_player_id,
        first_player_id=first_player_id,
        current_turn=0,
        phase=GamePhase.MULLIGAN,
        random_seed=seed,
        created_at=created_at,
        turn_started_at=created_at,
        turn_time_limit=rules.turn_time_limit,
    )


def _create_player(
    profile: PlayerProfile,
    deck: list[CardInHand],
    prefix: str,
    rules: RulesConfig,
    rng: random.Random,
) -> PlayerState:
    """Create a player with a freshly numbered, shuffled copy of their deck."""
    cards = [
        CardInHand(
            instance_id=f"{prefix}-c{index:02d}",
            card_instance_id=card.card_instance_id,
            design=card.design,
        )
        for index, card in enumerate(deck)
    ]
    rng.shuffle(cards)
    return PlayerState(
        player_id=profile.player_id,
        name=profile.name,
        avatar_url=profile.avatar_url,
        health=rules.starting_health,
        max_health=rules.starting_health,
        deck=cards,
    )


def _deal(player: PlayerState, count: int) -> None:
    """Opening hand. A short deck just deals fewer cards."""
    for _ in range(min(count, len(player.deck))):
        player.hand.append(player.deck.pop())
