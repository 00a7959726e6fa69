"""
Game State - The serializable snapshot of a duel.

Design principles:
- Snapshot semantics: every transition yields a new GameState, the
  reducer works on a deep copy and never touches its input
- Serializable: plain dataclasses, see serialization.py
- Two players only, player 1 first in `players`

The snapshot is what both clients publish to the room store and what
the reconciler compares.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum

from ..card_schema import CardDesign, Keyword
from .action import Action


class GamePhase(Enum):
    """Duel phases. Transitions only move forward."""
    MULLIGAN = "mulligan"
    PLAYING = "playing"
    ENDED = "ended"


PHASE_ORDER = {
    GamePhase.MULLIGAN: 0,
    GamePhase.PLAYING: 1,
    GamePhase.ENDED: 2,
}

FACE = "face"  # Attack target meaning the enemy player


@dataclass
class CardInHand:
    """
    A card in a deck, hand or graveyard.

    `instance_id` is unique within the game; `card_instance_id` is the
    collection identity supplied by the deck loader.
    """
    instance_id: str
    card_instance_id: str
    design: CardDesign


@dataclass
class UnitInPlay:
    """A unit on the board, with its current (possibly buffed) stats."""
    instance_id: str
    card_instance_id: str
    design: CardDesign

    current_attack: int
    current_health: int
    max_health: int

    # Status flags
    can_attack: bool = False
    has_summoning_sickness: bool = True
    is_silenced: bool = False
    is_stunned: bool = False
    # Activated ability spent this turn
    ability_used: bool = False

    # Buff tracking
    attack_buff: int = 0
    health_buff: int = 0

    # Tokens summoned by this unit so far
    summons_used: int = 0
    is_token: bool = False

    def has_keyword(self, keyword: Keyword) -> bool:
        """Silenced units lose their keywords."""
        if self.is_silenced:
            return False
        return self.design.has_keyword(keyword)

    @property
    def is_destroyed(self) -> bool:
        return self.current_health <= 0

    @property
    def ready_to_attack(self) -> bool:
        return (
            self.can_attack
            and not self.has_summoning_sickness
            and not self.is_stunned
            and self.current_attack > 0
        )

    @property
    def can_activate(self) -> bool:
        return (
            not self.is_silenced
            and not self.ability_used
            and self.design.has_activated_ability
        )


@dataclass
class PlayerState:
    """State for a single player."""
    player_id: str
    name: str
    avatar_url: str | None = None

    # Resources
    health: int = 30
    max_health: int = 30
    mana: int = 0
    max_mana: int = 0

    # Cards - deck draws from the end
    deck: list[CardInHand] = field(default_factory=list)
    hand: list[CardInHand] = field(default_factory=list)
    board: list[UnitInPlay] = field(default_factory=list)
    graveyard: list[CardInHand] = field(default_factory=list)

    fatigue_count: int = 0
    mulligan_complete: bool = False

    @property
    def is_dead(self) -> bool:
        return self.health <= 0

    def find_in_hand(self, instance_id: str) -> CardInHand | None:
        for card in self.hand:
            if card.instance_id == instance_id:
                return card
        return None

    def find_unit(self, instance_id: str) -> UnitInPlay | None:
        for unit in self.board:
            if unit.instance_id == instance_id:
                return unit
        return None


@dataclass
class GameState:
    """
    Complete duel snapshot at a point in logical time.

    All state changes go through the reducer.
    """
    game_id: str
    players: list[PlayerState] = field(default_factory=list)

    # Turn management
    active_player_id: str = ""
    first_player_id: str = ""
    current_turn: int = 0

    phase: GamePhase = GamePhase.MULLIGAN
    winner_id: str | None = None

    # Last applied action, used for ordering during reconciliation
    last_action: Action | None = None
    sequence: int = 0  # Number of actions applied so far

    # Determinism: per-action RNG derives from (random_seed, sequence)
    random_seed: int = 0

    created_at: float = 0.0
    turn_started_at: float = 0.0
    turn_time_limit: int = 90

    @property
    def player1(self) -> PlayerState:
        return self.players[0]

    @property
    def player2(self) -> PlayerState:
        return self.players[1]

    @property
    def active_player(self) -> PlayerState:
        player = self.get_player(self.active_player_id)
        if player is None:
            raise ValueError(f"Active player {self.active_player_id} is not in this game")
        return player

    @property
    def inactive_player(self) -> PlayerState:
        return self.opponent_of(self.active_player_id)

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.ENDED

    @property
    def is_draw(self) -> bool:
        return self.phase == GamePhase.ENDED and self.winner_id is None

    @property
    def last_action_timestamp(self) -> float:
        if self.last_action is None or self.last_action.timestamp is None:
            return 0.0
        return self.last_action.timestamp

    def get_player(self, player_id: str | None) -> PlayerState | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def opponent_of(self, player_id: str) -> PlayerState:
        if self.players[0].player_id == player_id:
            return self.players[1]
        if self.players[1].player_id == player_id:
            return self.players[0]
        raise ValueError(f"Player {player_id} is not in this game")

    def find_unit(self, instance_id: str) -> tuple[UnitInPlay, PlayerState] | None:
        """Find a unit on either board, with its owner."""
        for player in self.players:
            unit = player.find_unit(instance_id)
            if unit is not None:
                return unit, player
        return None

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
