"""
Engine Core - Deterministic duel state and action resolution.

The engine is the runtime that:
1. Builds the initial snapshot from two loaded decks
2. Applies actions via the reducer (pure, never mutates its input)
3. Resolves combat and triggered effects
4. Generates legal actions
5. Serializes snapshots for the room store
"""

from .state import CardInHand, GamePhase, GameState, PlayerState, UnitInPlay, FACE
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action, check_win_condition
from .action_generator import ActionGenerator, legal_actions
from .setup import PlayerProfile, create_game
from .serialization import (
    snapshot_from_dict,
    snapshot_from_json,
    snapshot_to_dict,
    snapshot_to_json,
)

__all__ = [
    "CardInHand",
    "GamePhase",
    "GameState",
    "PlayerState",
    "UnitInPlay",
    "FACE",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
    "check_win_condition",
    "ActionGenerator",
    "legal_actions",
    "PlayerProfile",
    "create_game",
    "snapshot_from_dict",
    "snapshot_from_json",
    "snapshot_to_dict",
    "snapshot_to_json",
]
