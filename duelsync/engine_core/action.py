"""
Action System - Actions, payloads, and results.

Actions represent attempted mutations of a duel:
1. Player actions (play card, attack, end turn, mulligan, effect trigger)
2. Concession and turn timeouts

Every action carries a timestamp assigned when it is created. The
timestamp orders snapshots during reconciliation; it is never used by
the rules themselves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import time
import uuid


class ActionType(Enum):
    """Types of actions in the system."""
    PLAY_CARD = "play_card"
    ATTACK = "attack"
    END_TURN = "end_turn"
    COMPLETE_MULLIGAN = "complete_mulligan"
    EFFECT_TRIGGER = "effect_trigger"
    CONCEDE = "concede"
    TIMEOUT = "timeout"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    player_id: str | None = None

    # play_card
    card_id: str | None = None  # Instance id of the card in hand
    position: int | None = None  # Board slot for units
    target_id: str | None = None  # Unit instance id or player id for targeted effects

    # attack
    attacker_id: str | None = None  # target_id holds the defender or "face"

    # complete_mulligan
    cards_to_replace: list[str] = field(default_factory=list)

    # effect_trigger
    source_unit_id: str | None = None
    trigger: str | None = None  # Always "activated"


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are:
    - Validated before application
    - Applied atomically by the reducer
    - Recorded as the snapshot's last_action
    """
    action_type: ActionType
    payload: ActionPayload
    timestamp: float | None = None
    action_id: str | None = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()
        if self.action_id is None:
            self.action_id = uuid.uuid4().hex

    @property
    def player_id(self) -> str | None:
        return self.payload.player_id

    @classmethod
    def play_card(
        cls,
        player_id: str,
        card_id: str,
        position: int | None = None,
        target_id: str | None = None,
    ) -> Action:
        """Factory for play-card action."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(
                player_id=player_id,
                card_id=card_id,
                position=position,
                target_id=target_id,
            ),
        )

    @classmethod
    def attack(cls, player_id: str, attacker_id: str, target_id: str) -> Action:
        """Factory for attack action. target_id is a unit id or "face"."""
        return cls(
            action_type=ActionType.ATTACK,
            payload=ActionPayload(
                player_id=player_id,
                attacker_id=attacker_id,
                target_id=target_id,
            ),
        )

    @classmethod
    def end_turn(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def complete_mulligan(cls, player_id: str, cards_to_replace: list[str] | None = None) -> Action:
        return cls(
            action_type=ActionType.COMPLETE_MULLIGAN,
            payload=ActionPayload(
                player_id=player_id,
                cards_to_replace=list(cards_to_replace or []),
            ),
        )

    @classmethod
    def trigger_effect(
        cls,
        player_id: str,
        source_unit_id: str,
        trigger: str,
        target_id: str | None = None,
    ) -> Action:
        """Factory for activating a unit's ability (trigger "activated")."""
        return cls(
            action_type=ActionType.EFFECT_TRIGGER,
            payload=ActionPayload(
                player_id=player_id,
                source_unit_id=source_unit_id,
                trigger=trigger,
                target_id=target_id,
            ),
        )

    @classmethod
    def concede(cls, player_id: str) -> Action:
        return cls(
            action_type=ActionType.CONCEDE,
            payload=ActionPayload(player_id=player_id),
        )

    @classmethod
    def timeout(cls, player_id: str) -> Action:
        """Turn timer ran out. Either client may report it."""
        return cls(
            action_type=ActionType.TIMEOUT,
            payload=ActionPayload(player_id=player_id),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error and error code (if failed)
    - Human-readable changes (for logs and UI)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    state_changes: list[str] = field(default_factory=list)
    effects_resolved: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        effects: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            effects_resolved=effects or [],
        )
