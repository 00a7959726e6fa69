"""
Combat - Attack resolution and unit/player damage primitives.

These helpers mutate the working copy of the state that the reducer
owns for the duration of one transition. They never touch the snapshot
the reducer was called with.

Combat damage is simultaneous: both damage amounts are read from the
pre-attack stats before either unit is hit. Destroyed units are swept
off the board in the same transition.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from ..card_schema import EffectTrigger, Keyword
from .state import FACE, CardInHand, GameState, PlayerState, UnitInPlay

if TYPE_CHECKING:
    from .effect_resolver import ResolutionContext

logger = logging.getLogger(__name__)


@dataclass
class AttackResult:
    damage_to_attacker: int = 0
    damage_to_defender: int = 0
    attacker_died: bool = False
    defender_died: bool = False


# =============================================================================
# Attack targeting
# =============================================================================

def has_frontline(player: PlayerState) -> bool:
    return any(u.has_keyword(Keyword.FRONTLINE) for u in player.board)


def valid_attack_targets(state: GameState, attacker_id: str) -> list[str]:
    """
    Valid targets for an attacking unit.

    Frontline units must be dealt with first: while the defender has
    any, only they can be attacked and the face is off limits.
    """
    found = state.find_unit(attacker_id)
    if found is None:
        return []
    _, owner = found
    opponent = state.opponent_of(owner.player_id)

    frontline = [u.instance_id for u in opponent.board if u.has_keyword(Keyword.FRONTLINE)]
    if frontline:
        return frontline
    return [u.instance_id for u in opponent.board] + [FACE]


def can_unit_attack(state: GameState, unit_id: str) -> bool:
    found = state.find_unit(unit_id)
    if found is None:
        return False
    unit, owner = found
    if owner.player_id != state.active_player_id:
        return False
    return unit.ready_to_attack


# =============================================================================
# Damage, healing, buffs
# =============================================================================

def damage_player(player: PlayerState, amount: int) -> None:
    """Health is clamped at 0."""
    player.health = max(0, player.health - amount)


def heal_player(player: PlayerState, amount: int) -> None:
    player.health = min(player.health + amount, player.max_health)


def damage_unit(
    ctx: ResolutionContext,
    unit: UnitInPlay,
    owner: PlayerState,
    amount: int,
) -> None:
    """Damage a unit. Removal happens in sweep_destroyed."""
    if amount <= 0:
        return
    unit.current_health -= amount
    ctx.queue_unit_trigger(unit, owner, EffectTrigger.ON_DAMAGED)


def heal_unit(unit: UnitInPlay, amount: int) -> None:
    unit.current_health = min(unit.current_health + amount, unit.max_health)


def buff_attack(unit: UnitInPlay, amount: int) -> None:
    unit.current_attack += amount
    unit.attack_buff += amount


def buff_health(unit: UnitInPlay, amount: int) -> None:
    unit.current_health += amount
    unit.max_health += amount
    unit.health_buff += amount


def silence_unit(unit: UnitInPlay) -> None:
    """Remove keywords, effects and buffs."""
    unit.is_silenced = True
    base_attack = unit.design.attack or 0
    base_health = unit.design.health or 0
    unit.current_attack = base_attack
    unit.max_health = base_health
    unit.current_health = min(unit.current_health, base_health)
    unit.attack_buff = 0
    unit.health_buff = 0


def stun_unit(unit: UnitInPlay) -> None:
    """Stunned units sit out their owner's next turn; cleared when it ends."""
    unit.is_stunned = True


# =============================================================================
# Leaving the board
# =============================================================================

def destroy_unit(ctx: ResolutionContext, unit: UnitInPlay, owner: PlayerState) -> None:
    """Remove a unit, send it to the graveyard and queue on_destroy."""
    if owner.find_unit(unit.instance_id) is None:
        return
    ctx.queue_unit_trigger(unit, owner, EffectTrigger.ON_DESTROY)
    owner.board = [u for u in owner.board if u.instance_id != unit.instance_id]
    if not unit.is_token:
        owner.graveyard.append(CardInHand(
            instance_id=unit.instance_id,
            card_instance_id=unit.card_instance_id,
            design=unit.design,
        ))
    ctx.changes.append(f"{unit.design.name} was destroyed")


def return_to_hand(ctx: ResolutionContext, unit: UnitInPlay, owner: PlayerState) -> None:
    """Bounce a unit. Tokens and bounces into a full hand are lost."""
    if owner.find_unit(unit.instance_id) is None:
        return
    owner.board = [u for u in owner.board if u.instance_id != unit.instance_id]
    if unit.is_token:
        return
    if len(owner.hand) >= ctx.rules.max_hand_size:
        owner.graveyard.append(CardInHand(unit.instance_id, unit.card_instance_id, unit.design))
        return
    owner.hand.append(CardInHand(
        instance_id=ctx.new_instance_id("h"),
        card_instance_id=unit.card_instance_id,
        design=unit.design,
    ))


def sweep_destroyed(ctx: ResolutionContext, state: GameState) -> list[str]:
    """
    Remove every unit at 0 or less health.

    Active player's board is swept first so on_destroy triggers queue
    in a stable order.
    """
    destroyed: list[str] = []
    for owner in (state.active_player, state.inactive_player):
        for unit in list(owner.board):
            if unit.is_destroyed:
                destroy_unit(ctx, unit, owner)
                destroyed.append(unit.instance_id)
    return destroyed


# =============================================================================
# Attack resolution
# =============================================================================

def resolve_attack(
    ctx: ResolutionContext,
    state: GameState,
    attacker: UnitInPlay,
    attacker_owner: PlayerState,
    target_id: str,
) -> AttackResult:
    """
    Resolve an attack already validated by the reducer.

    Both damage values come from the pre-attack snapshot, so the result
    does not depend on which side is hit first.
    """
    attacker.can_attack = False
    ctx.queue_unit_trigger(attacker, attacker_owner, EffectTrigger.ON_ATTACK)
    defender_owner = state.opponent_of(attacker_owner.player_id)

    if target_id == FACE:
        damage = attacker.current_attack
        damage_player(defender_owner, damage)
        ctx.changes.append(
            f"{attacker.design.name} hit {defender_owner.name} for {damage}"
        )
        return AttackResult(damage_to_defender=damage)

    defender = defender_owner.find_unit(target_id)
    if defender is None:
        raise ValueError(f"Defender {target_id} not found")

    damage_to_defender = attacker.current_attack
    damage_to_attacker = defender.current_attack

    damage_unit(ctx, defender, defender_owner, damage_to_defender)
    damage_unit(ctx, attacker, attacker_owner, damage_to_attacker)

    result = AttackResult(
        damage_to_attacker=damage_to_attacker,
        damage_to_defender=damage_to_defender,
        attacker_died=attacker.is_destroyed,
        defender_died=defender.is_destroyed,
    )
    ctx.changes.append(
        f"{attacker.design.name} attacked {defender.design.name} "
        f"({damage_to_defender} dealt, {damage_to_attacker} taken)"
    )
    sweep_destroyed(ctx, state)
    logger.debug("Attack %s -> %s: %s", attacker.instance_id, target_id, result)
    return result
