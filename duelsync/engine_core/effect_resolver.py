"""
Effect Resolver - Triggered effect queue and execution.

This module handles:
- Queueing effects when their trigger fires
- Resolving targets against the current board
- Executing damage/heal/draw/buff/destroy/summon/silence/bounce/stun
- Token summons with board and max-summon caps

Resolution runs in batches. Every effect queued so far resolves in
ascending priority; effects queued while a batch resolves (on_damaged,
on_destroy, ...) form the next batch. Chains are bounded by
RulesConfig.max_effect_chain.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from ..card_schema import (
    CardDesign,
    CardEffect,
    EffectAction,
    EffectTarget,
    EffectTrigger,
    Keyword,
)
from ..card_schema.card_design import ONE_SHOT_TRIGGERS
from ..config import RulesConfig
from .combat import (
    buff_attack,
    buff_health,
    damage_player,
    damage_unit,
    destroy_unit,
    heal_player,
    heal_unit,
    return_to_hand,
    silence_unit,
    stun_unit,
    sweep_destroyed,
)
from .state import GameState, PlayerState, UnitInPlay

logger = logging.getLogger(__name__)


@dataclass
class PendingEffect:
    """
    An effect waiting to resolve.

    `effect` is None for a token summon fired by the design's TokenSpec.
    The source design is kept so on_destroy effects still resolve after
    the unit left the board.
    """
    source_player_id: str
    source_design: CardDesign
    trigger: EffectTrigger
    effect: CardEffect | None = None
    source_unit_id: str | None = None
    target_id: str | None = None
    summons_used: int = 0

    @property
    def priority(self) -> int:
        return self.effect.priority if self.effect else 0

    @property
    def label(self) -> str:
        if self.effect is None:
            return f"{self.source_design.name}: summon {self.trigger.value}"
        return f"{self.source_design.name}: {self.effect.action.value} {self.effect.target.value}"


@dataclass
class Target:
    """A resolved effect target - a unit or a player."""
    target_id: str
    is_unit: bool
    owner_id: str


@dataclass
class ResolutionContext:
    """
    Scratch state for one transition.

    Owns the pending queue, the deterministic RNG and the change log.
    """
    state: GameState
    rules: RulesConfig
    rng: random.Random
    pending: list[PendingEffect] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    effects_resolved: list[str] = field(default_factory=list)

    def new_instance_id(self, prefix: str = "u") -> str:
        return f"{prefix}_{self.rng.getrandbits(48):012x}"

    def queue_unit_trigger(
        self,
        unit: UnitInPlay,
        owner: PlayerState,
        trigger: EffectTrigger,
        target_id: str | None = None,
    ) -> None:
        """Queue a unit's effects (and token summon) for a trigger."""
        if unit.is_silenced:
            return
        for effect in unit.design.effects_for(trigger):
            self.pending.append(PendingEffect(
                source_player_id=owner.player_id,
                source_design=unit.design,
                trigger=trigger,
                effect=effect,
                source_unit_id=unit.instance_id,
                target_id=target_id,
                summons_used=unit.summons_used,
            ))
        token = unit.design.token
        if token is not None and token.trigger == trigger:
            self.pending.append(PendingEffect(
                source_player_id=owner.player_id,
                source_design=unit.design,
                trigger=trigger,
                source_unit_id=unit.instance_id,
                summons_used=unit.summons_used,
            ))

    def queue_card_effects(
        self,
        design: CardDesign,
        player_id: str,
        trigger: EffectTrigger,
        target_id: str | None = None,
    ) -> None:
        """Queue effects of a card that is not on the board (action cards)."""
        for effect in design.effects_for(trigger):
            self.pending.append(PendingEffect(
                source_player_id=player_id,
                source_design=design,
                trigger=trigger,
                effect=effect,
                target_id=target_id,
            ))

    def queue_board_trigger(self, player: PlayerState, trigger: EffectTrigger) -> None:
        """Queue a trigger for every unit on a player's board (turn triggers)."""
        for unit in player.board:
            self.queue_unit_trigger(unit, player, trigger)


# =============================================================================
# Drawing
# =============================================================================

def draw_cards(ctx: ResolutionContext, player: PlayerState, count: int) -> int:
    """
    Draw cards from the end of the deck.

    Empty deck: fatigue damage (1, then 2, 3, ...) if enabled, else the
    draw is skipped. Full hand: the drawn card is burned to the graveyard.
    Returns the number of cards that reached the hand.
    """
    drawn = 0
    for _ in range(count):
        if not player.deck:
            if ctx.rules.fatigue_enabled:
                player.fatigue_count += 1
                damage_player(player, player.fatigue_count)
                ctx.changes.append(f"{player.name} took {player.fatigue_count} fatigue damage")
            continue
        card = player.deck.pop()
        if len(player.hand) >= ctx.rules.max_hand_size:
            player.graveyard.append(card)
            ctx.changes.append(f"{player.name} burned {card.design.name}")
            continue
        player.hand.append(card)
        drawn += 1
    return drawn


# =============================================================================
# Targeting
# =============================================================================

def _enemy_targetable(unit: UnitInPlay) -> bool:
    return not unit.has_keyword(Keyword.EVASION)


def valid_effect_targets(state: GameState, effect: CardEffect, player_id: str) -> list[str]:
    """Unit ids a player may choose for an effect that needs a target."""
    player = state.get_player(player_id)
    if player is None:
        return []
    opponent = state.opponent_of(player_id)
    friendly = [u.instance_id for u in player.board]
    enemies = [u.instance_id for u in opponent.board if _enemy_targetable(u)]

    if effect.target == EffectTarget.FRIENDLY_UNIT:
        return friendly
    if effect.target == EffectTarget.ENEMY_UNIT:
        return enemies
    if effect.target == EffectTarget.ANY_UNIT:
        return friendly + enemies
    return []


def resolve_targets(ctx: ResolutionContext, pending: PendingEffect) -> list[Target]:
    """Resolve a pending effect's targets against the current board."""
    state = ctx.state
    effect = pending.effect
    if effect is None:
        return []
    source = state.get_player(pending.source_player_id)
    if source is None:
        return []
    opponent = state.opponent_of(source.player_id)
    target = effect.target

    def units(owner: PlayerState, enemy: bool) -> list[Target]:
        return [
            Target(u.instance_id, True, owner.player_id)
            for u in owner.board
            if not enemy or _enemy_targetable(u)
        ]

    if target == EffectTarget.SELF:
        if pending.source_unit_id and source.find_unit(pending.source_unit_id):
            return [Target(pending.source_unit_id, True, source.player_id)]
        return []
    if target in {EffectTarget.FRIENDLY_UNIT, EffectTarget.ENEMY_UNIT, EffectTarget.ANY_UNIT}:
        if pending.target_id is None:
            return []
        if pending.target_id not in valid_effect_targets(state, effect, source.player_id):
            return []
        found = state.find_unit(pending.target_id)
        if found is None:
            return []
        return [Target(pending.target_id, True, found[1].player_id)]
    if target == EffectTarget.FRIENDLY_PLAYER:
        return [Target(source.player_id, False, source.player_id)]
    if target == EffectTarget.ENEMY_PLAYER:
        return [Target(opponent.player_id, False, opponent.player_id)]
    if target == EffectTarget.ALL_FRIENDLY:
        return units(source, enemy=False)
    if target == EffectTarget.ALL_ENEMIES:
        return units(opponent, enemy=True)
    if target == EffectTarget.ALL_UNITS:
        return units(source, enemy=False) + units(opponent, enemy=True)
    if target == EffectTarget.RANDOM_ENEMY:
        candidates = units(opponent, enemy=True)
        return [ctx.rng.choice(candidates)] if candidates else []
    if target == EffectTarget.RANDOM_FRIENDLY:
        candidates = units(source, enemy=False)
        return [ctx.rng.choice(candidates)] if candidates else []
    return []


# =============================================================================
# Summoning
# =============================================================================

def summon_tokens(ctx: ResolutionContext, pending: PendingEffect, count: int) -> int:
    """
    Summon up to `count` tokens for the source's owner.

    Silently stops at the board cap or the design's max_summons.
    """
    token_design = pending.source_design.token_design()
    token = pending.source_design.token
    owner = ctx.state.get_player(pending.source_player_id)
    if token_design is None or token is None or owner is None:
        return 0

    source_unit = owner.find_unit(pending.source_unit_id) if pending.source_unit_id else None
    used = source_unit.summons_used if source_unit else pending.summons_used
    if token.max_summons > 0:
        count = min(count, token.max_summons - used)

    summoned = 0
    quick = Keyword.QUICK in token_design.keywords
    for _ in range(max(count, 0)):
        if len(owner.board) >= ctx.rules.max_board_size:
            logger.debug("Board full, token %s not summoned", token_design.name)
            break
        owner.board.append(UnitInPlay(
            instance_id=ctx.new_instance_id("t"),
            card_instance_id=f"token:{pending.source_design.id}",
            design=token_design,
            current_attack=token_design.attack or 0,
            current_health=token_design.health or 0,
            max_health=token_design.health or 0,
            can_attack=quick,
            has_summoning_sickness=not quick,
            is_token=True,
        ))
        summoned += 1

    if source_unit is not None:
        source_unit.summons_used += summoned
    if summoned:
        ctx.changes.append(f"{owner.name} summoned {summoned}x {token_design.name}")
    return summoned


# =============================================================================
# Execution
# =============================================================================

def execute_effect(ctx: ResolutionContext, pending: PendingEffect) -> None:
    """Execute one pending effect against its resolved targets."""
    state = ctx.state
    if pending.effect is None:
        count = pending.source_design.token.count if (
            pending.source_design.token and pending.trigger in ONE_SHOT_TRIGGERS
        ) else 1
        summon_tokens(ctx, pending, count)
        ctx.effects_resolved.append(pending.label)
        return

    effect = pending.effect
    value = effect.value

    if effect.action == EffectAction.DRAW:
        player = state.get_player(pending.source_player_id)
        if player is not None:
            draw_cards(ctx, player, value)
        ctx.effects_resolved.append(pending.label)
        return

    if effect.action == EffectAction.SUMMON:
        count = value or (pending.source_design.token.count if pending.source_design.token else 0)
        summon_tokens(ctx, pending, count)
        ctx.effects_resolved.append(pending.label)
        return

    for target in resolve_targets(ctx, pending):
        if not target.is_unit:
            player = state.get_player(target.target_id)
            if player is None:
                continue
            if effect.action == EffectAction.DAMAGE:
                damage_player(player, value)
            elif effect.action == EffectAction.HEAL:
                heal_player(player, value)
            continue

        found = state.find_unit(target.target_id)
        if found is None:
            # Removed earlier in this batch
            continue
        unit, owner = found
        if effect.action == EffectAction.DAMAGE:
            damage_unit(ctx, unit, owner, value)
        elif effect.action == EffectAction.HEAL:
            heal_unit(unit, value)
        elif effect.action == EffectAction.BUFF_ATTACK:
            buff_attack(unit, value)
        elif effect.action == EffectAction.BUFF_HEALTH:
            buff_health(unit, value)
        elif effect.action == EffectAction.DESTROY:
            destroy_unit(ctx, unit, owner)
        elif effect.action == EffectAction.SILENCE:
            silence_unit(unit)
        elif effect.action == EffectAction.RETURN_HAND:
            return_to_hand(ctx, unit, owner)
        elif effect.action == EffectAction.STUN:
            stun_unit(unit)

    ctx.effects_resolved.append(pending.label)


def process_effect_queue(ctx: ResolutionContext) -> None:
    """
    Resolve pending effects until the queue is empty.

    Each batch is sorted by priority (stable, so queue order breaks
    ties). Destroyed units are swept after every effect.
    """
    batches = 0
    while ctx.pending:
        batches += 1
        if batches > ctx.rules.max_effect_chain:
            logger.warning(
                "Effect chain exceeded %d batches, dropping %d pending effect(s)",
                ctx.rules.max_effect_chain, len(ctx.pending),
            )
            ctx.pending.clear()
            break
        batch = sorted(ctx.pending, key=lambda p: p.priority)
        ctx.pending = []
        for pending in batch:
            execute_effect(ctx, pending)
            sweep_destroyed(ctx, ctx.state)
