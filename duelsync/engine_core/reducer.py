"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new state, the input is never touched
- Validates before applying, a rejection carries an ErrorCode
- Deterministic: randomness comes from (random_seed, sequence), so both
  clients of a room compute the same snapshot for the same action
- Delegates combat and triggered effects to combat/effect_resolver
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
import logging
import random

from ..card_schema import EffectTrigger, Keyword
from ..config import DEFAULT_RULES, RulesConfig, TiePolicy
from ..errors import ErrorCode
from .action import Action, ActionResult, ActionType
from .combat import can_unit_attack, resolve_attack, valid_attack_targets
from .effect_resolver import (
    ResolutionContext,
    draw_cards,
    process_effect_queue,
    valid_effect_targets,
)
from .state import GamePhase, GameState, PlayerState, UnitInPlay

logger = logging.getLogger(__name__)

# Accepted while the game is still in the mulligan phase
MULLIGAN_PHASE_ACTIONS = {ActionType.COMPLETE_MULLIGAN, ActionType.CONCEDE}

# Accepted from the non-active player
OUT_OF_TURN_ACTIONS = {ActionType.COMPLETE_MULLIGAN, ActionType.CONCEDE, ActionType.TIMEOUT}


def action_rng(state: GameState) -> random.Random:
    """RNG for the next transition out of `state`."""
    return random.Random(f"{state.random_seed}:{state.sequence}")


def check_win_condition(state: GameState, rules: RulesConfig = DEFAULT_RULES) -> bool:
    """
    End the game if a player is at 0 health. Mutates `state`.

    Both players dead in the same transition applies rules.tie_policy.
    Returns True if the game ended.
    """
    if state.phase == GamePhase.ENDED:
        return True
    p1_dead = state.player1.is_dead
    p2_dead = state.player2.is_dead
    if not (p1_dead or p2_dead):
        return False

    if p1_dead and p2_dead:
        if rules.tie_policy == TiePolicy.ACTIVE_PLAYER_LOSES:
            state.winner_id = state.inactive_player.player_id
        else:
            state.winner_id = None
    elif p1_dead:
        state.winner_id = state.player2.player_id
    else:
        state.winner_id = state.player1.player_id

    state.phase = GamePhase.ENDED
    logger.info(
        "Game %s ended on turn %d: %s",
        state.game_id, state.current_turn,
        f"winner {state.winner_id}" if state.winner_id else "draw",
    )
    return True


def begin_turn(state: GameState, ctx: ResolutionContext, now: float) -> None:
    """
    Start the active player's turn. Mutates `state`.

    Mana ramps to min(current_turn, max_mana) and refills, one card is
    drawn, units shake off summoning sickness and regain their activated
    ability, then start_of_turn effects resolve.
    """
    player = state.active_player
    player.max_mana = min(state.current_turn, ctx.rules.max_mana)
    player.mana = player.max_mana
    state.turn_started_at = now

    draw_cards(ctx, player, 1)
    for unit in player.board:
        unit.has_summoning_sickness = False
        unit.can_attack = True
        unit.ability_used = False

    ctx.queue_board_trigger(player, EffectTrigger.START_OF_TURN)
    process_effect_queue(ctx)
    ctx.changes.append(f"Turn {state.current_turn}: {player.name} to act")


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    RulesConfig provides the constants both clients must agree on.
    """
    rules: RulesConfig = field(default_factory=lambda: DEFAULT_RULES)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error. The input state is
        never modified, even when a handler fails half way.
        """
        rejection = self._validate_action(state, action)
        if rejection:
            message, code = rejection
            return ActionResult.failure(message, error_code=code)

        if self._is_repeat_mulligan(state, action):
            # Idempotent: same snapshot back, nothing recorded
            return ActionResult.success_with_state(
                state, changes=[f"{action.player_id} already completed mulligan"],
            )

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.NO_HANDLER,
            )

        new_state = state.clone()
        ctx = ResolutionContext(state=new_state, rules=self.rules, rng=action_rng(state))
        try:
            result = handler(new_state, action, ctx)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), error_code=ErrorCode.HANDLER_ERROR)

        if not result.success:
            return result

        new_state.last_action = deepcopy(action)
        new_state.sequence += 1
        check_win_condition(new_state, self.rules)
        return ActionResult.success_with_state(new_state, ctx.changes, ctx.effects_resolved)

    def _validate_action(self, state: GameState, action: Action) -> tuple[str, ErrorCode] | None:
        """
        Validate that an action is legal in the current state.

        Returns (message, code) if invalid, None if valid. Per-action
        checks (mana, board, targets) live in the handlers.
        """
        if state.phase == GamePhase.ENDED:
            return "Game is over - no actions allowed", ErrorCode.GAME_OVER

        player_id = action.payload.player_id
        if state.get_player(player_id) is None:
            return f"Player {player_id} is not in this game", ErrorCode.UNKNOWN_PLAYER

        if self._is_repeat_mulligan(state, action):
            return None

        if state.phase == GamePhase.MULLIGAN and action.action_type not in MULLIGAN_PHASE_ACTIONS:
            return "Mulligan in progress - only mulligan or concede allowed", ErrorCode.PHASE_MISMATCH

        if state.phase == GamePhase.PLAYING and action.action_type == ActionType.COMPLETE_MULLIGAN:
            return "Mulligan phase is over", ErrorCode.PHASE_MISMATCH

        if action.action_type not in OUT_OF_TURN_ACTIONS and player_id != state.active_player_id:
            return f"Not {player_id}'s turn", ErrorCode.WRONG_TURN

        return None

    @staticmethod
    def _is_repeat_mulligan(state: GameState, action: Action) -> bool:
        if action.action_type != ActionType.COMPLETE_MULLIGAN:
            return False
        player = state.get_player(action.payload.player_id)
        return player is not None and player.mulligan_complete

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.PLAY_CARD: self._handle_play_card,
            ActionType.ATTACK: self._handle_attack,
            ActionType.END_TURN: self._handle_end_turn,
            ActionType.COMPLETE_MULLIGAN: self._handle_complete_mulligan,
            ActionType.EFFECT_TRIGGER: self._handle_effect_trigger,
            ActionType.CONCEDE: self._handle_concede,
            ActionType.TIMEOUT: self._handle_timeout,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Handlers - each receives the working copy and mutates it in place
    # =========================================================================

    def _handle_play_card(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """Handle play-card action."""
        payload = action.payload
        if not payload.card_id:
            return ActionResult.failure("play_card requires card_id", ErrorCode.MALFORMED_ACTION)

        player = state.active_player
        card = player.find_in_hand(payload.card_id)
        if card is None:
            return ActionResult.failure(f"Card {payload.card_id} not in hand", ErrorCode.CARD_NOT_IN_HAND)

        design = card.design
        if design.mana_cost > player.mana:
            return ActionResult.failure(
                f"{design.name} costs {design.mana_cost}, {player.name} has {player.mana} mana",
                ErrorCode.INSUFFICIENT_MANA,
            )
        if design.is_unit and len(player.board) >= self.rules.max_board_size:
            return ActionResult.failure(
                f"Board is full ({self.rules.max_board_size} units)", ErrorCode.BOARD_FULL,
            )

        if payload.target_id is not None:
            for effect in design.effects_for(EffectTrigger.ON_PLAY):
                if effect.needs_target and payload.target_id not in valid_effect_targets(
                    state, effect, player.player_id
                ):
                    return ActionResult.failure(
                        f"{payload.target_id} is not a valid target for {design.name}",
                        ErrorCode.INVALID_TARGET,
                    )

        player.mana -= design.mana_cost
        player.hand = [c for c in player.hand if c.instance_id != card.instance_id]

        if design.is_unit:
            unit = self._make_unit(card.instance_id, card.card_instance_id, design)
            position = payload.position
            if position is None or not 0 <= position <= len(player.board):
                player.board.append(unit)
            else:
                player.board.insert(position, unit)
            ctx.changes.append(f"{player.name} played {design.name}")
            ctx.queue_unit_trigger(unit, player, EffectTrigger.ON_PLAY, target_id=payload.target_id)
        else:
            player.graveyard.append(card)
            ctx.changes.append(f"{player.name} cast {design.name}")
            ctx.queue_card_effects(design, player.player_id, EffectTrigger.ON_PLAY, payload.target_id)

        process_effect_queue(ctx)
        return ActionResult.success_with_state(state)

    def _make_unit(self, instance_id: str, card_instance_id: str, design) -> UnitInPlay:
        attack = design.attack or 0
        health = design.health or 0
        boost = 1 if design.has_keyword(Keyword.BOOST) else 0
        quick = design.has_keyword(Keyword.QUICK)
        return UnitInPlay(
            instance_id=instance_id,
            card_instance_id=card_instance_id,
            design=design,
            current_attack=attack + boost,
            current_health=health + boost,
            max_health=health + boost,
            can_attack=quick,
            has_summoning_sickness=not quick,
            attack_buff=boost,
            health_buff=boost,
        )

    def _handle_attack(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """Handle attack action. target_id is an enemy unit or "face"."""
        payload = action.payload
        if not payload.attacker_id or not payload.target_id:
            return ActionResult.failure("attack requires attacker_id and target_id", ErrorCode.MALFORMED_ACTION)

        player = state.active_player
        attacker = player.find_unit(payload.attacker_id)
        if attacker is None:
            return ActionResult.failure(
                f"Unit {payload.attacker_id} is not on {player.name}'s board", ErrorCode.UNIT_CANNOT_ATTACK,
            )
        if not can_unit_attack(state, attacker.instance_id):
            return ActionResult.failure(f"{attacker.design.name} cannot attack", ErrorCode.UNIT_CANNOT_ATTACK)
        if payload.target_id not in valid_attack_targets(state, attacker.instance_id):
            return ActionResult.failure(f"Cannot attack {payload.target_id}", ErrorCode.INVALID_TARGET)

        resolve_attack(ctx, state, attacker, player, payload.target_id)
        process_effect_queue(ctx)
        return ActionResult.success_with_state(state)

    def _handle_end_turn(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """Handle end-turn action."""
        self._pass_turn(state, ctx, action.timestamp or 0.0)
        return ActionResult.success_with_state(state)

    def _handle_timeout(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """Turn timer expired - ends the active player's turn, reported by either client."""
        ctx.changes.append(f"{state.active_player.name} ran out of time")
        self._pass_turn(state, ctx, action.timestamp or 0.0)
        return ActionResult.success_with_state(state)

    def _pass_turn(self, state: GameState, ctx: ResolutionContext, now: float) -> None:
        current = state.active_player
        ctx.queue_board_trigger(current, EffectTrigger.END_OF_TURN)
        process_effect_queue(ctx)
        if check_win_condition(state, self.rules):
            return

        for unit in current.board:
            unit.is_stunned = False

        next_player = state.inactive_player
        state.active_player_id = next_player.player_id
        if next_player.player_id == state.first_player_id:
            state.current_turn += 1
        begin_turn(state, ctx, now)

    def _handle_complete_mulligan(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """
        Handle mulligan: named cards go back, the deck is shuffled and
        the same number of cards is drawn. Starts turn 1 once both
        players are done.
        """
        player = state.get_player(action.payload.player_id)
        replace_ids = list(dict.fromkeys(action.payload.cards_to_replace))
        returned = []
        for instance_id in replace_ids:
            card = player.find_in_hand(instance_id)
            if card is None:
                return ActionResult.failure(f"Card {instance_id} not in hand", ErrorCode.CARD_NOT_IN_HAND)
            returned.append(card)

        if returned:
            player.hand = [c for c in player.hand if c.instance_id not in replace_ids]
            player.deck.extend(returned)
            ctx.rng.shuffle(player.deck)
            draw_cards(ctx, player, len(returned))
        player.mulligan_complete = True
        ctx.changes.append(f"{player.name} kept their hand, replaced {len(returned)}")

        if all(p.mulligan_complete for p in state.players):
            self._start_game(state, ctx, action.timestamp or 0.0)
        return ActionResult.success_with_state(state)

    def _start_game(self, state: GameState, ctx: ResolutionContext, now: float) -> None:
        state.phase = GamePhase.PLAYING
        state.current_turn = 1
        state.active_player_id = state.first_player_id
        logger.info("Game %s started, %s goes first", state.game_id, state.first_player_id)
        begin_turn(state, ctx, now)

    def _handle_effect_trigger(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """
        Fire a unit's activated ability.

        Every other trigger is fired by the action that causes it (playing,
        attacking, damage, destruction, turn changes) and is refused here.
        Each unit may activate once per turn.
        """
        payload = action.payload
        if not payload.source_unit_id or not payload.trigger:
            return ActionResult.failure(
                "effect_trigger requires source_unit_id and trigger", ErrorCode.MALFORMED_ACTION,
            )
        try:
            trigger = EffectTrigger(payload.trigger)
        except ValueError:
            return ActionResult.failure(f"Unknown trigger {payload.trigger}", ErrorCode.MALFORMED_ACTION)
        if trigger != EffectTrigger.ACTIVATED:
            return ActionResult.failure(
                f"{trigger.value} effects fire automatically", ErrorCode.INVALID_TARGET,
            )

        player = state.active_player
        unit = player.find_unit(payload.source_unit_id)
        if unit is None or unit.is_silenced:
            return ActionResult.failure(
                f"Unit {payload.source_unit_id} cannot trigger effects", ErrorCode.INVALID_TARGET,
            )
        if not unit.design.has_activated_ability:
            return ActionResult.failure(
                f"{unit.design.name} has no activated ability", ErrorCode.INVALID_TARGET,
            )
        if unit.ability_used:
            return ActionResult.failure(
                f"{unit.design.name} already activated this turn", ErrorCode.INVALID_TARGET,
            )
        effects = unit.design.effects_for(trigger)
        if payload.target_id is not None:
            for effect in effects:
                if effect.needs_target and payload.target_id not in valid_effect_targets(
                    state, effect, player.player_id
                ):
                    return ActionResult.failure(
                        f"{payload.target_id} is not a valid target", ErrorCode.INVALID_TARGET,
                    )

        unit.ability_used = True
        ctx.changes.append(f"{unit.design.name} activated")
        ctx.queue_unit_trigger(unit, player, trigger, target_id=payload.target_id)
        process_effect_queue(ctx)
        return ActionResult.success_with_state(state)

    def _handle_concede(self, state: GameState, action: Action, ctx: ResolutionContext) -> ActionResult:
        """Conceding player loses, in any phase."""
        loser: PlayerState = state.get_player(action.payload.player_id)
        state.winner_id = state.opponent_of(loser.player_id).player_id
        state.phase = GamePhase.ENDED
        ctx.changes.append(f"{loser.name} conceded")
        logger.info("Game %s: %s conceded", state.game_id, loser.player_id)
        return ActionResult.success_with_state(state)


def apply_action(state: GameState, action: Action, rules: RulesConfig | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rules=rules or DEFAULT_RULES)
    return reducer.apply(state, action)
