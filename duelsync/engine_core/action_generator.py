"""
Action Generator - Generates legal actions from a game state.

The action generator is used by:
1. The CLI simulation driver to pick moves
2. The API's legal-actions endpoint (UI highlights)
3. Tests, to check that every reachable state has an outgoing action

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified. Mulligans are
offered only as "keep" (no replacements); the number of replacement
combinations is not worth enumerating.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..card_schema import EffectTrigger
from ..config import DEFAULT_RULES, RulesConfig
from .action import Action
from .combat import valid_attack_targets
from .effect_resolver import valid_effect_targets
from .state import GamePhase, GameState, PlayerState


@dataclass
class ActionGenerator:
    """Generates legal actions for one player of a game."""
    rules: RulesConfig = field(default_factory=lambda: DEFAULT_RULES)

    def generate(self, state: GameState, player_id: str) -> list[Action]:
        """
        Generate the actions `player_id` may take right now.

        Concede is always included while the game is running. The
        non-active player gets nothing else during the playing phase.
        """
        player = state.get_player(player_id)
        if player is None or state.phase == GamePhase.ENDED:
            return []

        if state.phase == GamePhase.MULLIGAN:
            actions = []
            if not player.mulligan_complete:
                actions.append(Action.complete_mulligan(player_id))
            actions.append(Action.concede(player_id))
            return actions

        if player_id != state.active_player_id:
            return [Action.concede(player_id)]

        actions = []
        actions.extend(self._generate_play_actions(state, player))
        actions.extend(self._generate_attack_actions(state, player))
        actions.extend(self._generate_activation_actions(state, player))
        actions.append(Action.end_turn(player_id))
        actions.append(Action.concede(player_id))
        return actions

    def _generate_play_actions(self, state: GameState, player: PlayerState) -> list[Action]:
        actions = []
        board_full = len(player.board) >= self.rules.max_board_size
        for card in player.hand:
            design = card.design
            if design.mana_cost > player.mana:
                continue
            if design.is_unit and board_full:
                continue

            targeted = [e for e in design.effects_for(EffectTrigger.ON_PLAY) if e.needs_target]
            if not targeted:
                actions.append(Action.play_card(player.player_id, card.instance_id))
                continue

            # One action per target accepted by every targeted effect
            targets = set(valid_effect_targets(state, targeted[0], player.player_id))
            for effect in targeted[1:]:
                targets &= set(valid_effect_targets(state, effect, player.player_id))
            for target_id in sorted(targets):
                actions.append(Action.play_card(player.player_id, card.instance_id, target_id=target_id))
            # Playing without a target lets the effect fizzle
            actions.append(Action.play_card(player.player_id, card.instance_id))
        return actions

    def _generate_activation_actions(self, state: GameState, player: PlayerState) -> list[Action]:
        actions = []
        trigger = EffectTrigger.ACTIVATED.value
        for unit in player.board:
            if not unit.can_activate:
                continue
            targeted = [e for e in unit.design.effects_for(EffectTrigger.ACTIVATED) if e.needs_target]
            if not targeted:
                actions.append(Action.trigger_effect(player.player_id, unit.instance_id, trigger))
                continue
            targets = set(valid_effect_targets(state, targeted[0], player.player_id))
            for effect in targeted[1:]:
                targets &= set(valid_effect_targets(state, effect, player.player_id))
            for target_id in sorted(targets):
                actions.append(Action.trigger_effect(player.player_id, unit.instance_id, trigger, target_id))
        return actions

    def _generate_attack_actions(self, state: GameState, player: PlayerState) -> list[Action]:
        actions = []
        for unit in player.board:
            if not unit.ready_to_attack:
                continue
            for target_id in valid_attack_targets(state, unit.instance_id):
                actions.append(Action.attack(player.player_id, unit.instance_id, target_id))
        return actions


def legal_actions(state: GameState, player_id: str, rules: RulesConfig | None = None) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    generator = ActionGenerator(rules=rules or DEFAULT_RULES)
    return generator.generate(state, player_id)

