"""
Card Designs - Immutable card definitions.

A CardDesign is authored once and never mutated at runtime. Runtime
copies (cards in hand, units on board) hold a reference to their design
and track their own stats.

Effects are flat (trigger, action, target, value, priority) records:
- trigger: when the effect fires
- action: what it does
- target: who it hits, resolved lazily against the board
- priority: lower resolves first among effects fired together
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class CardCategory(Enum):
    """Unit cards stay on the board, action cards resolve and leave."""
    UNIT = "unit"
    ACTION = "action"


class Rarity(Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class Keyword(Enum):
    """Static unit abilities."""
    FRONTLINE = "frontline"  # Enemy attacks must target frontline units first
    QUICK = "quick"  # Can attack the turn it is played
    EVASION = "evasion"  # Cannot be chosen by enemy effects
    BOOST = "boost"  # Enters with +1/+1


class EffectTrigger(Enum):
    ON_PLAY = "on_play"
    ON_DESTROY = "on_destroy"
    ON_ATTACK = "on_attack"
    ON_DAMAGED = "on_damaged"
    START_OF_TURN = "start_of_turn"
    END_OF_TURN = "end_of_turn"
    # Fired by the player through effect_trigger, once per turn
    ACTIVATED = "activated"


class EffectAction(Enum):
    DAMAGE = "damage"
    HEAL = "heal"
    DRAW = "draw"
    BUFF_ATTACK = "buff_attack"
    BUFF_HEALTH = "buff_health"
    DESTROY = "destroy"
    SUMMON = "summon"
    SILENCE = "silence"
    RETURN_HAND = "return_hand"
    STUN = "stun"


class EffectTarget(Enum):
    SELF = "self"
    FRIENDLY_UNIT = "friendly_unit"
    ENEMY_UNIT = "enemy_unit"
    ANY_UNIT = "any_unit"
    FRIENDLY_PLAYER = "friendly_player"
    ENEMY_PLAYER = "enemy_player"
    ALL_FRIENDLY = "all_friendly"
    ALL_ENEMIES = "all_enemies"
    ALL_UNITS = "all_units"
    RANDOM_ENEMY = "random_enemy"
    RANDOM_FRIENDLY = "random_friendly"


# Targets that need a target_id chosen by the player
CHOSEN_TARGETS = frozenset({
    EffectTarget.FRIENDLY_UNIT,
    EffectTarget.ENEMY_UNIT,
    EffectTarget.ANY_UNIT,
})

# Token triggers that fire once per unit lifetime
ONE_SHOT_TRIGGERS = frozenset({EffectTrigger.ON_PLAY, EffectTrigger.ON_DESTROY})


@dataclass(frozen=True)
class CardEffect:
    """A single triggered effect on a card."""
    trigger: EffectTrigger
    action: EffectAction
    target: EffectTarget
    value: int = 0
    priority: int = 0
    description: str | None = None

    @property
    def needs_target(self) -> bool:
        return self.target in CHOSEN_TARGETS


@dataclass(frozen=True)
class TokenSpec:
    """
    Token a unit can summon.

    On one-shot triggers (on_play, on_destroy) `count` tokens are summoned.
    On repeatable triggers one token is summoned per firing.
    `max_summons` caps the total per unit (0 means no cap).
    """
    name: str
    attack: int = 1
    health: int = 1
    keywords: tuple[Keyword, ...] = ()
    trigger: EffectTrigger | None = None
    count: int = 1
    max_summons: int = 0


@dataclass(frozen=True)
class CardDesign:
    """
    Immutable card definition.

    `attack`/`health` are None for action cards.
    `keywords` is ordered for stable serialization but treated as a set.
    """
    id: str
    name: str
    mana_cost: int
    attack: int | None = None
    health: int | None = None
    rarity: Rarity = Rarity.COMMON
    category: CardCategory = CardCategory.UNIT
    effects: tuple[CardEffect, ...] = ()
    keywords: tuple[Keyword, ...] = ()
    token: TokenSpec | None = None
    ability_text: str | None = None

    @property
    def is_unit(self) -> bool:
        return self.category == CardCategory.UNIT

    def has_keyword(self, keyword: Keyword) -> bool:
        return keyword in self.keywords

    def effects_for(self, trigger: EffectTrigger) -> list[CardEffect]:
        """Effects matching a trigger, in ascending priority (stable)."""
        return sorted(
            (e for e in self.effects if e.trigger == trigger),
            key=lambda e: e.priority,
        )

    @property
    def has_activated_ability(self) -> bool:
        if self.token is not None and self.token.trigger == EffectTrigger.ACTIVATED:
            return True
        return any(e.trigger == EffectTrigger.ACTIVATED for e in self.effects)

    def token_design(self) -> CardDesign | None:
        """Build the design for this card's token, if it has one."""
        if self.token is None:
            return None
        return CardDesign(
            id=f"{self.id}__token",
            name=self.token.name,
            mana_cost=0,
            attack=self.token.attack,
            health=self.token.health,
            rarity=Rarity.COMMON,
            category=CardCategory.UNIT,
            keywords=self.token.keywords,
            ability_text=", ".join(k.value for k in self.token.keywords) or None,
        )


@dataclass
class CardCatalog:
    """Lookup of designs by id."""
    designs: dict[str, CardDesign] = field(default_factory=dict)

    def add(self, design: CardDesign) -> None:
        self.designs[design.id] = design

    def get(self, design_id: str) -> CardDesign | None:
        return self.designs.get(design_id)

    def __contains__(self, design_id: str) -> bool:
        return design_id in self.designs

    def __len__(self) -> int:
        return len(self.designs)
