"""
Starter Cards - A small built-in card set.

Used by the CLI simulation, the API's demo rooms and the tests. The set
touches every keyword and most effect actions so that a simulated duel
exercises the resolver end to end.
"""

from ...card_schema import (
    CardCatalog,
    CardCategory,
    CardDesign,
    CardEffect,
    EffectAction,
    EffectTarget,
    EffectTrigger,
    Keyword,
    Rarity,
    TokenSpec,
)


def _effect(trigger, action, target, value=0, priority=0, description=None) -> CardEffect:
    return CardEffect(
        trigger=trigger,
        action=action,
        target=target,
        value=value,
        priority=priority,
        description=description,
    )


# =============================================================================
# Units
# =============================================================================

EAGER_RECRUIT = CardDesign(
    id="eager_recruit", name="Eager Recruit", mana_cost=1, attack=1, health=1,
    keywords=(Keyword.QUICK,), ability_text="Quick",
)

SHIELD_BEARER = CardDesign(
    id="shield_bearer", name="Shield Bearer", mana_cost=2, attack=1, health=4,
    keywords=(Keyword.FRONTLINE,), ability_text="Frontline",
)

FIELD_SCOUT = CardDesign(
    id="field_scout", name="Field Scout", mana_cost=2, attack=2, health=2,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.DRAW, EffectTarget.FRIENDLY_PLAYER, 1),),
    ability_text="On play: draw a card",
)

FIELD_MEDIC = CardDesign(
    id="field_medic", name="Field Medic", mana_cost=2, attack=2, health=2,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.HEAL, EffectTarget.FRIENDLY_PLAYER, 3),),
    ability_text="On play: restore 3 health to your hero",
)

BOMB_RUNNER = CardDesign(
    id="bomb_runner", name="Bomb Runner", mana_cost=2, attack=2, health=1,
    effects=(_effect(EffectTrigger.ON_DESTROY, EffectAction.DAMAGE, EffectTarget.RANDOM_ENEMY, 2),),
    ability_text="On destroy: deal 2 damage to a random enemy unit",
)

FIREBRAND = CardDesign(
    id="firebrand", name="Firebrand", mana_cost=3, attack=3, health=2,
    rarity=Rarity.UNCOMMON,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.DAMAGE, EffectTarget.ENEMY_UNIT, 2),),
    ability_text="On play: deal 2 damage to an enemy unit",
)

DRILL_SERGEANT = CardDesign(
    id="drill_sergeant", name="Drill Sergeant", mana_cost=3, attack=2, health=3,
    rarity=Rarity.UNCOMMON,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.BUFF_ATTACK, EffectTarget.ALL_FRIENDLY, 1),),
    ability_text="On play: your units gain +1 attack",
)

SHADOW_BLADE = CardDesign(
    id="shadow_blade", name="Shadow Blade", mana_cost=3, attack=3, health=2,
    rarity=Rarity.UNCOMMON, keywords=(Keyword.EVASION,), ability_text="Evasion",
)

SPARKCALLER = CardDesign(
    id="sparkcaller", name="Sparkcaller", mana_cost=3, attack=1, health=3,
    rarity=Rarity.UNCOMMON,
    effects=(_effect(EffectTrigger.ACTIVATED, EffectAction.DAMAGE, EffectTarget.ENEMY_UNIT, 1),),
    ability_text="Once per turn: deal 1 damage to an enemy unit",
)

HIVE_MOTHER = CardDesign(
    id="hive_mother", name="Hive Mother", mana_cost=4, attack=2, health=5,
    rarity=Rarity.RARE,
    token=TokenSpec(name="Drone", attack=1, health=1, trigger=EffectTrigger.ON_DAMAGED, max_summons=3),
    ability_text="When damaged: summon a 1/1 Drone (up to 3)",
)

WARDEN = CardDesign(
    id="warden", name="Stone Warden", mana_cost=5, attack=4, health=6,
    rarity=Rarity.RARE, keywords=(Keyword.FRONTLINE,),
    effects=(_effect(EffectTrigger.START_OF_TURN, EffectAction.HEAL, EffectTarget.SELF, 2),),
    ability_text="Frontline. Start of turn: heal 2",
)

GRAND_CHAMPION = CardDesign(
    id="grand_champion", name="Grand Champion", mana_cost=6, attack=5, health=5,
    rarity=Rarity.EPIC, keywords=(Keyword.BOOST,), ability_text="Boost",
)

WARLORD = CardDesign(
    id="warlord", name="Iron Warlord", mana_cost=7, attack=6, health=6,
    rarity=Rarity.LEGENDARY,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.DESTROY, EffectTarget.ENEMY_UNIT),),
    token=TokenSpec(name="Squire", attack=2, health=2, trigger=EffectTrigger.ON_DESTROY, count=2),
    ability_text="On play: destroy an enemy unit. On destroy: summon two 2/2 Squires",
)

# =============================================================================
# Actions
# =============================================================================

FIREBALL = CardDesign(
    id="fireball", name="Fireball", mana_cost=4, category=CardCategory.ACTION,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.DAMAGE, EffectTarget.ANY_UNIT, 5),),
    ability_text="Deal 5 damage to a unit",
)

FROST_BOLT = CardDesign(
    id="frost_bolt", name="Frost Bolt", mana_cost=2, category=CardCategory.ACTION,
    effects=(
        _effect(EffectTrigger.ON_PLAY, EffectAction.DAMAGE, EffectTarget.ENEMY_UNIT, 2, priority=0),
        _effect(EffectTrigger.ON_PLAY, EffectAction.STUN, EffectTarget.ENEMY_UNIT, priority=1),
    ),
    ability_text="Deal 2 damage to an enemy unit and stun it",
)

ARCANE_INSIGHT = CardDesign(
    id="arcane_insight", name="Arcane Insight", mana_cost=3, category=CardCategory.ACTION,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.DRAW, EffectTarget.FRIENDLY_PLAYER, 2),),
    ability_text="Draw 2 cards",
)

HUSH = CardDesign(
    id="hush", name="Hush", mana_cost=1, category=CardCategory.ACTION,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.SILENCE, EffectTarget.ENEMY_UNIT),),
    ability_text="Silence an enemy unit",
)

RECALL = CardDesign(
    id="recall", name="Recall", mana_cost=1, category=CardCategory.ACTION,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.RETURN_HAND, EffectTarget.ANY_UNIT),),
    ability_text="Return a unit to its owner's hand",
)

RALLY = CardDesign(
    id="rally", name="Rally the Militia", mana_cost=3, category=CardCategory.ACTION,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.SUMMON, EffectTarget.SELF, 2),),
    token=TokenSpec(name="Militia", attack=1, health=2),
    ability_text="Summon two 1/2 Militia",
)

VOLLEY = CardDesign(
    id="volley", name="Arrow Volley", mana_cost=3, category=CardCategory.ACTION,
    effects=(_effect(EffectTrigger.ON_PLAY, EffectAction.DAMAGE, EffectTarget.ALL_ENEMIES, 1),),
    ability_text="Deal 1 damage to all enemy units",
)

STARTER_CARDS = [
    EAGER_RECRUIT,
    SHIELD_BEARER,
    FIELD_SCOUT,
    FIELD_MEDIC,
    BOMB_RUNNER,
    FIREBRAND,
    DRILL_SERGEANT,
    SHADOW_BLADE,
    SPARKCALLER,
    HIVE_MOTHER,
    WARDEN,
    GRAND_CHAMPION,
    WARLORD,
    FIREBALL,
    FROST_BOLT,
    ARCANE_INSIGHT,
    HUSH,
    RECALL,
    RALLY,
    VOLLEY,
]


def starter_catalog() -> CardCatalog:
    return CardCatalog(designs={card.id: card for card in STARTER_CARDS})


def get_card_by_id(card_id: str) -> CardDesign | None:
    for card in STARTER_CARDS:
        if card.id == card_id:
            return card
    return None
