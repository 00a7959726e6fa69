"""
Loader Records - Raw deck and player records, validated at the boundary.

Decks arrive as loosely shaped documents (database rows joined with
their keywords and effects, or JSON deck files). These pydantic models
are the only place such documents are interpreted; everything past the
loader works with CardDesign and CardInHand.

Accepted quirks of the stored shape:
- keywords as ["quick"] or as joined rows [{"keyword": "quick"}]
- unit stats in attack/health, falling back to base_attack/base_health
- token descriptor spread over flat token_* columns
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..card_schema import (
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


def _flatten_keywords(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, list):
        return [k.get("keyword") if isinstance(k, dict) else k for k in value]
    return value


class EffectRecord(BaseModel):
    """One row of a card's effects."""
    trigger: EffectTrigger
    action: EffectAction
    target: EffectTarget
    value: int = Field(default=0, ge=0)
    priority: int = 0
    description: Optional[str] = None

    model_config = {"extra": "ignore"}

    def to_effect(self) -> CardEffect:
        return CardEffect(
            trigger=self.trigger,
            action=self.action,
            target=self.target,
            value=self.value,
            priority=self.priority,
            description=self.description,
        )


class CardRecord(BaseModel):
    """A card design row with its keywords, effects and token columns."""
    id: str
    name: str
    mana_cost: int = Field(ge=0)
    attack: Optional[int] = None
    health: Optional[int] = None
    base_attack: Optional[int] = None
    base_health: Optional[int] = None
    rarity: Rarity = Rarity.COMMON
    category: CardCategory = CardCategory.UNIT
    ability_text: Optional[str] = None
    is_active: bool = True

    keywords: list[Keyword] = Field(default_factory=list)
    effects: list[EffectRecord] = Field(default_factory=list)

    has_token: bool = False
    token_name: Optional[str] = None
    token_attack: int = 1
    token_health: int = 1
    token_trigger: Optional[EffectTrigger] = None
    token_count: int = Field(default=1, ge=0)
    token_max_summons: int = Field(default=0, ge=0)
    token_keywords: list[Keyword] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("keywords", "token_keywords", mode="before")
    @classmethod
    def _keyword_rows(cls, value: Any) -> Any:
        return _flatten_keywords(value)

    @model_validator(mode="after")
    def _unit_stats(self) -> "CardRecord":
        if self.category == CardCategory.UNIT:
            if self.attack is None:
                self.attack = self.base_attack
            if self.health is None:
                self.health = self.base_health
            if self.attack is None or self.health is None:
                raise ValueError(f"unit card {self.id} needs attack and health")
            if self.health <= 0:
                raise ValueError(f"unit card {self.id} needs positive health")
        if self.has_token and not self.token_name:
            raise ValueError(f"card {self.id} has a token without a name")
        return self

    def to_design(self) -> CardDesign:
        token = None
        if self.has_token:
            token = TokenSpec(
                name=self.token_name or "Token",
                attack=self.token_attack,
                health=self.token_health,
                keywords=tuple(self.token_keywords),
                trigger=self.token_trigger,
                count=self.token_count,
                max_summons=self.token_max_summons,
            )
        is_unit = self.category == CardCategory.UNIT
        return CardDesign(
            id=self.id,
            name=self.name,
            mana_cost=self.mana_cost,
            attack=self.attack if is_unit else None,
            health=self.health if is_unit else None,
            rarity=self.rarity,
            category=self.category,
            effects=tuple(e.to_effect() for e in self.effects),
            keywords=tuple(dict.fromkeys(self.keywords)),
            token=token,
            ability_text=self.ability_text,
        )


class DeckCardRecord(BaseModel):
    """A card instance owned by a player and placed in a deck."""
    card_instance_id: str
    design: CardRecord


class DeckRecord(BaseModel):
    deck_id: str
    name: str = ""
    owner_id: Optional[str] = None
    cards: list[DeckCardRecord] = Field(default_factory=list)


class PlayerRecord(BaseModel):
    id: str
    name: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = {"extra": "ignore"}
