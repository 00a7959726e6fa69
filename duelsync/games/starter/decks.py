"""
Starter Decks - Two 20-card decks and two demo players.

Decks are published as raw documents in the stored record shape so
they go through the same loader validation as real decks.
"""

from __future__ import annotations
from typing import Any

from ...card_schema import CardDesign
from ...loader import InMemoryDeckLoader
from .cards import get_card_by_id

VANGUARD_DECK = "starter_vanguard"
ARCANE_DECK = "starter_arcane"

STARTER_DECK_LISTS: dict[str, list[tuple[str, int]]] = {
    VANGUARD_DECK: [
        ("eager_recruit", 2),
        ("shield_bearer", 2),
        ("field_medic", 2),
        ("bomb_runner", 2),
        ("drill_sergeant", 2),
        ("hive_mother", 2),
        ("warden", 2),
        ("grand_champion", 2),
        ("rally", 2),
        ("volley", 1),
        ("warlord", 1),
    ],
    ARCANE_DECK: [
        ("eager_recruit", 2),
        ("field_scout", 2),
        ("firebrand", 2),
        ("shadow_blade", 2),
        ("frost_bolt", 2),
        ("hush", 2),
        ("recall", 1),
        ("arcane_insight", 2),
        ("fireball", 2),
        ("sparkcaller", 1),
        ("grand_champion", 1),
        ("warden", 1),
    ],
}

STARTER_PLAYERS: list[dict[str, Any]] = [
    {"id": "alice", "name": "Alice", "username": "alice"},
    {"id": "bob", "name": "Bob", "username": "bob"},
]


def design_to_record(design: CardDesign) -> dict[str, Any]:
    """Flatten a design into the stored card record shape."""
    record: dict[str, Any] = {
        "id": design.id,
        "name": design.name,
        "mana_cost": design.mana_cost,
        "attack": design.attack,
        "health": design.health,
        "rarity": design.rarity.value,
        "category": design.category.value,
        "ability_text": design.ability_text,
        "keywords": [{"keyword": k.value} for k in design.keywords],
        "effects": [
            {
                "trigger": e.trigger.value,
                "action": e.action.value,
                "target": e.target.value,
                "value": e.value,
                "priority": e.priority,
                "description": e.description,
            }
            for e in design.effects
        ],
        "has_token": design.token is not None,
    }
    if design.token is not None:
        token = design.token
        record.update({
            "token_name": token.name,
            "token_attack": token.attack,
            "token_health": token.health,
            "token_trigger": token.trigger.value if token.trigger else None,
            "token_count": token.count,
            "token_max_summons": token.max_summons,
            "token_keywords": [k.value for k in token.keywords],
        })
    return record


def build_deck_document(deck_id: str, owner_id: str | None = None) -> dict[str, Any]:
    """Build the raw document for one of the starter deck lists."""
    cards = []
    for card_id, copies in STARTER_DECK_LISTS[deck_id]:
        design = get_card_by_id(card_id)
        if design is None:
            raise KeyError(f"Unknown starter card {card_id}")
        for copy_index in range(copies):
            cards.append({
                "card_instance_id": f"{deck_id}:{card_id}:{copy_index}",
                "design": design_to_record(design),
            })
    return {
        "deck_id": deck_id,
        "name": deck_id.replace("_", " ").title(),
        "owner_id": owner_id,
        "cards": cards,
    }


def starter_loader() -> InMemoryDeckLoader:
    """Loader preloaded with both starter decks and the demo players."""
    return InMemoryDeckLoader(
        decks=[
            build_deck_document(VANGUARD_DECK, owner_id="alice"),
            build_deck_document(ARCANE_DECK, owner_id="bob"),
        ],
        players=STARTER_PLAYERS,
    )
