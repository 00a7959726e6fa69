"""
Starter set - The built-in demo game content.

This module contains:
- A small card set covering every keyword and most effect actions
- Two 20-card decks in the stored record shape
- Demo players and a preloaded loader
"""

from .cards import STARTER_CARDS, get_card_by_id, starter_catalog
from .decks import (
    ARCANE_DECK,
    STARTER_DECK_LISTS,
    STARTER_PLAYERS,
    VANGUARD_DECK,
    build_deck_document,
    design_to_record,
    starter_loader,
)

__all__ = [
    "STARTER_CARDS",
    "get_card_by_id",
    "starter_catalog",
    "ARCANE_DECK",
    "STARTER_DECK_LISTS",
    "STARTER_PLAYERS",
    "VANGUARD_DECK",
    "build_deck_document",
    "design_to_record",
    "starter_loader",
]
