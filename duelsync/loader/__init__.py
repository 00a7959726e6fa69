"""Deck/identity loading - typed results, records validated at the boundary."""

from ..engine_core.setup import PlayerProfile
from .deck_loader import (
    DeckLoader,
    InMemoryDeckLoader,
    LoadResult,
    cards_from_record,
    parse_deck,
)
from .records import CardRecord, DeckCardRecord, DeckRecord, EffectRecord, PlayerRecord

__all__ = [
    "PlayerProfile",
    "DeckLoader",
    "InMemoryDeckLoader",
    "LoadResult",
    "cards_from_record",
    "parse_deck",
    "CardRecord",
    "DeckCardRecord",
    "DeckRecord",
    "EffectRecord",
    "PlayerRecord",
]
