"""
Deck Loader - Resolves deck and player ids for game creation.

The loader is an external collaborator; this module defines its
interface and a document-backed implementation. Loading never throws
through the caller's async layers: every call returns a LoadResult
carrying either the value or a typed LoadError, and unwrap() raises
that error where the caller wants exceptions.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from ..engine_core.setup import PlayerProfile
from ..engine_core.state import CardInHand
from ..errors import (
    EmptyDeckError,
    InvalidCardRecordError,
    LoadError,
    PlayerNotFoundError,
    UnknownDeckError,
)
from .records import DeckRecord, PlayerRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LoadResult(Generic[T]):
    """Tagged result: value on success, error otherwise."""
    value: T | None = None
    error: LoadError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> LoadResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: LoadError) -> LoadResult[T]:
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the typed load error."""
        if self.error is not None:
            raise self.error
        return self.value


class DeckLoader(ABC):
    """Resolves deck ids to playable cards and player ids to profiles."""

    @abstractmethod
    def load_deck(self, deck_id: str) -> LoadResult[list[CardInHand]]:
        ...

    @abstractmethod
    def load_player(self, player_id: str) -> LoadResult[PlayerProfile]:
        ...


def cards_from_record(deck: DeckRecord) -> LoadResult[list[CardInHand]]:
    """
    Turn a validated deck record into cards.

    Inactive designs are skipped. A deck left with no cards fails with
    EmptyDeckError.
    """
    cards = []
    for entry in deck.cards:
        if not entry.design.is_active:
            logger.debug("Skipping inactive card %s in deck %s", entry.design.id, deck.deck_id)
            continue
        cards.append(CardInHand(
            instance_id=f"hand_{entry.card_instance_id}",
            card_instance_id=entry.card_instance_id,
            design=entry.design.to_design(),
        ))
    if not cards:
        return LoadResult.failure(EmptyDeckError(
            f"Deck {deck.deck_id} has no playable cards",
            details={"deck_id": deck.deck_id},
        ))
    return LoadResult.success(cards)


def parse_deck(doc: dict[str, Any]) -> LoadResult[DeckRecord]:
    """Validate a raw deck document."""
    try:
        return LoadResult.success(DeckRecord.model_validate(doc))
    except ValidationError as e:
        return LoadResult.failure(InvalidCardRecordError(
            f"Deck {doc.get('deck_id', '?')} failed validation: {e.error_count()} error(s)",
            details={"errors": [
                {"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()
            ]},
        ))


class InMemoryDeckLoader(DeckLoader):
    """
    Loader over raw deck and player documents.

    Documents are kept raw and validated on every load, the way a
    database-backed loader validates the rows it fetches.
    """

    def __init__(
        self,
        decks: list[dict[str, Any]] | None = None,
        players: list[dict[str, Any]] | None = None,
    ):
        self._decks: dict[str, dict[str, Any]] = {}
        self._players: dict[str, dict[str, Any]] = {}
        for doc in decks or []:
            self.add_deck(doc)
        for doc in players or []:
            self.add_player(doc)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryDeckLoader:
        """Load {"decks": [...], "players": [...]} from a JSON file."""
        with open(path, encoding="utf-8") as f:
            doc = json.load(f)
        return cls(decks=doc.get("decks", []), players=doc.get("players", []))

    def add_deck(self, doc: dict[str, Any]) -> None:
        self._decks[str(doc.get("deck_id"))] = doc

    def add_player(self, doc: dict[str, Any]) -> None:
        self._players[str(doc.get("id"))] = doc

    @property
    def deck_ids(self) -> list[str]:
        return list(self._decks)

    def load_deck(self, deck_id: str) -> LoadResult[list[CardInHand]]:
        doc = self._decks.get(deck_id)
        if doc is None:
            return LoadResult.failure(UnknownDeckError(
                f"Deck {deck_id} not found", details={"deck_id": deck_id},
            ))
        parsed = parse_deck(doc)
        if not parsed.ok:
            return LoadResult.failure(parsed.error)
        return cards_from_record(parsed.value)

    def load_player(self, player_id: str) -> LoadResult[PlayerProfile]:
        doc = self._players.get(player_id)
        if doc is None:
            return LoadResult.failure(PlayerNotFoundError(
                f"Player {player_id} not found", details={"player_id": player_id},
            ))
        try:
            record = PlayerRecord.model_validate(doc)
        except ValidationError as e:
            return LoadResult.failure(PlayerNotFoundError(
                f"Player {player_id} record is invalid: {e.error_count()} error(s)",
                details={"player_id": player_id},
            ))
        return LoadResult.success(PlayerProfile(
            player_id=record.id,
            name=record.name,
            avatar_url=record.avatar_url,
        ))
