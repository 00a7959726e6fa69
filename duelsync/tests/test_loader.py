"""
Tests for deck/player loading and card validation.
"""

import json

import pytest

from ..card_schema import CardCategory, Keyword, validate_catalog, validate_card_design
from ..errors import EmptyDeckError, InvalidCardRecordError, PlayerNotFoundError, UnknownDeckError
from ..games.starter import ARCANE_DECK, STARTER_CARDS, VANGUARD_DECK, build_deck_document
from ..loader import CardRecord, InMemoryDeckLoader, LoadResult


def card_row(**overrides):
    row = {
        "id": "squire",
        "name": "Squire",
        "mana_cost": 1,
        "attack": 1,
        "health": 2,
        "rarity": "common",
        "category": "unit",
    }
    row.update(overrides)
    return row


def deck_doc(*rows, deck_id="d1"):
    return {
        "deck_id": deck_id,
        "name": "Test Deck",
        "cards": [{"card_instance_id": f"ci{i}", "design": row} for i, row in enumerate(rows)],
    }


class TestCardRecord:
    """Tests for the record boundary."""

    def test_keyword_rows(self):
        """Joined keyword rows and plain strings are both accepted."""
        joined = CardRecord.model_validate(card_row(keywords=[{"keyword": "quick"}, {"keyword": "boost"}]))
        plain = CardRecord.model_validate(card_row(keywords=["quick", "boost"]))

        assert joined.to_design().keywords == (Keyword.QUICK, Keyword.BOOST)
        assert plain.to_design() == joined.to_design()

    def test_base_stats_fallback(self):
        record = CardRecord.model_validate(card_row(attack=None, health=None, base_attack=3, base_health=4))

        design = record.to_design()
        assert (design.attack, design.health) == (3, 4)

    def test_token_columns(self):
        record = CardRecord.model_validate(card_row(
            has_token=True, token_name="Pup", token_attack=1, token_health=1,
            token_trigger="on_destroy", token_count=2,
        ))

        token = record.to_design().token
        assert token.name == "Pup"
        assert token.count == 2
        assert token.trigger.value == "on_destroy"

    def test_action_card_drops_stats(self):
        record = CardRecord.model_validate(card_row(category="action", attack=3, health=3))

        design = record.to_design()
        assert design.category == CardCategory.ACTION
        assert design.attack is None and design.health is None

    def test_unit_without_health_rejected(self):
        with pytest.raises(ValueError):
            CardRecord.model_validate(card_row(health=None))


class TestInMemoryDeckLoader:
    """Tests for deck and player loading."""

    def test_starter_decks_load(self, loader):
        for deck_id in (VANGUARD_DECK, ARCANE_DECK):
            result = loader.load_deck(deck_id)
            assert result.ok
            assert len(result.value) == 20
            assert len({c.instance_id for c in result.value}) == 20

    def test_instance_ids_come_from_collection(self):
        loader = InMemoryDeckLoader(decks=[deck_doc(card_row())])

        cards = loader.load_deck("d1").unwrap()

        assert cards[0].instance_id == "hand_ci0"
        assert cards[0].card_instance_id == "ci0"

    def test_unknown_deck(self, loader):
        result = loader.load_deck("nope")

        assert not result.ok
        assert isinstance(result.error, UnknownDeckError)
        with pytest.raises(UnknownDeckError):
            result.unwrap()

    def test_invalid_record(self):
        loader = InMemoryDeckLoader(decks=[deck_doc(card_row(mana_cost=-1))])

        result = loader.load_deck("d1")

        assert isinstance(result.error, InvalidCardRecordError)
        assert result.error.details["errors"][0]["loc"][:2] == ["cards", 0]

    def test_inactive_cards_skipped(self):
        loader = InMemoryDeckLoader(decks=[deck_doc(card_row(), card_row(id="old", is_active=False))])

        cards = loader.load_deck("d1").unwrap()

        assert [c.design.id for c in cards] == ["squire"]

    def test_empty_deck(self):
        loader = InMemoryDeckLoader(decks=[deck_doc(card_row(is_active=False))])

        assert isinstance(loader.load_deck("d1").error, EmptyDeckError)

    def test_players(self, loader):
        alice = loader.load_player("alice").unwrap()

        assert (alice.player_id, alice.name) == ("alice", "Alice")
        assert isinstance(loader.load_player("mallory").error, PlayerNotFoundError)

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "decks.json"
        path.write_text(json.dumps({
            "decks": [build_deck_document(VANGUARD_DECK)],
            "players": [{"id": "carol", "name": "Carol"}],
        }))

        loader = InMemoryDeckLoader.from_json_file(path)

        assert loader.deck_ids == [VANGUARD_DECK]
        assert loader.load_player("carol").ok

    def test_load_result(self):
        assert LoadResult.success(3).unwrap() == 3
        assert not LoadResult.failure(UnknownDeckError("x")).ok


class TestCatalogValidation:
    def test_starter_set_is_valid(self):
        result = validate_catalog(STARTER_CARDS)

        assert result.valid, result.errors

    def test_duplicate_ids(self):
        result = validate_catalog([STARTER_CARDS[0], STARTER_CARDS[0]])

        assert not result.valid
        assert any("Duplicate" in e for e in result.errors)

    def test_summon_without_token(self):
        rally = next(c for c in STARTER_CARDS if c.id == "rally")
        broken = type(rally)(
            id="broken", name="Broken", mana_cost=1, category=rally.category, effects=rally.effects,
        )

        result = validate_card_design(broken)

        assert not result.valid
