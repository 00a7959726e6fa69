"""
Tests for snapshot documents.
"""

import json

import pytest

from ..engine_core import (
    Action,
    GamePhase,
    snapshot_from_dict,
    snapshot_from_json,
    snapshot_to_dict,
    snapshot_to_json,
)
from ..engine_core.reducer import apply_action
from ..errors import SnapshotFormatError


@pytest.fixture
def started_game(new_game):
    state = apply_action(new_game, Action.complete_mulligan("alice")).new_state
    return apply_action(state, Action.complete_mulligan("bob")).new_state


class TestSnapshotDocuments:
    def test_json_round_trip(self, started_game):
        """A stored snapshot decodes to an equal GameState."""
        restored = snapshot_from_json(snapshot_to_json(started_game))

        assert restored == started_game
        assert restored.phase == GamePhase.PLAYING
        assert restored.last_action.action_type == started_game.last_action.action_type

    def test_document_shape(self, started_game):
        doc = snapshot_to_dict(started_game)

        assert doc["phase"] == "playing"
        assert doc["players"][0]["player_id"] == "alice"
        assert doc["last_action"]["action_type"] == "complete_mulligan"
        card = doc["players"][0]["hand"][0]["design"]
        assert isinstance(card["keywords"], list)
        json.dumps(doc)

    def test_missing_field(self, started_game):
        doc = snapshot_to_dict(started_game)
        del doc["players"][0]["player_id"]

        with pytest.raises(SnapshotFormatError) as exc_info:
            snapshot_from_dict(doc)

        assert exc_info.value.errors
        assert exc_info.value.errors[0]["loc"][:3] == ["players", 0, "player_id"]

    def test_bad_enum(self, started_game):
        doc = snapshot_to_dict(started_game)
        doc["phase"] = "overtime"

        with pytest.raises(SnapshotFormatError):
            snapshot_from_dict(doc)

    def test_not_json(self):
        with pytest.raises(SnapshotFormatError):
            snapshot_from_json("{not json")

    def test_not_an_object(self):
        with pytest.raises(SnapshotFormatError):
            snapshot_from_json("[1, 2, 3]")
