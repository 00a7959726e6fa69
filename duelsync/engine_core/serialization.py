"""
Snapshot serialization - GameState <-> JSON-compatible document.

The room store persists a whole snapshot as one document keyed by room
id. pydantic's TypeAdapter walks the engine dataclasses directly, so
the state model stays plain dataclasses and the document shape follows
their field names one to one.
"""

from __future__ import annotations
import json
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..errors import SnapshotFormatError
from .state import GameState

_snapshot_adapter: TypeAdapter[GameState] | None = None


def _adapter() -> TypeAdapter[GameState]:
    global _snapshot_adapter
    if _snapshot_adapter is None:
        _snapshot_adapter = TypeAdapter(GameState)
    return _snapshot_adapter


def snapshot_to_dict(state: GameState) -> dict[str, Any]:
    """Serialize a snapshot into a JSON-compatible dict."""
    return _adapter().dump_python(state, mode="json")


def snapshot_from_dict(doc: dict[str, Any]) -> GameState:
    """
    Rebuild a snapshot from a stored document.

    Raises:
        SnapshotFormatError: if the document does not describe a GameState
    """
    try:
        return _adapter().validate_python(doc)
    except ValidationError as e:
        raise SnapshotFormatError(
            f"Invalid snapshot document: {e.error_count()} error(s)",
            errors=[
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ],
        ) from e


def snapshot_to_json(state: GameState) -> str:
    return json.dumps(snapshot_to_dict(state))


def snapshot_from_json(raw: str | bytes) -> GameState:
    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e
    if not isinstance(doc, dict):
        raise SnapshotFormatError("Snapshot document must be a JSON object")
    return snapshot_from_dict(doc)
