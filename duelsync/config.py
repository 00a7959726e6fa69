"""
Configuration - Rules constants and sync tuning.

Both clients of a room must run with the same RulesConfig, otherwise
they will compute different snapshots for the same action.

Environment overrides (all optional):
    DUELSYNC_STARTING_HEALTH    Starting health per player (default 30)
    DUELSYNC_MAX_BOARD_SIZE     Units per board (default 7)
    DUELSYNC_MAX_HAND_SIZE      Cards per hand (default 10)
    DUELSYNC_MAX_MANA           Mana ceiling (default 10)
    DUELSYNC_FATIGUE            "1"/"0" - fatigue damage on empty draws
    DUELSYNC_TIE_POLICY         "draw" or "active_player_loses"
    DUELSYNC_POLL_INTERVAL      Seconds between room polls (default 2.0)
    DUELSYNC_PUBLISH_TIMEOUT    Seconds before a publish is abandoned (default 10.0)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import os


class TiePolicy(Enum):
    """What happens when both players drop to 0 health in one transition."""
    DRAW = "draw"
    ACTIVE_PLAYER_LOSES = "active_player_loses"


@dataclass(frozen=True)
class RulesConfig:
    """Game rules constants."""
    starting_health: int = 30
    starting_hand_size: int = 3  # First player
    second_player_hand_size: int = 4  # Second player gets an extra card
    max_hand_size: int = 10
    max_board_size: int = 7
    max_mana: int = 10
    fatigue_enabled: bool = True
    tie_policy: TiePolicy = TiePolicy.DRAW
    max_effect_chain: int = 64
    turn_time_limit: int = 90  # Seconds


@dataclass(frozen=True)
class SyncConfig:
    """Sync transport tuning."""
    poll_interval: float = 2.0
    publish_timeout: float = 10.0


@dataclass(frozen=True)
class EngineConfig:
    rules: RulesConfig = field(default_factory=RulesConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)


DEFAULT_RULES = RulesConfig()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_config() -> EngineConfig:
    """
    Build an EngineConfig from DUELSYNC_* environment variables.

    Unset variables fall back to the defaults above.
    """
    tie_raw = os.getenv("DUELSYNC_TIE_POLICY", TiePolicy.DRAW.value)
    try:
        tie_policy = TiePolicy(tie_raw)
    except ValueError:
        raise ValueError(f"DUELSYNC_TIE_POLICY must be one of "
                         f"{[p.value for p in TiePolicy]}, got {tie_raw!r}")

    rules = RulesConfig(
        starting_health=_env_int("DUELSYNC_STARTING_HEALTH", DEFAULT_RULES.starting_health),
        max_board_size=_env_int("DUELSYNC_MAX_BOARD_SIZE", DEFAULT_RULES.max_board_size),
        max_hand_size=_env_int("DUELSYNC_MAX_HAND_SIZE", DEFAULT_RULES.max_hand_size),
        max_mana=_env_int("DUELSYNC_MAX_MANA", DEFAULT_RULES.max_mana),
        fatigue_enabled=os.getenv("DUELSYNC_FATIGUE", "1") not in {"0", "false", "no"},
        tie_policy=tie_policy,
    )
    sync = SyncConfig(
        poll_interval=_env_float("DUELSYNC_POLL_INTERVAL", SyncConfig.poll_interval),
        publish_timeout=_env_float("DUELSYNC_PUBLISH_TIMEOUT", SyncConfig.publish_timeout),
    )
    return EngineConfig(rules=rules, sync=sync)
