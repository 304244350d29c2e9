# minigames/fruit_catcher/config.py
"""Tunables, difficulty profiles and session config parsing."""

from __future__ import annotations

import copy
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .items import RewardModifier

# -------------------------
# Base Config (tweak-friendly)
# -------------------------
BASE_CFG = {
    # Field geometry (pixels, top of play area is y=0)
    "LANES": 3,
    "FIELD_HEIGHT": 500,  # items past this line are gone
    "ITEM_SIZE": 60,
    "HITBOX_TOP": 420,
    "HITBOX_BOTTOM": 480,
    "HITBOX_INSET": 10,  # both edges, avoids single-pixel flicker
    "SPAWN_Y": -60,
    "BOSS_SPAWN_Y": 60,  # items drop out from under the boss
    # Pacing
    "TIME_LIMIT": 60,  # seconds per level
    "BASE_SPEED": 3,  # px per tick at level 1
    "SPAWN_RATE": 1500,  # ms between spawns at level 1
    "SPAWN_RATE_STEP": 100,
    "SPAWN_RATE_FLOOR": 500,
    "LEVEL_SCORE": 1000,
    "LEVEL_EFFECT_CAP": 9,  # speed / rate stop changing past this level
    "BOMB_CAP": 5,  # per level
    # Lives
    "MAX_MISSES": 2,
    "MAX_MISSES_EXTRA_LIFE": 3,
    # Weapon
    "GUN_DURATION": 10000,  # ms
    "BULLET_TRAVEL": 200,  # ms from claim to resolution
    "GUN_BOMB_POINTS": 200,
    # Feedback
    "FEEDBACK_FADE": 1000,  # ms
    # Pose classifier debounce
    "POSE_THRESHOLD": 0.7,
    "POSE_SMOOTHING_FRAMES": 3,
    # Boss
    "BOSS_LEVEL": 15,
    "BOSS_HP": 15,
    "BOSS_SPAWN_RATE": 700,
    "BOSS_SPEED": 11,
    "BOSS_STEP": 0.5,  # % of field width per tick
    "BOSS_MIN_X": 10.0,
    "BOSS_MAX_X": 90.0,
    "BOSS_START_X": 50.0,
    # Spawn weights (cumulative thresholds are derived from these)
    "NORMAL_WEIGHTS": {"FRUIT_A": 0.5, "FRUIT_B": 0.3, "FRUIT_C": 0.1, "BOMB": 0.1},
    "BOSS_WEIGHTS": {"ROCKET": 0.3, "BOMB": 0.3, "FRUIT": 0.4},
    "BOSS_FRUIT_SPLIT": {"FRUIT_A": 0.5, "FRUIT_B": 0.3, "FRUIT_C": 0.2},
    # AI
    "AI_REACH_TOP": 0,
    "AI_REACH_BOTTOM": 420,
    "AI_BOMB_SCORE": -1000,
    "AI_ROCKET_SCORE": 500,
    "AI_PANIC_SCORE": -500,  # at or below this, stay put
}

CFG = copy.deepcopy(BASE_CFG)

DIFFICULTY_PROFILES = {
    "easy": {"reaction_ms": 800, "error_rate": 0.30, "min_survivor_level": 2},
    "medium": {"reaction_ms": 500, "error_rate": 0.10, "min_survivor_level": 5},
    "hard": {"reaction_ms": 200, "error_rate": 0.0, "min_survivor_level": 8},
    "hell": {"reaction_ms": 50, "error_rate": 0.0, "min_survivor_level": 12},
}

# difficulties allowed to fire the weapon on sight of a bomb
WEAPON_DIFFICULTIES = ("hard", "hell")


def normalize_difficulty(value) -> str:
    """
    Accepts strings or numbers and returns 'easy' | 'medium' | 'hard' | 'hell'.
    Strings accept aliases: e/0, m/n/normal/1, h/2, x/3.
    Numbers map as:
      <=0.5 -> easy, <=1.5 -> medium, <=2.5 -> hard, else hell.
    """
    try:
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("e", "easy", "0"):
                return "easy"
            if s in ("m", "medium", "n", "normal", "1"):
                return "medium"
            if s in ("h", "hard", "2"):
                return "hard"
            if s in ("x", "hell", "3"):
                return "hell"
        elif value is not None:
            num = float(value)
            if num <= 0.5:
                return "easy"
            if num <= 1.5:
                return "medium"
            if num <= 2.5:
                return "hard"
            return "hell"
    except (TypeError, ValueError):
        pass
    return "medium"


def coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _pick(payload: Dict[str, Any], *keys):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return None


@dataclass
class SessionConfig:
    reward_modifier: RewardModifier = RewardModifier.NONE
    start_level: int = 1
    input_enabled: bool = True

    @classmethod
    def from_dict(cls, payload: Optional[Dict[str, Any]]) -> "SessionConfig":
        """Build a config from a loose dict; anything missing or malformed uses the default."""
        if isinstance(payload, SessionConfig):
            payload = payload.to_dict()
        payload = payload or {}
        cfg = cls()
        raw_reward = _pick(payload, "reward_modifier", "rewardModifier", "reward")
        cfg.reward_modifier = RewardModifier.parse(raw_reward)
        raw_level = _pick(payload, "start_level", "startLevel")
        cfg.start_level = max(1, coerce_int(raw_level, 1))
        raw_input = _pick(payload, "input_enabled", "inputEnabled", "isInputEnabled")
        cfg.input_enabled = coerce_bool(raw_input, True)
        return cfg

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["reward_modifier"] = RewardModifier.parse(self.reward_modifier).value
        return data
