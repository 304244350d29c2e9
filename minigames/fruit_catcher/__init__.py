"""Sky Fruit Catcher: lane-catching arcade core with a boss fight and an AI opponent."""

from .ai import AIEngine
from .config import CFG, DIFFICULTY_PROFILES, SessionConfig
from .items import FallingItem, ItemType, Lane, RewardModifier
from .runner import MatchRunner
from .session import GameSession, SessionPhase

__all__ = [
    "AIEngine",
    "CFG",
    "DIFFICULTY_PROFILES",
    "SessionConfig",
    "FallingItem",
    "ItemType",
    "Lane",
    "RewardModifier",
    "MatchRunner",
    "GameSession",
    "SessionPhase",
]
