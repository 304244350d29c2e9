# minigames/fruit_catcher/events.py
"""Discrete events a session emits for renderers and other listeners."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

logger = logging.getLogger(__name__)


class EventBus:
    """Per-session publish/subscribe. Two sessions never share a bus."""

    def __init__(self):
        self._listeners: Dict[Type, List[Callable]] = {}

    def subscribe(self, event_type: Type, callback: Callable):
        self._listeners.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: Type, callback: Callable):
        listeners = self._listeners.get(event_type)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def publish(self, event: Any):
        event_type = type(event)
        for callback in list(self._listeners.get(event_type, ())):
            try:
                callback(event)
            except Exception:
                logger.exception("EventBus listener failed for %s", event_type.__name__)

    def clear(self):
        self._listeners.clear()


# --- EVENTS ---

@dataclass
class ItemSpawned:
    item_id: int
    item_type: str
    lane: int
    y: float


@dataclass
class ItemRemoved:
    item_id: int
    reason: str  # "miss" | "offscreen" | "collision" | "gun"


@dataclass
class CollisionResolved:
    item_id: int
    item_type: str
    lane: int
    outcome: str  # "score" | "boss_hit" | "blocked" | "bomb"
    points: int = 0
    cause: str = "catch"


@dataclass
class BossDamaged:
    hp: int
    max_hp: int


@dataclass
class FeedbackMessage:
    text: str
    persist: bool = False


@dataclass
class ScoreChanged:
    score: int
    level: int


@dataclass
class LevelUp:
    level: int
    base_speed: float
    spawn_rate: int


@dataclass
class BossPhaseStarted:
    hp: int
    x: float


@dataclass
class WeaponActivated:
    activated_at: float
    expires_at: float


@dataclass
class WeaponExpired:
    at: float


@dataclass
class SessionEnded:
    score: int
    level: int
    is_victory: bool
    reason: str
    at: Optional[float] = None
