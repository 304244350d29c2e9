# minigames/fruit_catcher/items.py
"""Plain value types shared by the session, its components and the AI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class Lane(IntEnum):
    LEFT = 0
    CENTER = 1
    RIGHT = 2

    @classmethod
    def coerce(cls, value) -> Optional["Lane"]:
        """Return a Lane for 0..2 / Lane values, None for anything else."""
        if isinstance(value, bool):
            return None
        if isinstance(value, Lane):
            return value
        if isinstance(value, int) and 0 <= value <= 2:
            return cls(value)
        return None


class ItemType(Enum):
    FRUIT_A = ("apple", 100)
    FRUIT_B = ("banana", 200)
    FRUIT_C = ("dragon", 300)
    BOMB = ("bomb", 0)
    ROCKET = ("rocket", 0)

    def __init__(self, label, points):
        self.label = label
        self.points = points

    @property
    def is_fruit(self) -> bool:
        return self in (ItemType.FRUIT_A, ItemType.FRUIT_B, ItemType.FRUIT_C)

    @property
    def counts_as_miss(self) -> bool:
        return self.is_fruit


class RewardModifier(Enum):
    NONE = "none"
    EXTRA_LIFE = "extra_life"
    GUN = "gun"

    @classmethod
    def parse(cls, value) -> "RewardModifier":
        if isinstance(value, RewardModifier):
            return value
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("life", "extra_life", "extralife", "extra-life"):
                return cls.EXTRA_LIFE
            if s == "gun":
                return cls.GUN
        return cls.NONE


class FallingItem:
    def __init__(self, item_id, item_type, lane, y, speed, spawned_at=0.0):
        self.id = item_id
        self.type = item_type
        self.lane = lane
        self.y = float(y)  # vertical position; negative is above the play area
        self.speed = float(speed)
        self.points = item_type.points
        self.targeted = False  # claimed by an in-flight gun bullet
        self.spawned_at = spawned_at

    def update(self):
        self.y += self.speed

    def pack_state(self):
        return {
            "id": self.id,
            "type": self.type.name,
            "lane": int(self.lane),
            "y": self.y,
            "targeted": self.targeted,
        }

    def __repr__(self):
        return f"<FallingItem #{self.id} {self.type.name} lane={int(self.lane)} y={self.y:.1f}>"


@dataclass
class GunState:
    owned: bool = False
    active: bool = False
    activated_at: Optional[float] = None
