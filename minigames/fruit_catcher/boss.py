# minigames/fruit_catcher/boss.py
"""Scripted boss fight: INACTIVE -> ACTIVE -> DEFEATED."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .config import CFG

logger = logging.getLogger(__name__)


class BossPhase(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    DEFEATED = "defeated"


@dataclass
class BossState:
    hp: int
    max_hp: int
    x: float  # horizontal position, % of field width
    direction: int = 1

    def pack_state(self):
        return {"hp": self.hp, "max_hp": self.max_hp, "x": self.x, "direction": self.direction}


class BossEncounter:
    def __init__(self):
        self.phase = BossPhase.INACTIVE
        self.state = None

    @property
    def active(self):
        return self.phase is BossPhase.ACTIVE

    def reset(self):
        self.phase = BossPhase.INACTIVE
        self.state = None

    def enter(self):
        """Move to ACTIVE. Returns False when the fight already started (or ended)."""
        if self.phase is not BossPhase.INACTIVE:
            return False
        self.phase = BossPhase.ACTIVE
        self.state = BossState(hp=CFG["BOSS_HP"], max_hp=CFG["BOSS_HP"], x=CFG["BOSS_START_X"])
        logger.info("Boss fight started (hp=%s)", self.state.hp)
        return True

    def move(self):
        if not self.active:
            return
        st = self.state
        lo, hi = CFG["BOSS_MIN_X"], CFG["BOSS_MAX_X"]
        st.x += st.direction * CFG["BOSS_STEP"]
        # bounce off the walls, folding the overshoot back inside
        if st.x > hi:
            st.x = hi - (st.x - hi)
            st.direction = -1
        elif st.x < lo:
            st.x = lo + (lo - st.x)
            st.direction = 1

    def damage(self, amount=1):
        """Apply rocket damage. Returns True on the hit that defeats the boss."""
        if not self.active:
            return False
        st = self.state
        st.hp = max(0, st.hp - amount)
        if st.hp == 0:
            self.phase = BossPhase.DEFEATED
            logger.info("Boss defeated")
            return True
        return False
