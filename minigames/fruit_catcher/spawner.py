# minigames/fruit_catcher/spawner.py
import itertools
import logging
import random

from .config import CFG
from .items import FallingItem, ItemType, Lane

logger = logging.getLogger(__name__)


def _weighted(roll, table):
    """Walk cumulative weights; the last entry absorbs rounding slack."""
    acc = 0.0
    names = list(table)
    for name in names:
        acc += table[name]
        if roll < acc:
            return name
    return names[-1]


def lane_under_boss(x):
    if x < 33:
        return Lane.LEFT
    if x < 66:
        return Lane.CENTER
    return Lane.RIGHT


class Spawner:
    """Creates falling items: lane, type, value and speed."""

    def __init__(self, rng=None):
        self.rng = rng or random.Random()
        self._ids = itertools.count()

    def pick_lane(self, boss=None):
        # rockets have to be catchable right under the boss
        if boss is not None:
            return lane_under_boss(boss.x)
        return Lane(self.rng.randrange(CFG["LANES"]))

    def roll_type(self, boss_mode=False):
        roll = self.rng.random()
        if boss_mode:
            pick = _weighted(roll, CFG["BOSS_WEIGHTS"])
            if pick == "FRUIT":
                pick = _weighted(self.rng.random(), CFG["BOSS_FRUIT_SPLIT"])
        else:
            pick = _weighted(roll, CFG["NORMAL_WEIGHTS"])
        return ItemType[pick]

    def spawn(self, base_speed, bombs_spawned=0, boss=None, now=0.0):
        """
        Build one item. Bombs past the per-level cap turn into the common fruit;
        the caller owns the bomb counter and bumps it when a BOMB comes back.
        """
        lane = self.pick_lane(boss)
        item_type = self.roll_type(boss_mode=boss is not None)
        if item_type is ItemType.BOMB and bombs_spawned >= CFG["BOMB_CAP"]:
            item_type = ItemType.FRUIT_A
        y = CFG["BOSS_SPAWN_Y"] if boss is not None else CFG["SPAWN_Y"]
        speed = base_speed + self.rng.random()
        item = FallingItem(next(self._ids), item_type, lane, y, speed, spawned_at=now)
        logger.debug("Spawned %r", item)
        return item
