# minigames/fruit_catcher/progression.py
import logging

from .config import CFG

logger = logging.getLogger(__name__)


def level_for_score(score):
    return score // CFG["LEVEL_SCORE"] + 1


def _capped(level):
    return max(1, min(level, CFG["LEVEL_EFFECT_CAP"]))


def initial_speed(start_level):
    return CFG["BASE_SPEED"] + (_capped(start_level) - 1)


def initial_spawn_rate(start_level):
    rate = CFG["SPAWN_RATE"] - (_capped(start_level) - 1) * CFG["SPAWN_RATE_STEP"]
    return max(CFG["SPAWN_RATE_FLOOR"], rate)


class ProgressionController:
    """Maps score to level and applies the per-level pacing changes to a session."""

    def __init__(self, session):
        self.session = session

    def on_score(self):
        """Recompute the level after a score change. Returns the levels gained."""
        s = self.session
        new_level = level_for_score(s.score)
        gained = 0
        while s.level < new_level:
            s.level += 1
            gained += 1
            self._level_up()
            if not s.is_active:
                break
        return gained

    def _level_up(self):
        s = self.session
        s.bombs_spawned_this_level = 0
        s.time_limit = CFG["TIME_LIMIT"]
        if s.level <= CFG["LEVEL_EFFECT_CAP"]:
            s.base_speed += 1
            if not s.is_boss_active and s.spawn_rate > CFG["SPAWN_RATE_FLOOR"]:
                s.spawn_rate = max(CFG["SPAWN_RATE_FLOOR"], s.spawn_rate - CFG["SPAWN_RATE_STEP"])
        logger.info("Level up -> %s (speed=%s rate=%sms)", s.level, s.base_speed, s.spawn_rate)
        s._emit_level_up()
        if s.level >= CFG["BOSS_LEVEL"] and not s.is_boss_active:
            s.start_boss_fight()
