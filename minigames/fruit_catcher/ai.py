# minigames/fruit_catcher/ai.py
import logging
import random

from .config import CFG, DIFFICULTY_PROFILES, WEAPON_DIFFICULTIES, normalize_difficulty
from .items import ItemType, Lane
from .timers import TimerQueue

logger = logging.getLogger(__name__)


class AIEngine:
    """
    Rule-based opponent. Reads a GameSession's public state every
    ``reaction_ms`` and drives it through the same input port a human uses.

    Below ``min_survivor_level`` the session is made invincible, so weaker
    profiles still survive long enough to be a fair opponent.
    """

    def __init__(self, session, difficulty="medium", rng=None):
        self.session = session
        self.difficulty = normalize_difficulty(difficulty)
        profile = DIFFICULTY_PROFILES[self.difficulty]
        self.reaction_ms = profile["reaction_ms"]
        self.error_rate = profile["error_rate"]
        self.min_survivor_level = profile["min_survivor_level"]
        self.rng = rng or random.Random()
        self.timers = TimerQueue()
        self._tick = None

    # ---- scheduling ----
    @property
    def running(self):
        return self._tick is not None

    def start(self, now=0.0):
        self.stop()
        self._tick = self.timers.call_every(now, self.reaction_ms, self.decide, name=f"ai:{self.difficulty}")

    def stop(self):
        self.timers.cancel_all()
        self._tick = None

    def update(self, now):
        if self._tick is not None:
            self.timers.advance(now)

    # ---- policy ----
    def visible_items(self):
        top, bottom = CFG["AI_REACH_TOP"], CFG["AI_REACH_BOTTOM"]
        items = [it for it in self.session.items.values() if top < it.y < bottom]
        items.sort(key=lambda it: it.y, reverse=True)
        return items

    def score_lanes(self, items):
        scores = []
        for lane in Lane:
            nearest = next((it for it in items if it.lane == lane), None)
            if nearest is None:
                score = 0
            elif nearest.type is ItemType.BOMB:
                score = CFG["AI_BOMB_SCORE"]
            elif nearest.type is ItemType.ROCKET:
                score = CFG["AI_ROCKET_SCORE"]
            else:
                score = nearest.points
            scores.append((lane, score))
        return scores

    def decide(self):
        game = self.session
        if not game.is_active:
            return None

        game.is_invincible = game.level < self.min_survivor_level

        items = self.visible_items()
        if not items:
            if self.difficulty == "hell":
                self._move_to(Lane.CENTER)
            return None

        scores = self.score_lanes(items)
        best_lane, best_score = scores[0]
        for lane, score in scores[1:]:
            if score > best_score:
                best_lane, best_score = lane, score

        target = game.player_lane
        if not game.is_invincible and self.rng.random() < self.error_rate:
            target = Lane(self.rng.randrange(3))
        elif best_score > CFG["AI_PANIC_SCORE"]:
            target = best_lane

        if self.difficulty in WEAPON_DIFFICULTIES and not game.gun.active:
            has_bomb = any(it.type is ItemType.BOMB for it in items)
            if has_bomb and (game.gun.owned or game.dev_gun_mode):
                game.activate_weapon()

        self._move_to(target)
        return target

    def _move_to(self, lane):
        if lane != self.session.player_lane:
            self.session.set_input(lane)
