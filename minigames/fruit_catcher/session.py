# minigames/fruit_catcher/session.py
"""
GameSession: one side of a Sky Fruit Catcher match.

The session is a pure state machine. Something outside drives it:
  * tick(now)     once per rendered frame (now in milliseconds)
  * tick_1hz()    once per second for the level countdown
and input arrives through set_input() / activate_weapon(), whether it comes
from a keyboard, a pose classifier or the AIEngine.

Renderers read snapshot() and/or subscribe to ``session.events``.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional

from .boss import BossEncounter, BossState
from .collision import CollisionResolver
from .config import CFG, SessionConfig
from .events import (
    BossDamaged,
    BossPhaseStarted,
    EventBus,
    FeedbackMessage,
    ItemRemoved,
    ItemSpawned,
    LevelUp,
    ScoreChanged,
    SessionEnded,
    WeaponActivated,
    WeaponExpired,
)
from .inputs import PredictionStabilizer, lane_from_label
from .items import GunState, ItemType, Lane, RewardModifier
from .progression import ProgressionController, initial_spawn_rate, initial_speed
from .spawner import Spawner
from .timers import TimerQueue

logger = logging.getLogger(__name__)


def _monotonic_ms():
    return time.monotonic() * 1000.0


class SessionPhase(Enum):
    IDLE = "idle"
    NORMAL = "normal"
    BOSS_FIGHT = "boss_fight"
    ENDED = "ended"


class GameSession:
    def __init__(self, name="Player", rng=None, clock: Optional[Callable[[], float]] = None):
        self.name = name
        self.clock = clock or _monotonic_ms
        self.events = EventBus()
        self.timers = TimerQueue()
        self.spawner = Spawner(rng)
        self.collisions = CollisionResolver(self)
        self.progression = ProgressionController(self)
        self.boss_encounter = BossEncounter()
        self.pose_stabilizer = PredictionStabilizer(CFG["POSE_THRESHOLD"], CFG["POSE_SMOOTHING_FRAMES"])

        # Callback placeholders
        self.on_score_change: Optional[Callable] = None
        self.on_game_end: Optional[Callable] = None

        # Dev state (survives restarts)
        self.dev_gun_mode = False

        self.phase = SessionPhase.IDLE
        self._reset_state()

    def _reset_state(self):
        self.score = 0
        self.level = 1
        self.time_limit = CFG["TIME_LIMIT"]
        self.player_lane = Lane.CENTER
        self.missed_count = 0
        self.max_misses = CFG["MAX_MISSES"]
        self.is_invincible = False
        self.input_enabled = True
        self.reward_modifier = RewardModifier.NONE
        self.gun = GunState()
        self.base_speed = initial_speed(1)
        self.spawn_rate = initial_spawn_rate(1)
        self.bombs_spawned_this_level = 0
        self.items: Dict[int, Any] = {}
        self.spawning_paused = False
        self.last_spawn_time = 0.0
        self.now = 0.0
        self.feedback = ""
        self.feedback_persist = False
        self.end_reason: Optional[str] = None
        self.is_victory = False
        self._feedback_timer = None
        self._gun_timer = None

    # -----------------------------------------------------
    #   Read-only surface
    # -----------------------------------------------------
    @property
    def is_active(self):
        return self.phase in (SessionPhase.NORMAL, SessionPhase.BOSS_FIGHT)

    @property
    def is_boss_active(self):
        return self.phase is SessionPhase.BOSS_FIGHT

    @property
    def boss(self) -> Optional[BossState]:
        return self.boss_encounter.state

    @property
    def lives_remaining(self):
        return max(0, self.max_misses - self.missed_count)

    def snapshot(self) -> Dict[str, Any]:
        boss = self.boss
        return {
            "name": self.name,
            "phase": self.phase.value,
            "score": self.score,
            "level": self.level,
            "time_remaining": self.time_limit,
            "lives_remaining": self.lives_remaining,
            "player_lane": int(self.player_lane),
            "items": [it.pack_state() for it in self.items.values()],
            "boss": boss.pack_state() if boss and self.is_boss_active else None,
            "gun": {"owned": self.gun.owned, "active": self.gun.active},
            "invincible": self.is_invincible,
            "feedback": self.feedback,
            "end_reason": self.end_reason,
            "is_victory": self.is_victory,
        }

    def set_score_change_callback(self, cb):
        self.on_score_change = cb

    def set_game_end_callback(self, cb):
        self.on_game_end = cb

    # -----------------------------------------------------
    #   Lifecycle
    # -----------------------------------------------------
    def start(self, config=None, now=None):
        if self.is_active:
            return False
        cfg = SessionConfig.from_dict(config)

        self.timers.cancel_all()
        self.boss_encounter.reset()
        self.pose_stabilizer.reset()
        self._reset_state()

        self.now = self.clock() if now is None else float(now)
        self.last_spawn_time = self.now
        self.input_enabled = cfg.input_enabled
        self.level = cfg.start_level
        self.score = (self.level - 1) * CFG["LEVEL_SCORE"]
        self.base_speed = initial_speed(self.level)
        self.spawn_rate = initial_spawn_rate(self.level)

        self.reward_modifier = cfg.reward_modifier
        self.phase = SessionPhase.NORMAL
        logger.info("[%s] Session start level=%s reward=%s", self.name, self.level, cfg.reward_modifier.value)

        if cfg.reward_modifier is RewardModifier.EXTRA_LIFE:
            self.max_misses = CFG["MAX_MISSES_EXTRA_LIFE"]
            self.show_feedback("Bonus Life Active!")
        elif cfg.reward_modifier is RewardModifier.GUN:
            self.gun.owned = True
            self.show_feedback("Gun Ready! Press 'W'", persist=True)

        if self.level >= CFG["BOSS_LEVEL"]:
            self.start_boss_fight()
        return True

    def stop(self, reason="Time's Up!", is_victory=False):
        if not self.is_active:
            return False
        self.phase = SessionPhase.ENDED
        self.end_reason = reason
        self.is_victory = bool(is_victory)
        # no timer may touch this session once it has ended
        self.timers.cancel_all()
        self._gun_timer = None
        self._feedback_timer = None
        self.gun.active = False
        self.feedback = reason
        self.feedback_persist = True
        self.events.publish(FeedbackMessage(reason, persist=True))

        logger.info(
            "[%s] Session end: %s (victory=%s score=%s level=%s)",
            self.name, reason, self.is_victory, self.score, self.level,
        )
        self.events.publish(SessionEnded(self.score, self.level, self.is_victory, reason, self.now))
        self._safe_call(self.on_game_end, self.score, self.level, self.is_victory, self)
        return True

    def _safe_call(self, cb, *args):
        if not callable(cb):
            return
        try:
            cb(*args)
        except Exception:
            logger.exception("[%s] Callback %r failed", self.name, cb)

    # -----------------------------------------------------
    #   Ticks
    # -----------------------------------------------------
    def tick(self, now):
        if not self.is_active:
            return
        self.now = now

        self.timers.advance(now)
        if not self.is_active:
            return

        if self.is_boss_active:
            self.boss_encounter.move()

        if not self.spawning_paused and now - self.last_spawn_time > self.spawn_rate:
            self._spawn(now)
            self.last_spawn_time = now

        self._advance_items()
        if not self.is_active:
            return

        for item in self.collisions.detect(self.items.values(), self.player_lane):
            self.collisions.resolve(item, cause="catch")
            if not self.is_active:
                return

        if self.gun.active:
            self._auto_claim(now)

    def tick_1hz(self):
        if not self.is_active or self.is_boss_active:
            return
        self.time_limit = max(0, self.time_limit - 1)
        if self.time_limit <= 0:
            self.stop("Time Over!")

    def _spawn(self, now):
        boss = self.boss if self.is_boss_active else None
        item = self.spawner.spawn(
            self.base_speed,
            bombs_spawned=self.bombs_spawned_this_level,
            boss=boss,
            now=now,
        )
        if item.type is ItemType.BOMB:
            self.bombs_spawned_this_level += 1
        self.items[item.id] = item
        self.events.publish(ItemSpawned(item.id, item.type.name, int(item.lane), item.y))

    def _advance_items(self):
        for item in list(self.items.values()):
            if item.targeted:
                continue  # frozen until its bullet lands
            item.update()
            if item.y <= CFG["FIELD_HEIGHT"]:
                continue
            del self.items[item.id]
            missed = item.type.counts_as_miss and not self.is_invincible
            self.events.publish(ItemRemoved(item.id, "miss" if missed else "offscreen"))
            if not missed:
                continue
            self.missed_count += 1
            self.show_feedback("Missed!")
            if self.missed_count >= self.max_misses:
                self.stop("Game Over!")
                return

    def _auto_claim(self, now):
        for item in list(self.items.values()):
            if item.targeted or item.y <= 0:
                continue
            item.targeted = True
            self.timers.call_later(
                now, CFG["BULLET_TRAVEL"], partial(self._bullet_hit, item.id), name=f"bullet#{item.id}"
            )

    def _bullet_hit(self, item_id):
        item = self.items.get(item_id)
        if item is None or not self.is_active:
            return
        self.collisions.resolve(item, cause="gun")

    # -----------------------------------------------------
    #   Input port
    # -----------------------------------------------------
    def set_input(self, lane):
        if not self.is_active or not self.input_enabled:
            return False
        target = Lane.coerce(lane)
        if target is None:
            logger.debug("[%s] Ignoring lane %r", self.name, lane)
            return False
        if target != self.player_lane:
            self.player_lane = target
        return True

    def on_pose_detected(self, label):
        lane = lane_from_label(label)
        if lane is None:
            return False
        return self.set_input(lane)

    def on_pose_predictions(self, predictions):
        """
        Per-frame classifier output as ``(label, probability)`` pairs. The lane
        only changes once the debounced label is stable.
        """
        label = self.pose_stabilizer.stabilize(predictions)
        if label is None:
            return False
        return self.on_pose_detected(label)

    def activate_weapon(self):
        if not self.is_active or self.gun.active:
            return False
        if not (self.gun.owned or self.dev_gun_mode):
            return False
        self.gun.active = True
        self.gun.activated_at = self.now
        if not self.dev_gun_mode:
            self.gun.owned = False
        self._gun_timer = self.timers.call_later(
            self.now, CFG["GUN_DURATION"], self._expire_gun, name="gun"
        )
        logger.info("[%s] Weapon active", self.name)
        self.show_feedback("Auto Gun!", persist=True)
        self.events.publish(WeaponActivated(self.now, self.now + CFG["GUN_DURATION"]))
        return True

    def _expire_gun(self):
        self.gun.active = False
        self._gun_timer = None
        logger.info("[%s] Weapon expired", self.name)
        self.show_feedback("Gun End")
        self.events.publish(WeaponExpired(self.now))

    # -----------------------------------------------------
    #   Scoring / progression / boss
    # -----------------------------------------------------
    def add_score(self, points):
        if not self.is_active:
            return
        self.score += int(points)
        self.progression.on_score()
        self.events.publish(ScoreChanged(self.score, self.level))
        self._safe_call(self.on_score_change, self.score, self.level)

    def _emit_level_up(self):
        self.events.publish(LevelUp(self.level, self.base_speed, self.spawn_rate))

    def start_boss_fight(self):
        if not self.is_active or not self.boss_encounter.enter():
            return False
        self.phase = SessionPhase.BOSS_FIGHT
        self.spawning_paused = False
        self.spawn_rate = CFG["BOSS_SPAWN_RATE"]
        self.base_speed = CFG["BOSS_SPEED"]
        self.show_feedback("BOSS FIGHT! Catch Rockets!", persist=True)
        self.events.publish(BossPhaseStarted(self.boss.hp, self.boss.x))
        return True

    def damage_boss(self):
        if not self.is_boss_active:
            return
        defeated = self.boss_encounter.damage(1)
        self.events.publish(BossDamaged(self.boss.hp, self.boss.max_hp))
        if defeated:
            self.stop("Victory!", is_victory=True)

    # -----------------------------------------------------
    #   Feedback
    # -----------------------------------------------------
    def show_feedback(self, text, persist=False):
        self.feedback = text
        self.feedback_persist = persist
        if self._feedback_timer is not None:
            self._feedback_timer.cancel()
            self._feedback_timer = None
        if not persist and self.is_active:
            self._feedback_timer = self.timers.call_later(
                self.now, CFG["FEEDBACK_FADE"], self._clear_feedback, name="feedback"
            )
        self.events.publish(FeedbackMessage(text, persist))

    def _clear_feedback(self):
        self._feedback_timer = None
        self.feedback = ""

    def __repr__(self):
        return (
            f"<GameSession {self.name} phase={self.phase.value} score={self.score} "
            f"level={self.level} lane={self.player_lane.name}>"
        )
