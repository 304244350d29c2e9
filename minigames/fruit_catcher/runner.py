# minigames/fruit_catcher/runner.py
"""
MatchRunner: the scheduler around one or two GameSessions.

Every mutation of a session (frame tick, 1 Hz countdown, AI decision, human
input routed through ``with runner.lock``) happens under one lock, so a host
that drives the runner from several threads still has a single writer.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from .events import SessionEnded

logger = logging.getLogger(__name__)

MINIGAME_ID = "fruit_catcher"
FRAME_MS = 1000.0 / 60.0
SECOND_MS = 1000.0


class MatchSide:
    def __init__(self, label, session, ai=None):
        self.label = label
        self.session = session
        self.ai = ai
        self.next_second = None
        self.result: Optional[Dict] = None

    def pack_state(self):
        state = self.session.snapshot()
        state["side"] = self.label
        state["ai"] = self.ai.difficulty if self.ai else None
        return state


class MatchRunner:
    def __init__(self, context=None, on_match_end: Optional[Callable] = None):
        self.sides: Dict[str, MatchSide] = {}
        self.lock = threading.RLock()
        self.context = context
        self.on_match_end = on_match_end
        self.now = 0.0
        self.started = False
        self.decided = False
        self.winner: Optional[str] = None

    # ---- setup ----
    def add_side(self, label, session, ai=None):
        if label in self.sides:
            raise ValueError(f"duplicate side {label!r}")
        side = MatchSide(label, session, ai)
        self.sides[label] = side
        session.events.subscribe(SessionEnded, lambda ev, s=side: self._on_session_end(s, ev))
        return side

    def side(self, label) -> MatchSide:
        return self.sides[label]

    def labels(self) -> List[str]:
        return list(self.sides)

    def start(self, now=0.0, configs=None):
        """Start every side. ``configs`` maps side label -> session config."""
        configs = configs or {}
        with self.lock:
            self.now = float(now)
            self.started = True
            self.decided = False
            self.winner = None
            for side in self.sides.values():
                side.result = None
                side.session.start(configs.get(side.label), now=self.now)
                side.next_second = self.now + SECOND_MS
                if side.ai:
                    side.ai.start(self.now)
        logger.info("Match started: %s", ", ".join(self.sides))

    def stop(self, reason="Match stopped"):
        """End every side without play deciding it: no winner, no victories."""
        with self.lock:
            already_decided = self.decided
            if not already_decided:
                self.decided = True
                self.winner = None
            for side in self.sides.values():
                if side.ai:
                    side.ai.stop()
                side.session.stop(reason)
            if not already_decided and self.started:
                logger.info("Match stopped without a winner: %s", reason)
                self._conclude()

    def _conclude(self):
        if self.context is not None:
            self._record_match()
        if callable(self.on_match_end):
            try:
                self.on_match_end(self.winner, self)
            except Exception:
                logger.exception("on_match_end callback failed")

    # ---- driving ----
    @property
    def finished(self):
        return self.started and not any(s.session.is_active for s in self.sides.values())

    def advance(self, now):
        with self.lock:
            self.now = now
            for side in self.sides.values():
                session = side.session
                if not session.is_active:
                    continue
                session.tick(now)
                while session.is_active and now >= side.next_second:
                    session.tick_1hz()
                    side.next_second += SECOND_MS
            for side in self.sides.values():
                if not side.ai:
                    continue
                if side.session.is_active:
                    side.ai.update(now)
                elif side.ai.running:
                    side.ai.stop()

    def run_for(self, duration_ms, frame_ms=FRAME_MS):
        """Drive a virtual clock until every side ended or ``duration_ms`` elapsed."""
        end = self.now + duration_ms
        while not self.finished and self.now < end:
            self.advance(min(end, self.now + frame_ms))
        return self.now

    def snapshot(self):
        with self.lock:
            return {
                "now": self.now,
                "finished": self.finished,
                "winner": self.winner,
                "sides": [s.pack_state() for s in self.sides.values()],
            }

    # ---- results ----
    def _on_session_end(self, side, event):
        side.result = {
            "score": event.score,
            "level": event.level,
            "is_victory": event.is_victory,
            "reason": event.reason,
        }
        if self.context is not None:
            self.context.record_session(side.label, **side.result)
        if self.decided:
            return

        others = [s for s in self.sides.values() if s is not side]
        self.decided = True
        if event.is_victory:
            self.winner = side.label
        elif others:
            self.winner = others[0].label
        else:
            self.winner = None

        # head-to-head: the first finisher decides the match for everyone
        for other in others:
            if other.ai:
                other.ai.stop()
            if other.session.is_active:
                reason = "Opponent eliminated" if other.label == self.winner else "Opponent won"
                other.session.stop(reason, is_victory=other.label == self.winner)

        logger.info("Match decided: winner=%s (%s ended: %s)", self.winner, side.label, event.reason)
        self._conclude()

    def _record_match(self):
        local = self.context.flags.get("local_side") or next(iter(self.sides))
        if self.winner is None:
            outcome = "lose"
        else:
            outcome = "win" if self.winner == local else "lose"
        self.context.last_result = {
            "minigame": MINIGAME_ID,
            "outcome": outcome,
            "winner": self.winner,
            "details": {label: s.result for label, s in self.sides.items()},
        }
