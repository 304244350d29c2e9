# minigames/fruit_catcher/timers.py
"""Cancellable timers driven by whatever clock the owner ticks with.

Nothing here sleeps or spawns threads: a timer fires only when its owner calls
``advance(now)`` with a time at or past its due time.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Optional


class Timer:
    __slots__ = ("due", "interval", "callback", "cancelled", "name")

    def __init__(self, due: float, callback: Callable, interval: Optional[float] = None, name: str = ""):
        self.due = due
        self.interval = interval
        self.callback = callback
        self.cancelled = False
        self.name = name

    def cancel(self):
        self.cancelled = True

    @property
    def repeating(self) -> bool:
        return self.interval is not None

    def __repr__(self):
        state = "cancelled" if self.cancelled else f"due={self.due:.0f}"
        return f"<Timer {self.name or self.callback!r} {state}>"


class TimerQueue:
    def __init__(self):
        self._heap: List[tuple] = []
        self._seq = itertools.count()

    def call_later(self, now: float, delay: float, callback: Callable, name: str = "") -> Timer:
        timer = Timer(now + delay, callback, name=name)
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        return timer

    def call_every(self, now: float, interval: float, callback: Callable, name: str = "") -> Timer:
        if interval <= 0:
            raise ValueError("interval must be positive")
        timer = Timer(now + interval, callback, interval=interval, name=name)
        heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
        return timer

    def advance(self, now: float) -> int:
        """Fire every timer due at or before ``now`` in due order. Returns how many fired."""
        fired = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, timer = heapq.heappop(self._heap)
            if timer.cancelled:
                continue
            if timer.repeating:
                timer.due += timer.interval
                heapq.heappush(self._heap, (timer.due, next(self._seq), timer))
            timer.callback()
            fired += 1
        return fired

    def cancel_all(self):
        for _, _, timer in self._heap:
            timer.cancel()
        self._heap.clear()

    def pending(self) -> int:
        return sum(1 for _, _, t in self._heap if not t.cancelled)

    def __len__(self):
        return self.pending()
