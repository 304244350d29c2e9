# minigames/fruit_catcher/inputs.py
"""Normalises raw input sources (pose labels, key names) into lane commands."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .items import Lane

POSE_LABELS = {
    "left": Lane.LEFT,
    "왼쪽": Lane.LEFT,
    "center": Lane.CENTER,
    "centre": Lane.CENTER,
    "가운데": Lane.CENTER,
    "중앙": Lane.CENTER,
    "right": Lane.RIGHT,
    "오른쪽": Lane.RIGHT,
}

# a/s/d plus the same physical keys on a Korean 2-set layout
KEY_LANES = {
    "a": Lane.LEFT,
    "ㅁ": Lane.LEFT,
    "left": Lane.LEFT,
    "s": Lane.CENTER,
    "ㄴ": Lane.CENTER,
    "down": Lane.CENTER,
    "d": Lane.RIGHT,
    "ㅇ": Lane.RIGHT,
    "right": Lane.RIGHT,
}

WEAPON_KEYS = ("w", "ㅈ", "up")


def lane_from_label(label) -> Optional[Lane]:
    if isinstance(label, Lane):
        return label
    if not isinstance(label, str):
        return None
    return POSE_LABELS.get(label.strip().lower())


def lane_from_key(key_name) -> Optional[Lane]:
    if not isinstance(key_name, str):
        return None
    return KEY_LANES.get(key_name.strip().lower())


def is_weapon_key(key_name) -> bool:
    return isinstance(key_name, str) and key_name.strip().lower() in WEAPON_KEYS


class PredictionStabilizer:
    """
    Debounces a noisy classifier. A label is only reported once the same class
    has been the top prediction, above ``threshold``, for ``smoothing_frames``
    consecutive frames. Until then the last stable label (or None) is returned.
    """

    def __init__(self, threshold: float = 0.7, smoothing_frames: int = 3):
        self.threshold = threshold
        self.smoothing_frames = max(1, int(smoothing_frames))
        self.reset()

    def reset(self):
        self._candidate = None
        self._streak = 0
        self.stable = None

    def stabilize(self, predictions: Iterable[Tuple[str, float]]) -> Optional[str]:
        best_name, best_prob = None, 0.0
        for name, prob in predictions or ():
            if prob > best_prob:
                best_name, best_prob = name, prob

        if best_name is None or best_prob < self.threshold:
            self._candidate = None
            self._streak = 0
            return self.stable

        if best_name == self._candidate:
            self._streak += 1
        else:
            self._candidate = best_name
            self._streak = 1

        if self._streak >= self.smoothing_frames:
            self.stable = best_name
        return self.stable
