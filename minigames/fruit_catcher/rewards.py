# minigames/fruit_catcher/rewards.py
import random

from .items import RewardModifier

# Ten equal wheel segments, clockwise from the pointer.
ROULETTE_SEGMENTS = (
    RewardModifier.NONE,
    RewardModifier.GUN,
    RewardModifier.EXTRA_LIFE,
    RewardModifier.NONE,
    RewardModifier.GUN,
    RewardModifier.EXTRA_LIFE,
    RewardModifier.NONE,
    RewardModifier.GUN,
    RewardModifier.EXTRA_LIFE,
    RewardModifier.NONE,
)

REWARD_MESSAGES = {
    RewardModifier.NONE: "No luck! Starting without a bonus.",
    RewardModifier.GUN: "Auto gun for 10 seconds! (destroys bombs)",
    RewardModifier.EXTRA_LIFE: "Extra life!",
}


def segment_for_angle(total_rotation):
    """Index of the segment under the top pointer after rotating the wheel clockwise."""
    angle = (360 - (total_rotation % 360)) % 360
    return int(angle // (360 / len(ROULETTE_SEGMENTS))) % len(ROULETTE_SEGMENTS)


def roll_reward(rng=None):
    """Spin the wheel: 4/10 nothing, 3/10 gun, 3/10 extra life."""
    rng = rng or random
    spin = 360 * 5 + rng.uniform(0, 360)
    return ROULETTE_SEGMENTS[segment_for_angle(spin)]
