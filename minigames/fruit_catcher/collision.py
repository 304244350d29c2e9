# minigames/fruit_catcher/collision.py
import logging

from .config import CFG
from .events import CollisionResolved, ItemRemoved
from .items import ItemType

logger = logging.getLogger(__name__)


def in_hitbox(item):
    top = item.y
    bottom = item.y + CFG["ITEM_SIZE"]
    inset = CFG["HITBOX_INSET"]
    return bottom > CFG["HITBOX_TOP"] + inset and top < CFG["HITBOX_BOTTOM"] - inset


class CollisionResolver:
    """Finds items overlapping the player's hitbox and applies their outcome."""

    def __init__(self, session):
        self.session = session

    def detect(self, items, player_lane):
        hits = [
            it for it in items
            if not it.targeted and it.lane == player_lane and in_hitbox(it)
        ]
        # nearest to the player first
        hits.sort(key=lambda it: it.y, reverse=True)
        return hits

    def resolve(self, item, cause="catch"):
        """
        Remove ``item`` and apply its effect. ``cause`` is "catch" for the
        player's hitbox and "gun" for an auto-claim. Returns the outcome string,
        or None if the item was already gone.
        """
        s = self.session
        if s.items.pop(item.id, None) is None:
            return None
        s.events.publish(ItemRemoved(item.id, "gun" if cause == "gun" else "collision"))

        points = 0
        if item.type is ItemType.ROCKET:
            outcome = "boss_hit"
            s.show_feedback("ATTACK!")
        elif item.type is ItemType.BOMB:
            if cause == "gun" or s.gun.active:
                outcome = "score"
                points = CFG["GUN_BOMB_POINTS"]
            elif s.is_invincible:
                outcome = "blocked"
                s.show_feedback("BLOCKED!")
            else:
                outcome = "bomb"
        else:
            outcome = "score"
            points = item.points

        logger.debug("Resolved %r via %s -> %s (+%s)", item, cause, outcome, points)
        s.events.publish(
            CollisionResolved(item.id, item.type.name, int(item.lane), outcome, points, cause)
        )
        if outcome == "boss_hit":
            s.damage_boss()
        elif outcome == "bomb":
            s.stop("BOMB! Game Over")
        elif outcome == "score":
            s.add_score(points)
        return outcome
