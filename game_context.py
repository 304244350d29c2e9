"""
game_context.py
---------------
Shared player context for Sky Fruit Catcher.
Tracks wins, losses, best score, boss defeats, total playtime and the result
of the most recent match.
"""


class GameContext:
    def __init__(self):
        self.stats = {
            "wins": 0,
            "losses": 0,
            "matches_played": 0,
            "best_score": 0,
            "best_level": 1,
            "boss_defeats": 0,
            "total_time": 0.0,  # seconds spent in matches
        }

        self.flags = {}  # e.g. {"local_side": "player", "difficulty": "hard"}
        self.last_result = {}  # filled by the runner when a match is decided
        self.session_results = {}  # side label -> last session end

    # -----------------------------------------------------
    #   Core logic
    # -----------------------------------------------------
    def record_session(self, side, score, level, is_victory, reason):
        """Store how one side's session ended."""
        self.session_results[side] = {
            "score": score,
            "level": level,
            "is_victory": is_victory,
            "reason": reason,
        }
        if side == self.flags.get("local_side", side):
            self.stats["best_score"] = max(self.stats["best_score"], score)
            self.stats["best_level"] = max(self.stats["best_level"], level)
            # a duel can also be won by outlasting the opponent
            if is_victory and reason == "Victory!":
                self.stats["boss_defeats"] += 1

    def apply_result(self):
        """Apply the most recent match result to cumulative stats."""
        if not self.last_result:
            return

        outcome = self.last_result.get("outcome", "")
        self.stats["matches_played"] += 1
        if outcome == "win":
            self.stats["wins"] += 1
        elif outcome in ("lose", "forfeit"):
            self.stats["losses"] += 1

    def add_playtime(self, dt):
        """Add delta-time (in seconds) to total runtime."""
        self.stats["total_time"] += dt

    def summary(self):
        return {
            "stats": self.stats,
            "flags": {k: v for k, v in self.flags.items() if isinstance(v, (str, int, float, bool))},
            "last_result": self.last_result,
            "session_results": self.session_results,
        }

    def __repr__(self):
        return (
            f"<GameContext wins={self.stats['wins']} "
            f"losses={self.stats['losses']} best={self.stats['best_score']} "
            f"time={self.stats['total_time']:.1f}s>"
        )
