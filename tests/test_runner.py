import random
import unittest

from game_context import GameContext
from minigames.fruit_catcher.ai import AIEngine
from minigames.fruit_catcher.items import ItemType, Lane
from minigames.fruit_catcher.runner import MatchRunner
from minigames.fruit_catcher.session import GameSession, SessionPhase

from fruit_helpers import place


def _duel(context=None, with_ai=False, on_match_end=None):
    runner = MatchRunner(context, on_match_end=on_match_end)
    left = GameSession("left", rng=random.Random(1))
    right = GameSession("right", rng=random.Random(2))
    runner.add_side("left", left)
    ai = AIEngine(right, "hard", rng=random.Random(3)) if with_ai else None
    runner.add_side("right", right, ai)
    return runner, left, right


class TestMatchRunner(unittest.TestCase):
    def test_duplicate_side_rejected(self):
        runner, left, _ = _duel()
        with self.assertRaises(ValueError):
            runner.add_side("left", left)

    def test_start_applies_configs(self):
        runner, left, right = _duel()
        runner.start(now=0, configs={"left": {"start_level": 3}, "right": {"reward_modifier": "gun"}})
        self.assertEqual(left.level, 3)
        self.assertTrue(right.gun.owned)
        self.assertFalse(runner.finished)
        self.assertEqual(runner.labels(), ["left", "right"])

    def test_one_hz_cadence(self):
        runner, left, right = _duel()
        runner.start(now=0)
        left.spawning_paused = right.spawning_paused = True
        for frame in range(1, 61):
            runner.advance(frame * 50.0)  # three seconds
        self.assertEqual(left.time_limit, 57)
        self.assertEqual(right.time_limit, 57)
        # a long stall catches up second by second
        runner.advance(3000 + 5000)
        self.assertEqual(left.time_limit, 52)

    def test_first_loss_decides_match(self):
        outcomes = []
        context = GameContext()
        context.flags["local_side"] = "left"
        runner, left, right = _duel(context, on_match_end=lambda winner, r: outcomes.append(winner))
        runner.start(now=0)
        left.stop("BOMB! Game Over")
        self.assertEqual(runner.winner, "right")
        self.assertEqual(outcomes, ["right"])
        self.assertEqual(right.phase, SessionPhase.ENDED)
        self.assertTrue(right.is_victory)
        self.assertEqual(right.end_reason, "Opponent eliminated")
        self.assertTrue(runner.finished)
        self.assertEqual(context.last_result["outcome"], "lose")
        self.assertEqual(context.session_results["left"]["reason"], "BOMB! Game Over")

    def test_boss_victory_decides_match(self):
        context = GameContext()
        context.flags["local_side"] = "left"
        runner, left, right = _duel(context)
        runner.start(now=0, configs={"left": {"start_level": 15}})
        left.boss.hp = 1
        rocket = place(left, ItemType.ROCKET, Lane.CENTER, y=430)
        left.collisions.resolve(rocket)
        self.assertEqual(runner.winner, "left")
        self.assertEqual(right.end_reason, "Opponent won")
        self.assertFalse(right.is_victory)
        context.apply_result()
        self.assertEqual(context.stats["wins"], 1)
        self.assertEqual(context.stats["boss_defeats"], 1)

    def test_decided_only_once(self):
        outcomes = []
        runner, left, right = _duel(on_match_end=lambda winner, r: outcomes.append(winner))
        runner.start(now=0)
        left.stop("BOMB! Game Over")
        runner.stop("Stopped")
        self.assertEqual(outcomes, ["right"])
        self.assertEqual(runner.winner, "right")
        self.assertTrue(runner.finished)

    def test_forced_stop_has_no_winner(self):
        outcomes = []
        context = GameContext()
        context.flags["local_side"] = "left"
        runner, left, right = _duel(context, on_match_end=lambda winner, r: outcomes.append(winner))
        runner.start(now=0)
        runner.stop("Stopped by admin")
        self.assertIsNone(runner.winner)
        self.assertEqual(outcomes, [None])
        self.assertTrue(runner.finished)
        for session in (left, right):
            self.assertFalse(session.is_victory)
            self.assertEqual(session.end_reason, "Stopped by admin")
        self.assertFalse(any(r["is_victory"] for r in context.last_result["details"].values()))
        self.assertEqual(context.last_result["outcome"], "lose")
        self.assertEqual(context.stats["boss_defeats"], 0)

    def test_restart_after_forced_stop(self):
        runner, left, right = _duel()
        runner.start(now=0)
        runner.stop("Stopped")
        runner.start(now=1000)
        self.assertFalse(runner.decided)
        left.stop("Game Over!")
        self.assertEqual(runner.winner, "right")

    def test_ai_side_is_driven_and_stopped(self):
        runner, left, right = _duel(with_ai=True)
        runner.start(now=0)
        ai = runner.side("right").ai
        self.assertTrue(ai.running)
        place(right, ItemType.FRUIT_C, Lane.LEFT, y=200)
        right.spawning_paused = True
        runner.advance(200)
        self.assertEqual(right.player_lane, Lane.LEFT)
        left.stop("Game Over!")
        self.assertFalse(ai.running)

    def test_ai_duel_runs_to_completion(self):
        runner = MatchRunner()
        for label, seed in (("a", 10), ("b", 20)):
            session = GameSession(label, rng=random.Random(seed))
            runner.add_side(label, session, AIEngine(session, "easy", rng=random.Random(seed + 1)))
        runner.start(now=0)
        runner.run_for(10 * 60 * 1000)
        if not runner.finished:
            runner.stop("limit")
        self.assertTrue(runner.finished)
        snap = runner.snapshot()
        self.assertEqual({s["side"] for s in snap["sides"]}, {"a", "b"})
        self.assertIn(snap["winner"], ("a", "b", None))


class TestGameContext(unittest.TestCase):
    def test_apply_result_counts(self):
        ctx = GameContext()
        ctx.apply_result()
        self.assertEqual(ctx.stats["matches_played"], 0)
        ctx.last_result = {"outcome": "forfeit"}
        ctx.apply_result()
        ctx.last_result = {"outcome": "win"}
        ctx.apply_result()
        self.assertEqual(ctx.stats["losses"], 1)
        self.assertEqual(ctx.stats["wins"], 1)
        self.assertEqual(ctx.stats["matches_played"], 2)

    def test_record_session_tracks_local_best(self):
        ctx = GameContext()
        ctx.flags["local_side"] = "player"
        ctx.record_session("cpu", 9000, 10, False, "x")
        ctx.record_session("player", 1200, 2, False, "y")
        self.assertEqual(ctx.stats["best_score"], 1200)
        self.assertEqual(ctx.stats["best_level"], 2)
        self.assertIn("cpu", ctx.session_results)


if __name__ == "__main__":
    unittest.main()
