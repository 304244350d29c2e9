import random
import unittest

from minigames.fruit_catcher.events import FeedbackMessage, SessionEnded, WeaponActivated, WeaponExpired
from minigames.fruit_catcher.items import ItemType, Lane, RewardModifier
from minigames.fruit_catcher.session import GameSession, SessionPhase

from fruit_helpers import place, record, started_session


class TestLifecycle(unittest.TestCase):
    def test_new_session_is_idle(self):
        session = GameSession()
        self.assertEqual(session.phase, SessionPhase.IDLE)
        self.assertFalse(session.is_active)
        self.assertFalse(session.set_input(Lane.LEFT))
        self.assertFalse(session.activate_weapon())

    def test_start_while_active_is_noop(self):
        session = started_session()
        session.add_score(300)
        self.assertFalse(session.start({"start_level": 5}, now=10))
        self.assertEqual(session.score, 300)
        self.assertEqual(session.level, 1)

    def test_start_level_seeds_score(self):
        session = started_session({"startLevel": 4})
        self.assertEqual(session.level, 4)
        self.assertEqual(session.score, 3000)
        self.assertEqual(session.base_speed, 6)
        self.assertEqual(session.spawn_rate, 1200)

    def test_restart_resets_state(self):
        session = started_session({"reward_modifier": "gun"})
        session.add_score(2500)
        place(session, ItemType.FRUIT_A, Lane.LEFT, y=100)
        session.stop("done")
        self.assertTrue(session.start(None, now=5000))
        self.assertEqual(session.score, 0)
        self.assertEqual(session.level, 1)
        self.assertEqual(session.items, {})
        self.assertFalse(session.gun.owned)
        self.assertEqual(session.missed_count, 0)
        self.assertEqual(session.player_lane, Lane.CENTER)
        self.assertIsNone(session.end_reason)

    def test_stop_is_terminal_and_reported_once(self):
        session = started_session()
        ended = record(session, SessionEnded)
        calls = []
        session.set_game_end_callback(lambda *args: calls.append(args))
        self.assertTrue(session.stop("Time's Up!"))
        self.assertFalse(session.stop("again"))
        self.assertEqual(len(ended), 1)
        self.assertEqual(ended[0].reason, "Time's Up!")
        self.assertEqual(len(calls), 1)
        self.assertEqual(calls[0][:3], (0, 1, False))
        self.assertIs(calls[0][3], session)

    def test_stop_cancels_pending_timers(self):
        session = started_session({"reward_modifier": "gun"})
        session.activate_weapon()
        session.show_feedback("hello")
        self.assertGreater(len(session.timers), 0)
        session.stop("Stopped")
        self.assertEqual(len(session.timers), 0)
        self.assertFalse(session.gun.active)
        session.tick(20000)
        self.assertEqual(session.feedback, "Stopped")

    def test_countdown_times_out(self):
        session = started_session()
        for _ in range(59):
            session.tick_1hz()
        self.assertTrue(session.is_active)
        self.assertEqual(session.time_limit, 1)
        session.tick_1hz()
        self.assertFalse(session.is_active)
        self.assertEqual(session.end_reason, "Time Over!")
        self.assertFalse(session.is_victory)

    def test_ended_session_ignores_everything(self):
        session = started_session()
        session.stop("x")
        session.add_score(1000)
        session.tick(100)
        session.tick_1hz()
        self.assertEqual(session.score, 0)
        self.assertEqual(session.level, 1)
        self.assertEqual(session.time_limit, 60)

    def test_callback_errors_do_not_escape(self):
        session = started_session()

        def boom(*_):
            raise RuntimeError("listener broke")

        session.set_score_change_callback(boom)
        session.events.subscribe(SessionEnded, boom)
        with self.assertLogs("minigames.fruit_catcher", level="ERROR"):
            session.add_score(100)
            session.stop("x")
        self.assertEqual(session.score, 100)
        self.assertEqual(session.phase, SessionPhase.ENDED)

    def test_score_callback_arguments(self):
        session = started_session()
        calls = []
        session.set_score_change_callback(lambda score, level: calls.append((score, level)))
        session.add_score(1200)
        self.assertEqual(calls, [(1200, 2)])

    def test_clock_used_when_now_omitted(self):
        session = GameSession(rng=random.Random(1), clock=lambda: 4242.0)
        session.start()
        self.assertEqual(session.now, 4242.0)
        self.assertEqual(session.last_spawn_time, 4242.0)

    def test_spawns_on_cadence(self):
        session = GameSession(rng=random.Random(3))
        session.start(now=0)
        session.tick(1500)
        self.assertEqual(len(session.items), 0)
        session.tick(1501)
        self.assertEqual(len(session.items), 1)
        session.tick(1600)
        self.assertEqual(len(session.items), 1)

    def test_snapshot(self):
        session = started_session({"start_level": 15})
        place(session, ItemType.ROCKET, Lane.LEFT, y=100)
        snap = session.snapshot()
        self.assertEqual(snap["phase"], "boss_fight")
        self.assertEqual(snap["level"], 15)
        self.assertEqual(snap["boss"]["hp"], 15)
        self.assertEqual(snap["items"][0]["type"], "ROCKET")
        self.assertEqual(snap["lives_remaining"], 2)


class TestInputPort(unittest.TestCase):
    def setUp(self):
        self.session = started_session()

    def test_valid_lanes(self):
        self.assertTrue(self.session.set_input(0))
        self.assertEqual(self.session.player_lane, Lane.LEFT)
        self.assertTrue(self.session.set_input(Lane.RIGHT))
        self.assertEqual(self.session.player_lane, Lane.RIGHT)

    def test_invalid_lanes_are_ignored(self):
        for value in (3, -1, True, "left", None, 1.5):
            self.assertFalse(self.session.set_input(value), value)
        self.assertEqual(self.session.player_lane, Lane.CENTER)

    def test_input_disabled(self):
        session = started_session({"input_enabled": False})
        self.assertFalse(session.set_input(Lane.LEFT))
        self.assertEqual(session.player_lane, Lane.CENTER)

    def test_pose_labels(self):
        self.assertTrue(self.session.on_pose_detected("왼쪽"))
        self.assertEqual(self.session.player_lane, Lane.LEFT)
        self.assertTrue(self.session.on_pose_detected("Right"))
        self.assertEqual(self.session.player_lane, Lane.RIGHT)
        self.assertFalse(self.session.on_pose_detected("jump"))

    def test_classifier_frames_are_debounced(self):
        frame = [("Left", 0.92), ("Center", 0.05), ("Right", 0.03)]
        self.assertFalse(self.session.on_pose_predictions(frame))
        self.assertFalse(self.session.on_pose_predictions(frame))
        self.assertEqual(self.session.player_lane, Lane.CENTER)
        self.assertTrue(self.session.on_pose_predictions(frame))
        self.assertEqual(self.session.player_lane, Lane.LEFT)
        # one confident flicker is not enough to move
        self.session.on_pose_predictions([("Right", 0.99)])
        self.assertEqual(self.session.player_lane, Lane.LEFT)
        self.session.on_pose_predictions([("Right", 0.4), ("Left", 0.3)])
        self.assertEqual(self.session.player_lane, Lane.LEFT)

    def test_classifier_state_resets_on_restart(self):
        frame = [("Right", 0.9)]
        self.session.on_pose_predictions(frame)
        self.session.on_pose_predictions(frame)
        self.session.stop("x")
        self.session.start(None, now=100)
        self.assertFalse(self.session.on_pose_predictions(frame))
        self.assertEqual(self.session.player_lane, Lane.CENTER)


class TestRewardsAndWeapon(unittest.TestCase):
    def test_extra_life_feedback_fades(self):
        session = started_session({"reward_modifier": RewardModifier.EXTRA_LIFE})
        self.assertEqual(session.max_misses, 3)
        self.assertEqual(session.feedback, "Bonus Life Active!")
        session.tick(999)
        self.assertEqual(session.feedback, "Bonus Life Active!")
        session.tick(1000)
        self.assertEqual(session.feedback, "")

    def test_gun_reward_is_owned_not_active(self):
        session = started_session({"reward_modifier": "gun"})
        self.assertTrue(session.gun.owned)
        self.assertFalse(session.gun.active)
        self.assertTrue(session.feedback_persist)

    def test_activate_without_gun_fails(self):
        session = started_session()
        self.assertFalse(session.activate_weapon())
        self.assertFalse(session.gun.active)

    def test_weapon_lasts_ten_seconds_without_reset(self):
        session = started_session({"reward_modifier": "gun"})
        activated = record(session, WeaponActivated)
        expired = record(session, WeaponExpired)
        session.tick(1000)
        self.assertTrue(session.activate_weapon())
        self.assertFalse(session.gun.owned)
        session.tick(5000)
        self.assertFalse(session.activate_weapon())
        self.assertEqual(len(activated), 1)
        self.assertEqual(activated[0].expires_at, 11000)
        session.tick(10999)
        self.assertTrue(session.gun.active)
        session.tick(11000)
        self.assertFalse(session.gun.active)
        self.assertEqual(session.feedback, "Gun End")
        self.assertEqual(len(expired), 1)
        # consumed
        self.assertFalse(session.activate_weapon())

    def test_dev_gun_mode_reuses_weapon(self):
        session = started_session()
        session.dev_gun_mode = True
        self.assertTrue(session.activate_weapon())
        session.tick(10000)
        self.assertFalse(session.gun.active)
        self.assertTrue(session.activate_weapon())

    def test_auto_claim_destroys_bomb_for_points(self):
        session = started_session({"reward_modifier": "gun"})
        session.activate_weapon()
        bomb = place(session, ItemType.BOMB, Lane.LEFT, y=100, speed=4)
        hidden = place(session, ItemType.FRUIT_A, Lane.RIGHT, y=-40, speed=0)
        session.tick(16)
        self.assertTrue(bomb.targeted)
        self.assertFalse(hidden.targeted)
        y = bomb.y
        session.tick(100)
        self.assertEqual(bomb.y, y)
        self.assertIn(bomb.id, session.items)
        session.tick(216)
        self.assertNotIn(bomb.id, session.items)
        self.assertEqual(session.score, 200)
        self.assertTrue(session.is_active)

    def test_feedback_events(self):
        session = started_session()
        messages = record(session, FeedbackMessage)
        session.show_feedback("Hi")
        session.show_feedback("Stay", persist=True)
        self.assertEqual([(m.text, m.persist) for m in messages], [("Hi", False), ("Stay", True)])
        session.tick(5000)
        self.assertEqual(session.feedback, "Stay")


if __name__ == "__main__":
    unittest.main()
