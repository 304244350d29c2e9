import unittest

from headless_server import HeadlessConfig, HeadlessController, _build_app, _run_batch, build_runner, run_match


class TestHeadlessMatches(unittest.TestCase):
    def test_build_runner_sides(self):
        config = HeadlessConfig(left_difficulty="easy", right_difficulty="hell", right_reward="gun")
        runner, configs = build_runner(config, seed=5)
        self.assertEqual(runner.labels(), ["left", "right"])
        self.assertEqual(runner.side("right").ai.difficulty, "hell")
        self.assertEqual(configs["right"]["reward_modifier"].value, "gun")

    def test_run_match_always_finishes(self):
        config = HeadlessConfig(max_match_seconds=20)
        snap = run_match(config, seed=11)
        self.assertTrue(snap["finished"])
        self.assertIn(snap["winner"], ("left", "right", None))
        self.assertLessEqual(snap["now"], 20000 + 20)

    def test_time_limit_names_no_winner(self):
        # both AIs are still invincible at level 1, so nothing ends before the limit
        for seed in range(3):
            snap = run_match(HeadlessConfig(max_match_seconds=5), seed=seed)
            self.assertIsNone(snap["winner"])
            self.assertFalse(any(s["is_victory"] for s in snap["sides"]))
            self.assertEqual({s["end_reason"] for s in snap["sides"]}, {"Match time limit"})

    def test_batch_counts_undecided_matches(self):
        wins = _run_batch(HeadlessConfig(max_match_seconds=5), 3, seed=1)
        self.assertEqual(wins, {"left": 0, "right": 0, "undecided": 3})

    def test_same_seed_same_match(self):
        config = HeadlessConfig(max_match_seconds=15)
        a = run_match(config, seed=3)
        b = run_match(config, seed=3)
        self.assertEqual(a["winner"], b["winner"])
        self.assertEqual([s["score"] for s in a["sides"]], [s["score"] for s in b["sides"]])


class TestHeadlessController(unittest.TestCase):
    def setUp(self):
        self.controller = HeadlessController(HeadlessConfig(speed=0, max_match_seconds=30))

    def test_step_runs_match_to_end(self):
        self.assertTrue(self.controller.force_start(seed=1))
        self.assertFalse(self.controller.force_start(seed=2))
        for i in range(200):
            self.controller.step(float(i))
            if not self.controller.match_active:
                break
        self.assertFalse(self.controller.match_active)
        self.assertEqual(self.controller.matches_played, 1)
        self.assertEqual(len(self.controller.history), 1)

    def test_update_config_coerces(self):
        cfg = self.controller.update_config(
            {"left_difficulty": "x", "start_level": "4", "speed": "-2", "auto_restart": "yes"}
        )
        self.assertEqual(cfg["left_difficulty"], "hell")
        self.assertEqual(cfg["start_level"], 4)
        self.assertEqual(cfg["speed"], 0.0)
        self.assertTrue(cfg["auto_restart"])


class TestHeadlessApi(unittest.TestCase):
    def setUp(self):
        self.controller = HeadlessController(HeadlessConfig(speed=0))
        self.app = _build_app(self.controller, admin_token="secret")
        self.client = self.app.test_client()
        self.auth = {"X-Admin-Token": "secret"}

    def test_index_and_status(self):
        self.assertEqual(self.client.get("/").status_code, 200)
        resp = self.client.get("/status")
        self.assertEqual(resp.status_code, 200)
        data = resp.get_json()
        self.assertFalse(data["match_active"])
        self.assertEqual(data["matches_played"], 0)

    def test_mutations_need_token(self):
        self.assertEqual(self.client.post("/start").status_code, 401)
        self.assertEqual(self.client.post("/stop").status_code, 401)
        self.assertEqual(self.client.post("/config", json={"speed": 2}).status_code, 401)

    def test_start_then_stop(self):
        resp = self.client.post("/start", json={"seed": 42}, headers=self.auth)
        self.assertTrue(resp.get_json()["ok"])
        self.assertEqual(resp.get_json()["seed"], 42)
        status = self.client.get("/status").get_json()
        self.assertTrue(status["match_active"])
        self.assertEqual(len(status["match"]["sides"]), 2)

        resp = self.client.post("/stop", headers=self.auth)
        self.assertTrue(resp.get_json()["ok"])
        status = self.client.get("/status").get_json()
        self.assertFalse(status["match_active"])
        self.assertIsNone(status["match"]["winner"])
        self.assertFalse(any(s["is_victory"] for s in status["match"]["sides"]))

    def test_config_roundtrip(self):
        resp = self.client.post("/config", json={"right_difficulty": "e"}, headers=self.auth)
        self.assertEqual(resp.get_json()["right_difficulty"], "easy")


if __name__ == "__main__":
    unittest.main()
