import argparse
import logging
import os
import random
import threading
import time
from collections import deque
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, abort

from game_context import GameContext
from minigames.fruit_catcher import AIEngine, GameSession, MatchRunner
from minigames.fruit_catcher.config import coerce_bool, coerce_int, normalize_difficulty
from minigames.fruit_catcher.items import RewardModifier
from minigames.fruit_catcher.rewards import roll_reward
from minigames.fruit_catcher.runner import FRAME_MS

logger = logging.getLogger("headless")

SIDES = ("left", "right")


@dataclass
class HeadlessConfig:
    web_host: str = "0.0.0.0"
    web_port: int = 5000
    left_difficulty: str = "medium"
    right_difficulty: str = "hard"
    left_reward: str = "none"  # none | life | gun | roulette
    right_reward: str = "none"
    start_level: int = 1
    speed: float = 1.0  # sim-seconds per wall-second; 0 runs flat out
    max_match_seconds: float = 1800.0
    auto_restart: bool = False
    restart_delay: float = 4.0


def _coerce_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _resolve_reward(value: str, rng: random.Random) -> RewardModifier:
    if (value or "").strip().lower() == "roulette":
        return roll_reward(rng)
    return RewardModifier.parse(value)


def build_runner(config: HeadlessConfig, seed: Optional[int] = None, context: Optional[GameContext] = None):
    """Two AI-driven sessions plus the start configs for each side."""
    rng = random.Random(seed)
    runner = MatchRunner(context)
    configs = {}
    for side in SIDES:
        difficulty = normalize_difficulty(getattr(config, f"{side}_difficulty"))
        session = GameSession(side, rng=random.Random(rng.random()))
        ai = AIEngine(session, difficulty, rng=random.Random(rng.random()))
        runner.add_side(side, session, ai)
        configs[side] = {
            "reward_modifier": _resolve_reward(getattr(config, f"{side}_reward"), rng),
            "start_level": config.start_level,
        }
    return runner, configs


def run_match(config: HeadlessConfig, seed: Optional[int] = None, context: Optional[GameContext] = None):
    """Play one match on a virtual clock, as fast as the CPU allows."""
    runner, configs = build_runner(config, seed=seed, context=context)
    runner.start(now=0.0, configs=configs)
    runner.run_for(config.max_match_seconds * 1000.0, frame_ms=FRAME_MS)
    if not runner.finished:
        runner.stop("Match time limit")
    return runner.snapshot()


class HeadlessController:
    def __init__(self, config: HeadlessConfig):
        self._config = config
        self._config_lock = threading.Lock()
        self._loop_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.context = GameContext()
        self.runner: Optional[MatchRunner] = None
        self.match_seed: Optional[int] = None
        self.matches_played = 0
        self.history = deque(maxlen=20)
        self._virtual_now = 0.0
        self._last_wall: Optional[float] = None
        self._pending_restart_at: Optional[float] = None
        self._recorded = False
        self._last_start_request = 0.0
        self.started_at = time.time()

    def start(self) -> bool:
        if self._loop_thread and self._loop_thread.is_alive():
            return False
        self._stop_event.clear()
        self._loop_thread = threading.Thread(target=self._loop, daemon=True)
        self._loop_thread.start()
        return True

    def stop(self):
        self._stop_event.set()
        if self._loop_thread:
            self._loop_thread.join(timeout=2)
        self.stop_match()

    def get_config(self) -> Dict[str, Any]:
        with self._config_lock:
            return asdict(self._config)

    def update_config(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        with self._config_lock:
            cfg = self._config
            for side in SIDES:
                key = f"{side}_difficulty"
                if key in payload:
                    setattr(cfg, key, normalize_difficulty(payload.get(key)))
                key = f"{side}_reward"
                if key in payload:
                    setattr(cfg, key, str(payload.get(key) or "none").strip().lower())
            if "start_level" in payload:
                cfg.start_level = max(1, coerce_int(payload.get("start_level"), cfg.start_level))
            if "speed" in payload:
                cfg.speed = max(0.0, _coerce_float(payload.get("speed"), cfg.speed))
            if "max_match_seconds" in payload:
                cfg.max_match_seconds = max(1.0, _coerce_float(payload.get("max_match_seconds"), cfg.max_match_seconds))
            if "auto_restart" in payload:
                cfg.auto_restart = coerce_bool(payload.get("auto_restart"), cfg.auto_restart)
            if "restart_delay" in payload:
                cfg.restart_delay = max(0.0, _coerce_float(payload.get("restart_delay"), cfg.restart_delay))
        return self.get_config()

    @property
    def match_active(self) -> bool:
        return bool(self.runner and self.runner.started and not self.runner.finished)

    def force_start(self, seed: Optional[int] = None) -> bool:
        if self.match_active:
            return False
        now = time.time()
        if now - self._last_start_request < 1.0:
            return False
        self._last_start_request = now
        with self._config_lock:
            config = HeadlessConfig(**asdict(self._config))
        self.match_seed = seed if seed is not None else random.randrange(1 << 30)
        runner, configs = build_runner(config, seed=self.match_seed, context=self.context)
        self._virtual_now = 0.0
        self._last_wall = None
        self._pending_restart_at = None
        self._recorded = False
        runner.start(now=0.0, configs=configs)
        self.runner = runner
        logger.info("Match started seed=%s %s vs %s", self.match_seed, config.left_difficulty, config.right_difficulty)
        return True

    def stop_match(self) -> bool:
        runner = self.runner
        if runner is None or runner.finished:
            return False
        runner.stop("Stopped by admin")
        return True

    def status(self) -> Dict[str, Any]:
        runner = self.runner
        return {
            "match_active": self.match_active,
            "match_seed": self.match_seed,
            "match": runner.snapshot() if runner else None,
            "matches_played": self.matches_played,
            "history": list(self.history),
            "context": self.context.summary(),
            "config": self.get_config(),
            "uptime_sec": int(time.time() - self.started_at),
        }

    def step(self, wall_now: float):
        """Advance the running match to ``wall_now`` (seconds) in whole frames."""
        runner = self.runner
        if runner is None:
            return
        if runner.finished:
            self._record_finished(wall_now)
            return
        cfg = self.get_config()
        speed = float(cfg.get("speed", 1.0))
        if speed <= 0:
            frames = 600
        else:
            if self._last_wall is None:
                self._last_wall = wall_now
            elapsed_ms = (wall_now - self._last_wall) * 1000.0 * speed
            frames = int(elapsed_ms // FRAME_MS)
            self._last_wall += frames * FRAME_MS / (1000.0 * speed)
        for _ in range(frames):
            self._virtual_now += FRAME_MS
            runner.advance(self._virtual_now)
            if runner.finished:
                break
        if not runner.finished and self._virtual_now >= float(cfg.get("max_match_seconds", 0)) * 1000.0:
            runner.stop("Match time limit")
        if runner.finished:
            self._record_finished(wall_now)

    def _record_finished(self, wall_now: float):
        if not self._recorded:
            self._recorded = True
            self.matches_played += 1
            result = {
                "seed": self.match_seed,
                "winner": self.runner.winner,
                "sim_seconds": round(self._virtual_now / 1000.0, 1),
                "sides": {
                    label: side.result for label, side in self.runner.sides.items()
                },
            }
            self.history.append(result)
            logger.info("Match finished: winner=%s after %.1fs", result["winner"], result["sim_seconds"])
            cfg = self.get_config()
            if cfg.get("auto_restart"):
                self._pending_restart_at = wall_now + float(cfg.get("restart_delay", 0.0))
        if self._pending_restart_at is not None and wall_now >= self._pending_restart_at:
            self._pending_restart_at = None
            self.force_start()

    def _loop(self):
        while not self._stop_event.is_set():
            try:
                self.step(time.time())
            except Exception:
                logger.exception("Headless step failed; stopping match")
                self.stop_match()
            time.sleep(FRAME_MS / 1000.0)


def _build_app(controller: HeadlessController, admin_token: str) -> Flask:
    app = Flask(__name__)

    class _StatusLogFilter(logging.Filter):
        def filter(self, record: logging.LogRecord) -> bool:
            return "GET /status" not in record.getMessage()

    logging.getLogger("werkzeug").addFilter(_StatusLogFilter())

    def require_token():
        if not admin_token:
            return
        token = request.headers.get("X-Admin-Token") or ""
        if token != admin_token:
            abort(401)

    @app.get("/")
    def index():
        return jsonify(
            {
                "service": "fruit-catcher headless",
                "routes": ["GET /status", "POST /start", "POST /stop", "POST /config"],
            }
        )

    @app.get("/status")
    def status():
        return jsonify(controller.status())

    @app.post("/start")
    def start_match():
        require_token()
        data = request.get_json(silent=True) or {}
        seed = data.get("seed")
        ok = controller.force_start(seed=coerce_int(seed, None) if seed is not None else None)
        return jsonify({"ok": ok, "seed": controller.match_seed})

    @app.post("/stop")
    def stop_match():
        require_token()
        ok = controller.stop_match()
        return jsonify({"ok": ok})

    @app.post("/config")
    def update_config():
        require_token()
        data = request.get_json(silent=True) or {}
        cfg = controller.update_config(data)
        return jsonify(cfg)

    return app


def _run_batch(config: HeadlessConfig, matches: int, seed: Optional[int]):
    rng = random.Random(seed)
    context = GameContext()
    wins = {side: 0 for side in SIDES}
    wins["undecided"] = 0  # hit the match time limit
    for idx in range(matches):
        snap = run_match(config, seed=rng.randrange(1 << 30), context=context)
        winner = snap.get("winner")
        wins[winner if winner in wins else "undecided"] += 1
        scores = ", ".join(f"{s['side']}={s['score']} (L{s['level']})" for s in snap["sides"])
        logger.info("Match %d/%d: winner=%s %s", idx + 1, matches, winner, scores)
    logger.info(
        "Batch done: %s (%s) %d - %d %s (%s), %d undecided",
        "left", config.left_difficulty, wins["left"], wins["right"], "right", config.right_difficulty,
        wins["undecided"],
    )
    return wins


def main():
    parser = argparse.ArgumentParser(description="Headless AI-vs-AI fruit catcher runner with admin web hub.")
    parser.add_argument("--web-host", default="0.0.0.0")
    parser.add_argument("--web-port", type=int, default=5000)
    parser.add_argument("--left", default="medium", help="left AI difficulty")
    parser.add_argument("--right", default="hard", help="right AI difficulty")
    parser.add_argument("--left-reward", default="none")
    parser.add_argument("--right-reward", default="none")
    parser.add_argument("--start-level", type=int, default=1)
    parser.add_argument("--speed", type=float, default=1.0)
    parser.add_argument("--max-match-seconds", type=float, default=1800.0)
    parser.add_argument("--auto-restart", action="store_true", default=False)
    parser.add_argument("--restart-delay", type=float, default=4.0)
    parser.add_argument("--matches", type=int, default=0, help="run N matches offline and exit")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = HeadlessConfig(
        web_host=args.web_host,
        web_port=args.web_port,
        left_difficulty=normalize_difficulty(args.left),
        right_difficulty=normalize_difficulty(args.right),
        left_reward=args.left_reward,
        right_reward=args.right_reward,
        start_level=max(1, args.start_level),
        speed=max(0.0, args.speed),
        max_match_seconds=max(1.0, args.max_match_seconds),
        auto_restart=args.auto_restart,
        restart_delay=max(0.0, args.restart_delay),
    )

    if args.matches > 0:
        _run_batch(config, args.matches, args.seed)
        return

    admin_token = os.getenv("HEADLESS_ADMIN_TOKEN", "")
    controller = HeadlessController(config)
    if not controller.start():
        raise SystemExit("Failed to start headless controller.")
    if config.auto_restart:
        controller.force_start(seed=args.seed)

    app = _build_app(controller, admin_token=admin_token)
    app.run(host=config.web_host, port=config.web_port, threaded=True, use_reloader=False)


if __name__ == "__main__":
    main()
