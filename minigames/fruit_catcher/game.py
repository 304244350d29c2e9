# minigames/fruit_catcher/game.py
import random

import pygame

from game_context import GameContext
from scene_manager import Scene

from .ai import AIEngine
from .config import CFG, normalize_difficulty
from .events import CollisionResolved
from .inputs import is_weapon_key, lane_from_key
from .items import ItemType, RewardModifier
from .rewards import REWARD_MESSAGES, roll_reward
from .runner import MINIGAME_ID, MatchRunner
from .session import GameSession

TITLE = "Sky Fruit Catcher"

# Visuals / HUD
COL_BG = (14, 18, 30)
COL_FIELD = (22, 30, 48)
COL_BORDER = (70, 86, 120)
COL_LANE = (34, 44, 66)
COL_TEXT = (230, 235, 245)
COL_DIM = (150, 160, 180)
COL_PLAYER = (120, 220, 255)
COL_PLAYER_SHIELD = (255, 230, 120)
COL_BOSS = (220, 70, 90)
COL_POPUP = (255, 235, 59)
COL_POPUP_GUN = (68, 138, 255)
ITEM_COLORS = {
    ItemType.FRUIT_A: (230, 60, 60),
    ItemType.FRUIT_B: (250, 220, 70),
    ItemType.FRUIT_C: (240, 90, 200),
    ItemType.BOMB: (40, 40, 40),
    ItemType.ROCKET: (180, 190, 210),
}
ITEM_GLYPH = {
    ItemType.FRUIT_A: "A",
    ItemType.FRUIT_B: "B",
    ItemType.FRUIT_C: "D",
    ItemType.BOMB: "X",
    ItemType.ROCKET: "R",
}
BANNER_TIME = 3.0
POPUP_TIME = 0.55

def load_game_fonts():
    """Return (big, medium, small) default fonts."""
    if not pygame.font.get_init():
        pygame.font.init()
    return pygame.font.Font(None, 48), pygame.font.Font(None, 28), pygame.font.Font(None, 20)


class FruitCatcherScene(Scene):
    """Solo run or a versus match against the AIEngine, side by side."""

    pausable = True

    def __init__(self, manager, context=None, callback=None, difficulty=None, **kwargs):
        super().__init__(manager)
        self.manager = manager
        self.context = context or GameContext()
        self.callback = callback
        self.screen = getattr(manager, "screen", None)
        if self.screen is None:
            raise RuntimeError("FruitCatcherScene requires an active display surface.")
        self.w, self.h = getattr(manager, "size", self.screen.get_size())
        self.minigame_id = MINIGAME_ID
        self.big, self.font, self.small = load_game_fonts()

        self.mode = kwargs.get("mode", "versus")  # "solo" | "versus"
        raw_diff = difficulty if difficulty is not None else kwargs.get("difficulty", "medium")
        self.difficulty = normalize_difficulty(raw_diff)
        self.start_level = max(1, int(kwargs.get("start_level", 1) or 1))
        rng = random.Random(kwargs.get("seed"))

        reward = kwargs.get("reward")
        if reward in (None, "roulette"):
            self.reward = roll_reward(rng)
        else:
            self.reward = RewardModifier.parse(reward)
        self.reward_text = REWARD_MESSAGES[self.reward]

        # Actors
        self.context.flags["local_side"] = "player"
        self.context.flags["difficulty"] = self.difficulty
        self.runner = MatchRunner(self.context, on_match_end=self._on_match_end)
        self.player = GameSession("You", rng=random.Random(rng.random()))
        self.player.dev_gun_mode = bool(kwargs.get("dev_gun", False))
        self.runner.add_side("player", self.player)
        self.opponent = None
        if self.mode != "solo":
            self.opponent = GameSession("CPU", rng=random.Random(rng.random()))
            ai = AIEngine(self.opponent, self.difficulty, rng=random.Random(rng.random()))
            self.runner.add_side("cpu", self.opponent, ai)

        self.popups = []  # [text, lane, side_idx, ttl, color]
        for idx, session in enumerate(self._sessions()):
            session.events.subscribe(CollisionResolved, lambda ev, i=idx: self._on_collision(i, ev))

        self._layout()
        self.pending_outcome = None
        self.banner_timer = 0.0
        self.banner_title = ""
        self._completed = False

        config = {"reward_modifier": self.reward, "start_level": self.start_level}
        cpu_config = {"start_level": self.start_level}
        self.runner.start(
            now=self._now_ms(),
            configs={"player": config, "cpu": cpu_config},
        )
        self.hint_text = self.small.render(
            "A/S/D or arrows: lane - W: gun - P: pause - Esc: forfeit", True, COL_DIM
        )

    # ---------------- helpers ----------------
    def _now_ms(self):
        # the manager's clock stands still while paused
        clock = getattr(self.manager, "now_ms", None)
        return clock() if callable(clock) else pygame.time.get_ticks()

    def _sessions(self):
        return [s for s in (self.player, self.opponent) if s is not None]

    def _layout(self):
        pad = 16
        top = 40
        count = len(self._sessions())
        gutter = 18
        pane_w = (self.w - pad * 2 - gutter * (count - 1)) // count
        pane_h = self.h - top - pad - 24
        self.panes = [
            pygame.Rect(pad + i * (pane_w + gutter), top, pane_w, pane_h) for i in range(count)
        ]
        self.scale_y = pane_h / float(CFG["FIELD_HEIGHT"])

    def _on_collision(self, side_idx, event):
        if event.outcome != "score" or event.points <= 0:
            return
        color = COL_POPUP_GUN if event.item_type == ItemType.BOMB.name else COL_POPUP
        self.popups.append([f"+{event.points}", event.lane, side_idx, POPUP_TIME, color])

    def _on_match_end(self, winner, runner):
        if self.pending_outcome:
            return
        if winner == "player":
            self.pending_outcome = "win"
            self.banner_title = "Victory!"
        else:
            self.pending_outcome = "lose"
            self.banner_title = "Defeat"
        self.banner_timer = BANNER_TIME

    # ---------------- Scene API ----------------
    def handle_event(self, event):
        if event.type != pygame.KEYDOWN:
            return
        if self.pending_outcome:
            self._finalize(self.pending_outcome)
            return
        if event.key == pygame.K_ESCAPE:
            self.forfeit_from_pause()
            return
        name = pygame.key.name(event.key)
        with self.runner.lock:
            if is_weapon_key(name):
                self.player.activate_weapon()
                return
            lane = lane_from_key(name)
            if lane is not None:
                self.player.set_input(lane)

    def update(self, dt):
        self.context.add_playtime(dt)
        if not self.runner.finished:
            self.runner.advance(self._now_ms())

        for p in self.popups:
            p[3] -= dt
        self.popups = [p for p in self.popups if p[3] > 0]

        if self.pending_outcome:
            self.banner_timer -= dt
            if self.banner_timer <= 0:
                self._finalize(self.pending_outcome)

    def draw(self):
        screen = self.screen
        screen.fill(COL_BG)
        title = self.font.render(f"{TITLE} - {self.reward_text}", True, COL_TEXT)
        screen.blit(title, (16, 10))
        for idx, session in enumerate(self._sessions()):
            self._draw_pane(session, self.panes[idx], idx)
        screen.blit(self.hint_text, (self.w // 2 - self.hint_text.get_width() // 2, self.h - 20))
        if self.pending_outcome:
            self._draw_banner()

    def _lane_x(self, rect, lane):
        lane_w = rect.w / CFG["LANES"]
        return int(rect.x + lane_w * (int(lane) + 0.5))

    def _draw_pane(self, session, rect, idx):
        screen = self.screen
        pygame.draw.rect(screen, COL_FIELD, rect, border_radius=10)
        pygame.draw.rect(screen, COL_BORDER, rect, 2, border_radius=10)
        lane_w = rect.w / CFG["LANES"]
        for i in range(1, CFG["LANES"]):
            x = int(rect.x + i * lane_w)
            pygame.draw.line(screen, COL_LANE, (x, rect.y + 4), (x, rect.bottom - 4))

        screen.set_clip(rect)
        size = max(10, int(CFG["ITEM_SIZE"] * self.scale_y))
        for item in session.items.values():
            cx = self._lane_x(rect, item.lane)
            cy = int(rect.y + (item.y + CFG["ITEM_SIZE"] / 2) * self.scale_y)
            pygame.draw.circle(screen, ITEM_COLORS[item.type], (cx, cy), size // 2)
            glyph = self.small.render(ITEM_GLYPH[item.type], True, COL_TEXT)
            screen.blit(glyph, glyph.get_rect(center=(cx, cy)))

        top = int(rect.y + CFG["HITBOX_TOP"] * self.scale_y)
        height = int((CFG["HITBOX_BOTTOM"] - CFG["HITBOX_TOP"]) * self.scale_y)
        player_w = int(lane_w * 0.6)
        px = self._lane_x(rect, session.player_lane) - player_w // 2
        color = COL_PLAYER_SHIELD if session.is_invincible else COL_PLAYER
        pygame.draw.rect(screen, color, (px, top, player_w, height), border_radius=8)
        if session.gun.active:
            pygame.draw.rect(screen, COL_POPUP_GUN, (px, top, player_w, height), 3, border_radius=8)

        boss = session.boss
        if boss is not None and session.is_boss_active:
            bx = int(rect.x + rect.w * boss.x / 100.0)
            pygame.draw.circle(screen, COL_BOSS, (bx, rect.y + 40), 22)
            bar = pygame.Rect(rect.x + 20, rect.y + 8, rect.w - 40, 8)
            pygame.draw.rect(screen, (60, 20, 30), bar)
            fill = bar.copy()
            fill.w = int(bar.w * boss.hp / float(boss.max_hp))
            pygame.draw.rect(screen, COL_BOSS, fill)
        screen.set_clip(None)

        for text, lane, side_idx, ttl, pcolor in self.popups:
            if side_idx != idx:
                continue
            rise = (POPUP_TIME - ttl) * 90
            surf = self.font.render(text, True, pcolor)
            y = int(rect.y + 400 * self.scale_y - rise)
            screen.blit(surf, surf.get_rect(center=(self._lane_x(rect, lane), y)))

        hud = f"{session.name}  {session.score} pts  Lv {session.level}  {session.time_limit}s  lives {session.lives_remaining}"
        surf = self.small.render(hud, True, COL_TEXT)
        screen.blit(surf, (rect.x + 10, rect.bottom + 4))
        if session.feedback:
            msg = self.font.render(session.feedback, True, COL_TEXT)
            screen.blit(msg, msg.get_rect(center=(rect.centerx, rect.centery - 40)))

    def _draw_banner(self):
        overlay = pygame.Surface((self.w, self.h), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 160))
        self.screen.blit(overlay, (0, 0))
        title = self.big.render(self.banner_title, True, (255, 240, 160))
        self.screen.blit(title, title.get_rect(center=(self.w // 2, self.h // 2 - 20)))
        sub = self.small.render(
            f"Score {self.player.score}  -  Level {self.player.level}", True, COL_TEXT
        )
        self.screen.blit(sub, sub.get_rect(center=(self.w // 2, self.h // 2 + 18)))

    # ---------------- finish ----------------
    def _finalize(self, outcome):
        if self._completed:
            return
        self._completed = True
        self.runner.stop("Match closed")
        if not self.context.last_result or outcome == "forfeit":
            self.context.last_result = {
                "minigame": self.minigame_id,
                "outcome": outcome,
                "details": self.context.session_results,
            }
        self.context.apply_result()
        try:
            self.manager.pop()
        except Exception as exc:
            print(f"[FruitCatcher] Unable to pop scene: {exc}")
        if callable(self.callback):
            try:
                self.callback(self.context)
            except Exception as exc:
                print(f"[FruitCatcher] Callback error: {exc}")

    def forfeit_from_pause(self):
        if self.pending_outcome:
            self._finalize(self.pending_outcome)
            return
        self._finalize("forfeit")


def launch(manager, context=None, callback=None, **kwargs):
    return FruitCatcherScene(manager, context, callback, **kwargs)
