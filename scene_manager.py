import sys
import traceback

import pygame

COL_PAUSE_SHADE = (0, 0, 0, 150)
COL_PAUSE_TEXT = (240, 240, 250)


class Scene:
    """Base scene with no-op event/update/draw hooks."""

    # scenes that opt in freeze the game clock while P is toggled
    pausable = False

    def __init__(self, manager):
        self.manager = manager

    def handle_event(self, event):
        pass

    def update(self, dt):
        pass

    def draw(self):
        pass


class SceneManager:
    """
    Scene stack and main loop.

    Keeps a game clock (``now_ms``) that only advances while the top scene is
    running, so simulations driven from it see no time pass during a pause.
    When the stack empties and a ``rematch_factory`` is set, a fresh scene is
    pushed instead of quitting.
    """

    def __init__(self, first_scene_factory, size=(960, 540), fps=60, caption="Sky Fruit Catcher",
                 rematch_factory=None):
        pygame.init()
        self.screen = pygame.display.set_mode(size)
        self.size = self.screen.get_size()
        pygame.display.set_caption(caption)
        self.clock = pygame.time.Clock()
        self.fps = fps
        self.running = True
        self.paused = False
        self.game_time_ms = 0.0
        self.rematch_factory = rematch_factory
        self.scenes = []
        self._pause_font = None

        if not callable(first_scene_factory):
            raise ValueError("First scene must be a class or factory.")
        self.scenes.append(first_scene_factory(self))

    def now_ms(self):
        return self.game_time_ms

    def push(self, scene):
        self.scenes.append(scene)

    def pop(self):
        if self.scenes:
            self.scenes.pop()
        self.paused = False

    def switch(self, scene):
        if self.scenes:
            self.scenes.pop()
        self.push(scene)

    def toggle_pause(self):
        if self.scenes and getattr(self.scenes[-1], "pausable", False):
            self.paused = not self.paused

    def _refill(self):
        if self.scenes:
            return True
        if not callable(self.rematch_factory):
            return False
        try:
            self.scenes.append(self.rematch_factory(self))
        except Exception:
            traceback.print_exc()
            return False
        return True

    def _draw_pause(self):
        if self._pause_font is None:
            self._pause_font = pygame.font.Font(None, 64)
        shade = pygame.Surface(self.size, pygame.SRCALPHA)
        shade.fill(COL_PAUSE_SHADE)
        self.screen.blit(shade, (0, 0))
        text = self._pause_font.render("Paused - P to resume", True, COL_PAUSE_TEXT)
        self.screen.blit(text, text.get_rect(center=(self.size[0] // 2, self.size[1] // 2)))

    def run(self):
        """Main loop."""
        while self.running:
            elapsed = self.clock.tick(self.fps)
            if not self._refill():
                break
            current = self.scenes[-1]
            if not self.paused:
                self.game_time_ms += elapsed

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                    break
                if event.type == pygame.KEYDOWN and event.key == pygame.K_p:
                    self.toggle_pause()
                    continue
                if self.paused:
                    continue
                try:
                    current.handle_event(event)
                except Exception:
                    traceback.print_exc()

            # the event handler may have closed the scene
            if not self.running or not self.scenes or self.scenes[-1] is not current:
                continue
            try:
                if not self.paused:
                    current.update(elapsed / 1000.0)
                current.draw()
                if self.paused:
                    self._draw_pause()
            except Exception:
                traceback.print_exc()

            pygame.display.flip()

        pygame.quit()
        sys.exit()
