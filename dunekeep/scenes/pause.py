from __future__ import annotations
import pygame
from ..core.scene import Scene
from ..ui.widgets import Button

class PauseScene(Scene):
    name="PAUSE"

    def enter(self, payload=None):
        w, h = self.game.w, self.game.h

        def rc(w0: int, h0: int, yoff: int) -> pygame.Rect:
            return pygame.Rect(w//2 - w0//2, h//2 + yoff, w0, h0)

        self.btn_resume = Button(rc(300, 60, -70), "RESUME", (70, 80, 90), cb=self._back)
        self.btn_speed  = Button(rc(300, 60,   0), "SPEED", (70, 80, 90), cb=self._speed)
        self.btn_quit   = Button(rc(300, 60,  70), "MENU", (160, 70, 70), cb=self._quit)

    def _base(self):
        return self.game.scene_stack[0] if self.game.scene_stack else None

    def _back(self): self.request("BACK", None)
    def _quit(self): self.request("MENU", None)

    def _speed(self):
        base = self._base()
        if base is not None and hasattr(base, "session"):
            base.session.cycle_speed()

    def handle_event(self, event):
        if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_p):
            self._back()
            return
        if event.type == pygame.MOUSEBUTTONDOWN:
            self.btn_resume.click(event.pos)
            self.btn_speed.click(event.pos)
            self.btn_quit.click(event.pos)

    def update(self, dt: float):
        # the session is paused, so this only counts paused wall time
        base = self._base()
        if base is not None and hasattr(base, "session"):
            base.session.tick(dt * 1000.0)

    def draw(self, screen):
        # Always draw the base (bottom-most) scene behind to avoid recursion with stacked overlays.
        base = self._base()
        if base is not None:
            base.draw(screen)

        s = pygame.Surface((self.game.w, self.game.h), pygame.SRCALPHA)
        s.fill((0, 0, 0, 180))
        screen.blit(s, (0, 0))

        t = self.game.fonts.xl.render("PAUSED", True, (240, 240, 240))
        screen.blit(t, (self.game.w//2 - t.get_width()//2, self.game.h//2 - 170))
        if base is not None and hasattr(base, "session"):
            sp = self.game.fonts.s.render(f"speed x{base.session.clock.time_scale}", True, (200, 200, 200))
            screen.blit(sp, (self.game.w//2 - sp.get_width()//2, self.game.h//2 - 110))

        self.btn_resume.draw(screen, self.game.fonts)
        self.btn_speed.draw(screen, self.game.fonts)
        self.btn_quit.draw(screen, self.game.fonts)
