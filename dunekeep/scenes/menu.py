from __future__ import annotations
import pygame
from ..core.scene import Scene
from ..ui.widgets import Button

class MenuScene(Scene):
    name="MENU"
    def enter(self, payload=None):
        w,h = self.game.w, self.game.h
        def rc(w0,h0, yoff):
            return pygame.Rect(w//2-w0//2, h//2+yoff, w0, h0)

        self.btn_new = Button(rc(320,78,-150), "NEW GAME", (255,215,0), cb=self._new)
        self.btn_quit = Button(rc(320,60,-50), "QUIT", (70,80,90), cb=self._quit)
        self.highscores = self.game.saves.load_highscores()

    def _new(self):
        self.request("GAME", {"new": True})

    def _quit(self):
        self.game.running = False

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN:
            self.btn_new.click(event.pos)
            self.btn_quit.click(event.pos)
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_RETURN:
            self._new()

    def draw(self, screen):
        f = self.game.fonts
        screen.fill((12,14,18))
        t = f.xl.render("DUNEKEEP", True, (255,215,0))
        screen.blit(t, (self.game.w//2 - t.get_width()//2, 70))
        self.btn_new.draw(screen, f)
        self.btn_quit.draw(screen, f)

        y = self.game.h//2 + 40
        hdr = f.m.render("HIGHSCORES", True, (220,220,220))
        screen.blit(hdr, (self.game.w//2 - hdr.get_width()//2, y))
        y += hdr.get_height() + 8
        if not self.highscores:
            none = f.s.render("no runs yet", True, (150,150,150))
            screen.blit(none, (self.game.w//2 - none.get_width()//2, y))
        for i, r in enumerate(self.highscores):
            line = f"{i+1:>2}. {r.player_name:<12} {r.score:>7}   wave {r.wave_reached}/{r.total_waves}   {r.date}"
            s = f.xs.render(line, True, (200,200,200))
            screen.blit(s, (self.game.w//2 - 200, y))
            y += s.get_height() + 2
