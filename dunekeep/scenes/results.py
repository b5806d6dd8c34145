from __future__ import annotations
import os
import pygame
from loguru import logger

from ..core.scene import Scene
from ..ui.widgets import Button

class ResultsScene(Scene):
    name="RESULTS"
    def enter(self, payload=None):
        session = (payload or {})["session"]
        self.victory = session.controller.victory
        self.breakdown = session.final_score()
        self.stats = session.stats
        self.waves = session.waves_completed
        self.total = session.tables.total_waves

        rec = session.highscore_record(os.environ.get("DUNEKEEP_PLAYER", "Player"))
        try:
            self.rank = self.game.saves.submit(rec)
        except OSError as e:
            logger.warning(f"could not save highscore: {e}")
            self.rank = None

        w,h = self.game.w, self.game.h
        self.btn_menu = Button(pygame.Rect(w//2-160, h-140, 320, 64), "MENU", (70,80,90), cb=self._menu)

    def _menu(self):
        self.request("MENU", None)

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN:
            self.btn_menu.click(event.pos)
        elif event.type == pygame.KEYDOWN and event.key in (pygame.K_RETURN, pygame.K_ESCAPE):
            self._menu()

    def draw(self, screen):
        f = self.game.fonts
        screen.fill((12,14,18))
        title = "VICTORY" if self.victory else "DEFEAT"
        col = (120,255,120) if self.victory else (255,120,120)
        t = f.xl.render(title, True, col)
        screen.blit(t, (self.game.w//2 - t.get_width()//2, 60))

        b = self.breakdown
        lines = [
            f"Waves {self.waves}/{self.total}: {b.wave_score}",
            f"Gold earned: {b.gold_score}",
            f"Castle HP bonus: {b.hp_bonus}",
            f"Time x{b.time_multiplier:.2f}",
            f"SCORE {b.final_score}" + (f"   (#{self.rank})" if self.rank else ""),
            "",
            f"Killed {self.stats.creeps_killed}  leaked {self.stats.creeps_leaked}  bosses {self.stats.bosses_killed}",
            f"Towers {self.stats.towers_built} (+{self.stats.towers_upgraded} upgrades)  mines {self.stats.mines_built}",
        ]
        y = 160
        for ln in lines:
            s = f.m.render(ln, True, (230,230,230))
            screen.blit(s, (self.game.w//2 - s.get_width()//2, y))
            y += s.get_height() + 6
        self.btn_menu.draw(screen, f)
