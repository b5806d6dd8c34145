from __future__ import annotations
import math
import random
import pygame
from typing import Optional, Tuple

from ..core.scene import Scene
from ..core.telemetry import Telemetry, telemetry_enabled_from_env
from ..settings import (
    TOP_BAR_H, BOTTOM_BAR_H, SPOT_RADIUS, BRANCH_KEYS,
    C_BG, C_PATH, C_PAD, C_SLOT, C_MINE, C_RANGE, C_TEXT, C_GOLD,
    C_BRANCH, C_FLAG, C_CREEP, C_CREEP_AIR,
)
from ..systems.session import GameSession
from ..ui.hud import draw_top_bar, draw_bottom_bar
from ..ui.widgets import Button

TOOLTIP = "SPACE wave | click pad: archer | U upgrade | 1-6 branch / ability | T target | S speed | P/ESC pause"


class GameScene(Scene):
    name="GAME"
    def enter(self, payload=None):
        seed = (payload or {}).get("seed") or random.randrange(1, 2_000_000_000)
        tel = Telemetry(enabled=telemetry_enabled_from_env())
        self.session = GameSession(self.game.tables, seed=seed, telemetry=tel)

        self.w, self.h = self.game.w, self.game.h
        mw, mh = self.session.map.size
        area_h = self.h - TOP_BAR_H - BOTTOM_BAR_H
        self.scale = min(self.w / mw, area_h / mh)
        self.offset_x = (self.w - mw * self.scale) / 2
        self.offset_y = TOP_BAR_H + (area_h - mh * self.scale) / 2

        self.selected_tower = None
        self.selected_mine = None
        self._done = False

        self.btn_wave = Button(pygame.Rect(self.w - 150, self.h - BOTTOM_BAR_H + 12, 130, 48), "WAVE", (70, 120, 80), cb=self._start_wave)
        self.btn_pause = Button(pygame.Rect(self.w - 210, self.h - BOTTOM_BAR_H + 12, 48, 48), "", (70, 80, 90), cb=self._pause, icon="PAUSE")

    def exit(self):
        self.session.close()

    def resume(self):
        if self.session.controller.paused:
            self.session.toggle_pause()

    # ---- coords ----
    def to_screen(self, p) -> Tuple[int, int]:
        return int(self.offset_x + p[0] * self.scale), int(self.offset_y + p[1] * self.scale)

    def to_map(self, pos) -> Tuple[float, float]:
        return (pos[0] - self.offset_x) / self.scale, (pos[1] - self.offset_y) / self.scale

    def _spot_at(self, spots, pos):
        mx, my = self.to_map(pos)
        for s in spots:
            if math.hypot(s.x - mx, s.y - my) <= SPOT_RADIUS:
                return s
        return None

    # ---- actions ----
    def _start_wave(self):
        self.session.start_next_wave()

    def _pause(self):
        if not self.session.controller.paused:
            self.session.toggle_pause()
        self.request("PAUSE", None)

    def _click(self, pos):
        s = self.session
        pad = self._spot_at(s.map.pads, pos)
        if pad is not None:
            t = s.world.tower_on_pad(pad.id)
            if t is None:
                t = s.build_tower(pad.id)
            self.selected_tower, self.selected_mine = t, None
            return
        slot = self._spot_at(s.map.mine_slots, pos)
        if slot is not None:
            mine = s.mines.get(slot.id)
            if mine is not None and not mine.is_built:
                s.build_mine(slot.id)
            self.selected_tower, self.selected_mine = None, mine
            return
        self.selected_tower = self.selected_mine = None

    def _upgrade(self, key: Optional[str] = None):
        if self.selected_tower is not None:
            self.session.upgrade_tower(self.selected_tower, key)
        elif self.selected_mine is not None:
            self.session.upgrade_mine(self.selected_mine)

    def _pick_ability(self, index: int) -> bool:
        t = self.selected_tower
        if t is None:
            return False
        opts = self.session.ability_options(t)
        if index >= len(opts):
            return False
        return self.session.select_ability(t, opts[index]["id"])

    def handle_event(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.btn_wave.click(event.pos) or self.btn_pause.click(event.pos):
                return
            self._click(event.pos)
        elif event.type == pygame.KEYDOWN:
            k = event.key
            if k == pygame.K_SPACE:
                self._start_wave()
            elif k in (pygame.K_p, pygame.K_ESCAPE):
                self._pause()
            elif k == pygame.K_s:
                self.session.cycle_speed()
            elif k == pygame.K_u:
                self._upgrade()
            elif k == pygame.K_t and self.selected_tower is not None:
                self.selected_tower.cycle_target_mode()
            elif pygame.K_1 <= k <= pygame.K_6:
                if not self._pick_ability(k - pygame.K_1):
                    self._upgrade(f"{BRANCH_KEYS[k - pygame.K_1]}_1")

    def update(self, dt: float):
        self.session.tick(dt * 1000.0)
        if self.session.game_over and not self._done:
            self._done = True
            self.request("RESULTS", {"session": self.session})

    # ---- draw ----
    def _selection_line(self) -> str:
        s = self.session
        t = self.selected_tower
        if t is not None:
            opts = s.tables.upgrade_options(t.defn.key)
            up = ", ".join(f"{d.name} ${d.upgrade_cost}" for d in opts[:3]) or "max"
            abil = s.ability_options(t)
            if abil:
                up = "ability: " + ", ".join(f"{i + 1} {a['name']}" for i, a in enumerate(abil))
            elif t.ability:
                up = f"ability {t.ability}"
            return f"{t.defn.name}  dmg {t.defn.damage:g}  range {t.defn.range:g}  target {t.target_mode}  | next: {up}"
        m = self.selected_mine
        if m is not None:
            nxt = f"${m.next_cost()}" if m.can_upgrade() else "max"
            return f"Gold mine L{m.level}  +{m.income_per_wave}/wave  | upgrade {nxt}"
        archer = s.tables.towers["archer_1"]
        return f"Archer ${archer.build_cost}  |  Mine ${s.mines.ladder.get_mine_cost(1)}"

    def draw(self, screen):
        s = self.session
        f = self.game.fonts
        screen.fill(C_BG)

        pts = [self.to_screen(p) for p in s.map.waypoints]
        pygame.draw.lines(screen, C_PATH, False, pts, max(8, int(36 * self.scale)))

        r = max(8, int(SPOT_RADIUS * self.scale))
        for slot in s.map.mine_slots:
            mine = s.mines.get(slot.id)
            c = C_MINE if mine is not None and mine.is_built else C_SLOT
            pygame.draw.rect(screen, c, (*[v - r for v in self.to_screen((slot.x, slot.y))], 2 * r, 2 * r), border_radius=4)
            if mine is not None and mine.is_built:
                lv = f.xs.render(str(mine.level), True, (20, 20, 20))
                cx, cy = self.to_screen((slot.x, slot.y))
                screen.blit(lv, (cx - lv.get_width() // 2, cy - lv.get_height() // 2))

        for pad in s.map.pads:
            pygame.draw.circle(screen, C_PAD, self.to_screen((pad.x, pad.y)), r)

        snap = s.snapshot()
        ws = snap.world
        for t in ws.towers:
            branch = t.key.rsplit("_", 1)[0]
            pygame.draw.circle(screen, C_BRANCH.get(branch, (200, 200, 200)), self.to_screen(t.position), r - 3)
            lv = f.xs.render(t.key.rsplit("_", 1)[1], True, C_TEXT)
            cx, cy = self.to_screen(t.position)
            screen.blit(lv, (cx - lv.get_width() // 2, cy - lv.get_height() // 2))
        if self.selected_tower is not None:
            pygame.draw.circle(screen, C_RANGE, self.to_screen((self.selected_tower.x, self.selected_tower.y)),
                               int(self.selected_tower.defn.range * self.scale), 1)

        for c in ws.creeps:
            col = C_CREEP_AIR if c.flying else C_CREEP
            for flag, fc in C_FLAG:
                if flag in c.flags:
                    col = fc
                    break
            cr = max(4, int(10 * c.size_scale * self.scale))
            cx, cy = self.to_screen(c.position)
            pygame.draw.circle(screen, col, (cx, cy), cr)
            # health bar
            pygame.draw.rect(screen, (40, 40, 40), (cx - cr, cy - cr - 6, 2 * cr, 3))
            pygame.draw.rect(screen, (80, 220, 80), (cx - cr, cy - cr - 6, int(2 * cr * c.health_fraction), 3))

        for e in ws.fire_events:
            pygame.draw.line(screen, C_GOLD, self.to_screen(e.origin), self.to_screen(e.impact), 2 if e.ability else 1)
            if e.splash_radius > 0:
                pygame.draw.circle(screen, C_GOLD, self.to_screen(e.impact), int(e.splash_radius * self.scale), 1)

        nxt = s.tables.wave(s.controller.wave + 1)
        label = (nxt.announcement or nxt.wave_type) if nxt else ""
        draw_top_bar(screen, f, self.w, TOP_BAR_H, snap.state, snap.countdown_ms, label)
        draw_bottom_bar(screen, f, self.w, self.h - BOTTOM_BAR_H, BOTTOM_BAR_H, self._selection_line(), TOOLTIP)
        self.btn_wave.disabled = snap.wave_active or s.game_over
        self.btn_wave.draw(screen, f)
        self.btn_pause.draw(screen, f)
