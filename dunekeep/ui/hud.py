from __future__ import annotations
import pygame
from ..settings import C_UI_BG, C_TEXT, C_GOLD, C_HP, C_OK

def draw_top_bar(
    screen,
    fonts,
    w: int,
    top_h: int,
    state: dict,
    countdown_ms,
    next_wave_label: str = "",
):
    # background
    pygame.draw.rect(screen, C_UI_BG, (0, 0, w, top_h))

    line1 = f"WAVE {state['wave']}/{state['total_waves']}"
    t = fonts.l.render(line1, True, C_TEXT)
    screen.blit(t, (20, top_h//2 - t.get_height()//2))
    x = 40 + t.get_width()

    g = fonts.l.render(f"$ {int(state['gold'])}", True, C_GOLD)
    screen.blit(g, (x, top_h//2 - g.get_height()//2))
    x += g.get_width() + 30

    # castle hp bar
    bar_w = 200
    by = top_h//2 - 8
    pygame.draw.rect(screen, (50, 50, 60), (x, by, bar_w, 16), border_radius=7)
    fill = int(bar_w * (state["hp"] / max(1, state["max_hp"])))
    pygame.draw.rect(screen, C_HP, (x, by, fill, 16), border_radius=7)
    pygame.draw.rect(screen, (90, 90, 105), (x, by, bar_w, 16), 2, border_radius=7)
    lbl = fonts.xs.render(f"{state['hp']}/{state['max_hp']}", True, (230, 230, 230))
    screen.blit(lbl, (x + bar_w//2 - lbl.get_width()//2, by + 1))
    x += bar_w + 30

    # speed / pause / countdown on the right
    right = f"x{state['speed']}" + ("  PAUSED" if state["paused"] else "")
    r = fonts.m.render(right, True, C_TEXT)
    screen.blit(r, (w - r.get_width() - 20, top_h//2 - r.get_height()//2))

    if countdown_ms is not None:
        msg = f"Next wave in {countdown_ms/1000.0:.1f}s"
        if next_wave_label:
            msg += f"  ({next_wave_label})"
        c = fonts.s.render(msg, True, C_OK)
        screen.blit(c, (x, top_h//2 - c.get_height()//2))


def draw_bottom_bar(
    screen,
    fonts,
    w: int,
    y: int,
    bottom_h: int,
    selection: str,
    tooltip_line: str,
):
    pygame.draw.rect(screen, C_UI_BG, (0, y, w, bottom_h))

    left = fonts.s.render(selection, True, (220, 220, 220))
    screen.blit(left, (20, y + 12))

    tip_s = fonts.xs.render(tooltip_line, True, (180, 180, 190))
    old_clip = screen.get_clip()
    screen.set_clip(pygame.Rect(0, y, w, bottom_h))
    screen.blit(tip_s, (20, y + 20 + left.get_height()))
    screen.set_clip(old_clip)
