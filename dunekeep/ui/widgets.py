from __future__ import annotations
import pygame

class Button:
    def __init__(self, rect: pygame.Rect, text: str, col, cb=None, arg=None, icon=None, tooltip: str=""):
        self.rect = rect
        self.text = text
        self.col = col
        self.cb = cb
        self.arg = arg
        self.icon = icon
        self.disabled = False
        self.visible = True
        self.tooltip = tooltip

    def draw(self, surf, fonts):
        if not self.visible: return
        c = (60,60,60) if self.disabled else self.col
        pygame.draw.rect(surf, c, self.rect, border_radius=10)
        pygame.draw.rect(surf, (150,150,150), self.rect, 2, border_radius=10)
        cx, cy = self.rect.center
        if self.icon == "PAUSE":
            s = self.rect.h//4
            pygame.draw.rect(surf, (240,240,240), (cx-s, cy-s, s//2+1, 2*s))
            pygame.draw.rect(surf, (240,240,240), (cx+s//2, cy-s, s//2+1, 2*s))
        elif self.icon == "PLAY":
            s = self.rect.h//4
            pygame.draw.polygon(surf, (240,240,240), [(cx-s, cy-s), (cx-s, cy+s), (cx+s, cy)])
        else:
            txt = fonts.s.render(self.text, True, (240,240,240))
            surf.blit(txt, (cx - txt.get_width()//2, cy - txt.get_height()//2))

    def click(self, pos):
        if self.visible and (not self.disabled) and self.rect.collidepoint(pos) and self.cb:
            if self.arg is None: self.cb()
            else: self.cb(self.arg)
            return True
        return False
