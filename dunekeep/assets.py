from __future__ import annotations
import pygame

class Fonts:
    def __init__(self, h: int):
        # sizes scale with window height; 720 is the reference
        k = h / 720.0
        self.xl = pygame.font.SysFont("Arial", max(18, int(44*k)), bold=True)
        self.l  = pygame.font.SysFont("Arial", max(16, int(28*k)), bold=True)
        self.m  = pygame.font.SysFont("Arial", max(14, int(20*k)), bold=True)
        self.s  = pygame.font.SysFont("Arial", max(12, int(16*k)))
        self.xs = pygame.font.SysFont("Arial", max(11, int(13*k)))

def make_fonts(h: int) -> Fonts:
    return Fonts(h)
