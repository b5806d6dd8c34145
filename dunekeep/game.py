from __future__ import annotations
import os
import sys
import pygame
from loguru import logger

from .settings import DEFAULT_W, DEFAULT_H, FPS
from .assets import make_fonts
from .core.storage import SaveManager
from .core.balance_profile import load_profile
from .core.tables import load_tables
from .scenes.menu import MenuScene
from .scenes.game import GameScene
from .scenes.pause import PauseScene
from .scenes.results import ResultsScene


def configure_logging():
    logger.remove()
    logger.add(sys.stderr, level=os.environ.get("DUNEKEEP_LOG_LEVEL", "INFO"))


class Game:
    def __init__(self):
        pygame.init()
        pygame.display.set_caption("Dunekeep")

        self.w, self.h = DEFAULT_W, DEFAULT_H
        self.screen = pygame.display.set_mode((self.w, self.h))
        self.clock_pygame = pygame.time.Clock()
        self.fonts = make_fonts(self.h)

        self.saves = SaveManager()
        # tables load once; an optional balance profile is applied first
        self.tables = load_tables(profile=load_profile())

        self.running = True

        self.scene_stack = []
        self.scenes = {
            "MENU": MenuScene(self),
            "GAME": GameScene(self),
            "PAUSE": PauseScene(self),
            "RESULTS": ResultsScene(self),
        }
        self.scene = self.scenes["MENU"]
        self.scene.enter(None)

    def _switch(self, name: str, payload=None):
        # leaving the stack for a full scene: close everything underneath too
        self.scene.exit()
        while self.scene_stack:
            self.scene_stack.pop().exit()
        self.scene = self.scenes[name]
        self.scene.enter(payload)

    def loop(self):
        while self.running:
            dt = self.clock_pygame.tick(FPS) / 1000.0

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                else:
                    self.scene.handle_event(event)

            self.scene.update(dt)

            res = self.scene.consume_result()
            if res.next_scene:
                overlays = {"PAUSE"}
                if res.next_scene == "BACK":
                    if self.scene_stack:
                        self.scene.exit()
                        self.scene = self.scene_stack.pop()
                        self.scene.resume()
                    else:
                        self._switch("MENU")
                elif res.next_scene in overlays:
                    self.scene_stack.append(self.scene)
                    self.scene = self.scenes[res.next_scene]
                    self.scene.enter(res.payload)
                elif res.next_scene == "RESULTS":
                    # the game scene's session must stay open until results are read
                    self.scene_stack.clear()
                    self.scene = self.scenes[res.next_scene]
                    self.scene.enter(res.payload)
                    self.scenes["GAME"].exit()
                else:
                    self._switch(res.next_scene, res.payload)

            self.scene.draw(self.screen)
            pygame.display.flip()

        self.scene.exit()
        for s in self.scene_stack:
            s.exit()
        pygame.quit()


def run():
    configure_logging()
    Game().loop()


if __name__ == "__main__":
    run()
