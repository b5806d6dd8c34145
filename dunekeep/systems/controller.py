from __future__ import annotations

from loguru import logger

from ..core import events as ev
from ..core.difficulty import CFG, GameConfig
from ..core.events import EventEmitter


class GameController:
    """Gold, castle HP, wave, speed and pause for one run.

    Passed by reference to whoever needs it (no global instance). Every
    setter mutates first and emits after, so listeners always read the new
    state.
    """

    def __init__(self, total_waves: int, events: EventEmitter | None = None, cfg: GameConfig = CFG):
        self.cfg = cfg
        self.events = events or EventEmitter()
        self.total_waves = total_waves
        self.reset(emit=False)

    def reset(self, emit: bool = True):
        self.gold = self.cfg.starting_gold
        self.max_hp = self.cfg.max_castle_hp
        self.hp = self.max_hp
        self.wave = 0
        self.speed = self.cfg.game_speeds[0]
        self.paused = False
        self.game_over = False
        self.victory = False
        self.gold_earned = 0
        self.gold_spent = 0
        if emit:
            self.events.emit(ev.GOLD_CHANGED, self.gold)
            self.events.emit(ev.HEALTH_CHANGED, self.hp, self.max_hp)
            self.events.emit(ev.WAVE_CHANGED, self.wave, self.total_waves)

    # ---- gold ----
    def can_afford(self, amount: int) -> bool:
        return amount >= 0 and self.gold >= amount

    def spend_gold(self, amount: int) -> bool:
        if amount < 0 or self.gold < amount:
            return False
        self.gold -= amount
        self.gold_spent += amount
        self.events.emit(ev.GOLD_CHANGED, self.gold)
        return True

    def add_gold(self, amount: int):
        if amount <= 0:
            return
        self.gold += amount
        self.gold_earned += amount
        self.events.emit(ev.GOLD_CHANGED, self.gold)

    # ---- castle ----
    def take_damage(self, amount: int) -> bool:
        """Returns True when this hit destroyed the castle."""
        if amount <= 0 or self.hp <= 0:
            return False
        self.hp = max(0, self.hp - amount)
        self.events.emit(ev.HEALTH_CHANGED, self.hp, self.max_hp)
        if self.hp == 0:
            logger.info("castle destroyed")
            self.events.emit(ev.CASTLE_DESTROYED)
            return True
        return False

    # ---- flow ----
    def set_wave(self, wave: int):
        self.wave = wave
        self.events.emit(ev.WAVE_CHANGED, self.wave, self.total_waves)

    def set_game_speed(self, n: int) -> bool:
        if n not in self.cfg.game_speeds:
            return False
        if n != self.speed:
            self.speed = n
            self.events.emit(ev.SPEED_CHANGED, self.speed)
        return True

    def toggle_pause(self) -> bool:
        if self.game_over:
            return self.paused
        self.paused = not self.paused
        self.events.emit(ev.PAUSE_CHANGED, self.paused)
        return self.paused

    def mark_game_over(self, victory: bool = False):
        if self.game_over:
            return
        self.game_over = True
        self.victory = victory
        self.paused = False
        logger.info(f"game over ({'victory' if victory else 'defeat'}) at wave {self.wave}/{self.total_waves}")
        self.events.emit(ev.GAME_OVER, victory)

    def state(self) -> dict:
        return {
            "gold": self.gold,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "wave": self.wave,
            "total_waves": self.total_waves,
            "speed": self.speed,
            "paused": self.paused,
            "game_over": self.game_over,
            "victory": self.victory,
            "gold_earned": self.gold_earned,
        }
