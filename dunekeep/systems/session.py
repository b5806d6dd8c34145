from __future__ import annotations

"""One run of the game, without any rendering.

GameSession owns the services of a run (clock, controller, world, wave
scheduler, mines, telemetry) and exposes the player's input API. The pygame
scene and the headless simulator both drive it through `tick()`.
"""

from dataclasses import dataclass
from typing import List, Optional
import random

from loguru import logger

from .controller import GameController
from .economy import MineField, GoldMine, ScoreBreakdown, calculate_score, wave_gold_bonus
from .wave_scheduler import WaveScheduler
from ..core import events as ev
from ..core.difficulty import CFG, GameConfig
from ..core.events import EventEmitter
from ..core.storage import HighscoreRecord, RunRecordStats
from ..core.tables import GameTables
from ..core.telemetry import Telemetry
from ..core.time import GameClock
from ..data.abilities_db import abilities_for, get_ability
from ..entities.creep import Creep
from ..entities.tower import Tower
from ..stats import RunStats
from ..world.world import TickResult, World, WorldSnapshot


@dataclass(frozen=True)
class SessionSnapshot:
    world: WorldSnapshot
    state: dict
    countdown_ms: Optional[float]
    wave_active: bool


class GameSession:
    def __init__(
        self,
        tables: GameTables,
        map_key: Optional[str] = None,
        seed: int = 0,
        telemetry: Optional[Telemetry] = None,
        cfg: GameConfig = CFG,
    ):
        self.tables = tables
        self.cfg = cfg
        self.seed = seed
        self.map = tables.maps[map_key] if map_key else next(iter(tables.maps.values()))

        self.events = EventEmitter()
        self.clock = GameClock(cfg.game_speeds)
        self.controller = GameController(tables.total_waves, self.events, cfg)
        self.scheduler = WaveScheduler(cfg.child_spawn_stagger_ms)
        self.world = World(tables, self.map, self.scheduler, self.events, random.Random(seed), cfg)
        self.mines = MineField(tables.mines, [s.id for s in self.map.mine_slots])
        self.stats = RunStats()
        self.telemetry = telemetry or Telemetry(enabled=False)

        self.countdown_at: Optional[float] = None
        self.waves_completed = 0

        self.events.on(ev.CREEP_KILLED, self._on_creep_killed)
        self.events.on(ev.CREEP_LEAKED, self._on_creep_leaked)
        self.events.on(ev.CASTLE_DESTROYED, self._on_castle_destroyed)
        self.telemetry.attach(self.events)
        self.telemetry.start_run(seed, {"map": self.map.key})

    # ---- listeners ----
    def _on_creep_killed(self, c: Creep):
        self.stats.creeps_killed += 1
        if c.type.is_boss:
            self.stats.bosses_killed += 1
        if c.reward > 0:
            self.stats.gold_from_kills += c.reward
            self.controller.add_gold(c.reward)

    def _on_creep_leaked(self, c: Creep):
        self.stats.creeps_leaked += 1
        dmg = self.cfg.boss_leak_damage if c.type.is_boss else self.cfg.leak_damage
        self.controller.take_damage(dmg)

    def _on_castle_destroyed(self):
        self.scheduler.cancel()
        self.world.clear_creeps()
        self.countdown_at = None
        self.telemetry.wave_end(self.controller)
        self.controller.mark_game_over(victory=False)

    # ---- state ----
    @property
    def now(self) -> float:
        return self.clock.now

    @property
    def game_over(self) -> bool:
        return self.controller.game_over

    @property
    def countdown_remaining_ms(self) -> Optional[float]:
        if self.countdown_at is None:
            return None
        return max(0.0, self.countdown_at - self.clock.now)

    @property
    def creeps(self) -> List[Creep]:
        return self.world.creeps

    @property
    def towers(self) -> List[Tower]:
        return self.world.towers

    # ---- input ----
    def start_next_wave(self) -> bool:
        if self.game_over or self.scheduler.is_active:
            return False
        nxt = self.controller.wave + 1
        wave = self.tables.wave(nxt)
        if wave is None:
            return False
        self.scheduler.acknowledge()
        if not self.scheduler.start(wave, self.clock.now):
            return False
        self.countdown_at = None
        self.controller.set_wave(nxt)
        logger.info(f"wave {nxt}/{self.tables.total_waves} started ({wave.wave_type}, {wave.creep_count} creeps)")
        self.telemetry.wave_start(nxt, wave.wave_type, self.controller, len(self.world.towers), len(self.mines.built()))
        self.events.emit(ev.WAVE_STARTED, wave)
        return True

    def spend_gold(self, amount: int) -> bool:
        return self.controller.spend_gold(amount)

    def add_gold(self, amount: int):
        self.controller.add_gold(amount)

    def set_game_speed(self, n: int) -> bool:
        if not self.controller.set_game_speed(n):
            return False
        self.clock.set_speed(n)
        return True

    def cycle_speed(self) -> int:
        n = self.clock.cycle_speed()
        self.controller.set_game_speed(n)
        return n

    def toggle_pause(self) -> bool:
        paused = self.controller.toggle_pause()
        self.clock.set_paused(paused)
        return paused

    def build_mine(self, slot_id: int) -> bool:
        if self.game_over or not self.mines.build_mine(slot_id, self.spend_gold):
            return False
        self.stats.mines_built += 1
        self.events.emit(ev.MINE_BUILT, self.mines.get(slot_id))
        return True

    def upgrade_mine(self, mine: GoldMine) -> bool:
        if self.game_over or not self.mines.upgrade_mine(mine, self.spend_gold):
            return False
        self.stats.mines_upgraded += 1
        self.events.emit(ev.MINE_UPGRADED, mine)
        return True

    def build_tower(self, pad_id: int, branch: str = "archer") -> Optional[Tower]:
        if self.game_over:
            return None
        pad = self.map.pad(pad_id)
        defn = self.tables.towers.get(f"{branch}_1")
        if pad is None or defn is None or defn.build_cost <= 0:
            return None
        if self.world.tower_on_pad(pad_id) is not None:
            return None
        if not self.spend_gold(defn.build_cost):
            return None
        t = self.world.add_tower(pad, defn)
        self.stats.towers_built += 1
        logger.debug(f"{defn.key} built on pad {pad_id}")
        self.events.emit(ev.TOWER_BUILT, t)
        return t

    def upgrade_tower(self, tower: Tower, key: Optional[str] = None) -> bool:
        """Move `tower` to `key`, or to the next level of its own branch."""
        if self.game_over:
            return False
        options = self.tables.upgrade_options(tower.defn.key)
        if key is None:
            key = f"{tower.defn.branch}_{tower.defn.level + 1}"
        target = next((d for d in options if d.key == key), None)
        if target is None:
            return False
        if not self.spend_gold(target.upgrade_cost):
            return False
        tower.upgrade_to(target)
        self.stats.towers_upgraded += 1
        logger.debug(f"tower {tower.id} upgraded to {target.key}")
        self.events.emit(ev.TOWER_UPGRADED, tower)
        return True

    def ability_options(self, tower: Tower) -> List[dict]:
        if tower.ability or tower.defn.level != self.cfg.ability_level:
            return []
        return abilities_for(tower.defn.branch)

    def select_ability(self, tower: Tower, ability_id: str) -> bool:
        """Lock in one ability for a max-level tower. Free, and final."""
        if self.game_over or tower.ability:
            return False
        if tower.defn.level != self.cfg.ability_level:
            return False
        a = get_ability(tower.defn.branch, ability_id)
        if a is None:
            return False
        tower.ability = ability_id
        tower.next_passive_at = self.now + a.get("tick_ms", 0)
        logger.debug(f"tower {tower.id} ({tower.defn.key}) learned {ability_id}")
        self.events.emit(ev.TOWER_ABILITY_SELECTED, tower)
        return True

    # ---- tick ----
    def tick(self, delta_ms: float) -> Optional[TickResult]:
        dt = self.clock.advance(delta_ms)
        if dt <= 0 or self.game_over:
            return None
        now = self.clock.now

        res = self.world.update(now)
        for key, dealt in res.damage_by_tower.items():
            self.stats.record_damage(key, dealt)
            self.telemetry.damage(key, dealt)
        if self.game_over:
            # creeps born in the same tick as the fatal leak
            self.world.clear_creeps()
            return res

        if self.scheduler.is_complete:
            self._complete_wave()
        elif self.countdown_at is not None and now >= self.countdown_at:
            self.start_next_wave()
        return res

    def _complete_wave(self):
        self.scheduler.acknowledge()
        w = self.controller.wave
        self.waves_completed = w

        bonus = wave_gold_bonus(w, self.cfg)
        self.stats.gold_from_waves += bonus
        self.controller.add_gold(bonus)
        income = self.mines.total_income()
        if income > 0:
            self.stats.gold_from_mines += income
            self.controller.add_gold(income)

        logger.info(f"wave {w} cleared: +{bonus} bonus, +{income} mines, gold={self.controller.gold}")
        self.telemetry.wave_end(self.controller)
        self.events.emit(ev.WAVE_COMPLETED, w)

        if w >= self.tables.total_waves:
            self.controller.mark_game_over(victory=True)
        else:
            self.countdown_at = self.clock.now + self.cfg.wave_countdown_seconds * 1000

    # ---- results ----
    def final_score(self) -> ScoreBreakdown:
        return calculate_score(
            self.waves_completed,
            self.controller.gold_earned,
            self.controller.hp,
            self.clock.played_seconds(),
            self.cfg,
        )

    def highscore_record(self, player_name: str) -> HighscoreRecord:
        return HighscoreRecord(
            player_name=player_name or "Player",
            score=self.final_score().final_score,
            wave_reached=self.controller.wave,
            total_waves=self.tables.total_waves,
            run_stats=RunRecordStats(
                hp_left=self.controller.hp,
                gold_earned=self.controller.gold_earned,
                time_seconds=self.clock.played_seconds(),
            ),
        )

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            world=self.world.snapshot(),
            state=self.controller.state(),
            countdown_ms=self.countdown_remaining_ms,
            wave_active=self.scheduler.is_active,
        )

    def close(self):
        self.telemetry.close()
