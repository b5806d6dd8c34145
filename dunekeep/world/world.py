from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import math
import random

from loguru import logger

from .map import MapDef, Spot
from ..core import events as ev
from ..core.difficulty import CFG, GameConfig
from ..core.events import EventEmitter
from ..core.tables import GameTables
from ..entities.creep import Creep, CreepSnapshot
from ..entities.tower import FireEvent, Tower, TowerSnapshot, TowerTypeDef
from ..systems.wave_scheduler import SpawnEvent, WaveScheduler


@dataclass(frozen=True)
class WorldSnapshot:
    now: float
    creeps: Tuple[CreepSnapshot, ...]
    towers: Tuple[TowerSnapshot, ...]
    fire_events: Tuple[FireEvent, ...]


@dataclass
class TickResult:
    spawned: List[Creep] = field(default_factory=list)
    killed: List[Creep] = field(default_factory=list)
    leaked: List[Creep] = field(default_factory=list)
    fire_events: List[FireEvent] = field(default_factory=list)
    damage_by_tower: Dict[str, float] = field(default_factory=dict)   # tower key -> health removed


class World:
    """Owns creeps and towers and runs the ordered per-tick pass.

    Order inside one tick: spawn events, status expiry, movement, combat.
    Creeps created by this tick's spawn events sit out the rest of the tick.
    """

    def __init__(
        self,
        tables: GameTables,
        map_def: MapDef,
        scheduler: WaveScheduler,
        events: EventEmitter | None = None,
        rng: random.Random | None = None,
        cfg: GameConfig = CFG,
    ):
        self.tables = tables
        self.map = map_def
        self.path = map_def.make_path()
        self.scheduler = scheduler
        self.events = events or EventEmitter()
        self.rng = rng or random.Random(0)
        self.cfg = cfg

        self.creeps: List[Creep] = []
        self.towers: List[Tower] = []
        self.fire_events: List[FireEvent] = []
        self.now = 0.0
        self._next_creep_id = 1
        self._next_tower_id = 1

    # ---- creeps ----
    def spawn_creep(self, key: str, wave: int, at: float, distance: float = 0.0) -> Creep:
        c = Creep(
            uid=self._next_creep_id,
            typedef=self.tables.creeps[key],
            path=self.path,
            wave=wave,
            now=at,
            distance=distance,
            difficulty=self.cfg.difficulty,
            cfg=self.cfg,
        )
        self._next_creep_id += 1
        return c

    def _spawn_due(self, now: float) -> List[Creep]:
        wave = self.scheduler.wave.wave_number if self.scheduler.wave else 1
        born = []
        for e in self.scheduler.poll(now):
            born.append(self._spawn_from(e, wave))
        return born

    def _spawn_from(self, e: SpawnEvent, wave: int) -> Creep:
        c = self.spawn_creep(e.creep_type, wave, e.at, e.distance)
        logger.debug(f"spawned {c!r} (group {e.group_index})")
        return c

    def _resolve_deaths(self, now: float, res: TickResult):
        dead = [c for c in self.creeps if not c.alive and not c.leaked]
        if not dead:
            return
        self.creeps = [c for c in self.creeps if c.alive]
        for c in dead:
            sod = c.type.spawn_on_death
            # children first so the scheduler never sees the wave as finished in between
            if sod is not None:
                self.scheduler.enqueue_children(sod.type, sod.count, now, c.distance)
            if c.plague is not None:
                self._spread_plague(c)
            self.scheduler.record_kill()
            res.killed.append(c)
            logger.debug(f"killed {c!r}")
            self.events.emit(ev.CREEP_KILLED, c)

    def _spread_plague(self, source: Creep):
        dmg, duration, radius = source.plague
        origin = source.position
        for c in self.creeps:
            if c.alive and math.dist(origin, c.position) <= radius:
                c.apply_poison(dmg, duration)

    def _resolve_leaks(self, res: TickResult):
        gone = [c for c in self.creeps if c.alive and c.reached_end()]
        if not gone:
            return
        for c in gone:
            c.leaked = True
        self.creeps = [c for c in self.creeps if not c.leaked]
        for c in gone:
            self.scheduler.record_leak()
            res.leaked.append(c)
            logger.debug(f"leaked {c!r}")
            self.events.emit(ev.CREEP_LEAKED, c)

    # ---- towers ----
    def tower_on_pad(self, pad_id: int) -> Optional[Tower]:
        for t in self.towers:
            if t.pad_id == pad_id:
                return t
        return None

    def add_tower(self, pad: Spot, defn: TowerTypeDef) -> Optional[Tower]:
        if self.tower_on_pad(pad.id) is not None:
            return None
        t = Tower(id=self._next_tower_id, pad_id=pad.id, x=pad.x, y=pad.y, defn=defn, next_fire_at=self.now)
        self._next_tower_id += 1
        self.towers.append(t)
        return t

    # ---- tick ----
    def update(self, now: float) -> TickResult:
        res = TickResult()
        self.now = now
        self.fire_events = []

        # 1. spawn
        born = self._spawn_due(now)
        res.spawned.extend(born)

        # 2. status expiry (poison ticks may kill here)
        reports = {}
        for c in self.creeps:
            reports[c.id] = c.update_status(now)
        self._resolve_deaths(now, res)

        # 3. movement
        for c in self.creeps:
            c.move(reports[c.id])
        self._resolve_leaks(res)

        # 4. combat
        before = {t.id: t.damage_dealt for t in self.towers}
        for t in self.towers:
            res.fire_events.extend(t.update(now, self.creeps, self.towers, self.rng))
        for t in self.towers:
            delta = t.damage_dealt - before[t.id]
            if delta > 0:
                res.damage_by_tower[t.defn.key] = res.damage_by_tower.get(t.defn.key, 0.0) + delta
        self._resolve_deaths(now, res)

        self.creeps.extend(born)
        for c in born:
            self.events.emit(ev.CREEP_SPAWNED, c)
        self.fire_events = res.fire_events
        return res

    def clear_creeps(self):
        self.creeps = []
        self.fire_events = []

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(
            now=self.now,
            creeps=tuple(c.snapshot() for c in self.creeps),
            towers=tuple(t.snapshot() for t in self.towers),
            fire_events=tuple(self.fire_events),
        )
