from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from loguru import logger

from .status import StatusEffectTracker, StatusReport
from ..core.difficulty import CFG, GameConfig
from ..core.scaling import (
    damage_after_armor, effective_armor, gold_reward, scaled_armor, scaled_health,
)
from ..world.path import PathSystem


@dataclass(frozen=True)
class SpawnOnDeath:
    type: str
    count: int


@dataclass(frozen=True)
class CreepTypeDef:
    key: str
    name: str
    max_health: float
    speed: float          # px / second
    armor: float
    gold_reward: int
    can_jump: bool = False
    is_flying: bool = False
    can_dig: bool = False
    has_shield: bool = False
    has_ghost_phase: bool = False
    can_dispel: bool = False
    is_boss: bool = False
    dispel_immunity_ms: Optional[float] = None
    spawn_on_death: Optional[SpawnOnDeath] = None
    size_scale: float = 1.0
    only_damaged_by: Optional[str] = None


@dataclass(frozen=True)
class CreepSnapshot:
    id: int
    type: str
    position: Tuple[float, float]
    direction: Tuple[float, float]
    health_fraction: float
    flags: frozenset
    size_scale: float
    flying: bool


class Creep:
    def __init__(
        self,
        uid: int,
        typedef: CreepTypeDef,
        path: PathSystem,
        wave: int,
        now: float,
        distance: float = 0.0,
        difficulty: float = 1.0,
        cfg: GameConfig = CFG,
    ):
        self.id = uid
        self.type = typedef
        self.path = path
        self.wave = wave
        self.cfg = cfg

        self.max_health = max(1, scaled_health(typedef.max_health, wave, difficulty, cfg))
        self.health = float(self.max_health)
        self.armor = scaled_armor(typedef.armor, wave, cfg)
        self.reward = gold_reward(typedef.gold_reward, difficulty)

        self.distance = float(distance)
        self.alive = True
        self.leaked = False
        self.spawned_at = now
        self._now = now

        self.plague = None   # (damage_per_tick, duration_ms, radius) spread on death

        self.status = StatusEffectTracker(
            spawned_at=now,
            has_shield=typedef.has_shield,
            can_jump=typedef.can_jump,
            can_dig=typedef.can_dig,
            has_ghost_phase=typedef.has_ghost_phase,
            can_dispel=typedef.can_dispel,
            dispel_immunity_ms=typedef.dispel_immunity_ms,
            cfg=cfg,
        )

    def __repr__(self):
        return f"<Creep #{self.id} {self.type.key} hp={self.health:.0f}/{self.max_health} d={self.distance:.1f}>"

    @property
    def key(self) -> str:
        return self.type.key

    @property
    def is_flying(self) -> bool:
        return self.type.is_flying

    @property
    def health_fraction(self) -> float:
        return max(0.0, self.health / self.max_health)

    @property
    def position(self) -> Tuple[float, float]:
        return self.path.position_at(self.distance).position

    def is_targetable(self) -> bool:
        return self.alive and not self.leaked and self.status.is_targetable(self._now)

    # ---- status phase ----
    def update_status(self, now: float) -> StatusReport:
        rep = self.status.advance(now)
        self._now = now
        for dmg in rep.poison_ticks:
            if not self.alive:
                break
            self._apply_dot(dmg, "poison")
        for dmg in rep.burn_ticks:
            if not self.alive:
                break
            self._apply_dot(dmg, "burn")
        if rep.dispels:
            logger.debug(f"{self!r} dispelled its debuffs")
        return rep

    def _apply_dot(self, amount: float, tag: str) -> float:
        # damage over time skips shield and armor but not immunity or invulnerability
        if self.type.only_damaged_by and self.type.only_damaged_by != tag:
            return 0.0
        if self.status.is_invulnerable(self._now):
            return 0.0
        return self._lose_health(amount)

    # ---- movement phase ----
    def move(self, rep: StatusReport):
        if not self.alive:
            return
        speed = self.type.speed * self.status.speed_multiplier(self._now)
        self.distance += speed * rep.walk_ms / 1000.0 + rep.extra_distance

    def reached_end(self) -> bool:
        return self.path.has_reached_end(self.distance)

    # ---- combat phase ----
    def take_damage(self, amount: float, tag: str, magic: bool = False, armor_penetration: float = 0.0) -> float:
        """Apply one hit. Returns the health actually removed (0 when blocked)."""
        if not self.alive or amount <= 0:
            return 0.0
        if self.type.only_damaged_by and tag != self.type.only_damaged_by:
            return 0.0
        if self.status.is_invulnerable(self._now):
            return 0.0
        if self.status.absorb_hit():
            return 0.0
        if magic:
            dmg = amount
        else:
            pen = armor_penetration + self.status.armor_reduction
            dmg = damage_after_armor(amount, effective_armor(self.armor, pen), self.cfg)
        return self._lose_health(dmg)

    def _lose_health(self, dmg: float) -> float:
        dealt = min(self.health, float(dmg))
        self.health -= dealt
        if self.health <= 0:
            self.health = 0.0
            self.alive = False
            return dealt
        if self.status.maybe_trigger_ghost(self.health_fraction, self._now):
            logger.debug(f"{self!r} entered ghost phase")
        return dealt

    def apply_slow(self, pct: float, duration_ms: float) -> bool:
        if not self.alive:
            return False
        return self.status.apply_slow(pct, duration_ms, self._now)

    def apply_poison(self, damage_per_tick: float, duration_ms: float) -> bool:
        if not self.alive:
            return False
        return self.status.apply_poison(damage_per_tick, duration_ms, self._now)

    def apply_freeze(self, duration_ms: float) -> bool:
        if not self.alive:
            return False
        return self.status.apply_freeze(duration_ms, self._now)

    def apply_burn(self, damage_per_tick: float, duration_ms: float) -> bool:
        if not self.alive:
            return False
        return self.status.apply_burn(damage_per_tick, duration_ms, self._now)

    def apply_armor_reduction(self, amount: float) -> bool:
        if not self.alive:
            return False
        return self.status.apply_armor_reduction(amount, self._now)

    def mark_plague(self, damage_per_tick: float, duration_ms: float, radius: float) -> bool:
        if not self.alive or self.status.is_immune(self._now):
            return False
        self.plague = (damage_per_tick, duration_ms, radius)
        return True

    def snapshot(self) -> CreepSnapshot:
        p = self.path.position_at(self.distance)
        return CreepSnapshot(
            id=self.id,
            type=self.type.key,
            position=p.position,
            direction=p.direction,
            health_fraction=self.health_fraction,
            flags=self.status.flags(self._now),
            size_scale=self.type.size_scale,
            flying=self.type.is_flying,
        )
