from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
import math
import random

from . import abilities
from .creep import Creep
from ..core.scaling import air_damage, splash_damage, tower_dps

TARGET_MODES = ["FIRST", "LAST", "STRONGEST", "CLOSEST"]


@dataclass(frozen=True)
class TowerTypeDef:
    key: str
    name: str
    kind: str            # physical / magic / support
    branch: str
    level: int
    range: float
    fire_rate_ms: float  # 0 = does not attack
    damage: float
    damage_tag: str
    build_cost: int = 0
    upgrade_cost: int = 0
    hits_air: bool = True
    splash_radius: float = 0.0
    slow_percent: float = 0.0
    slow_duration_ms: float = 0.0
    max_slow_targets: int = 0
    dot_damage: float = 0.0
    dot_duration_ms: float = 0.0
    crit_chance: float = 0.0
    crit_multiplier: float = 1.0
    aura_damage_multiplier: float = 0.0
    air_damage_bonus: float = 0.0
    armor_penetration: float = 0.0

    @property
    def is_magic(self) -> bool:
        return self.kind == "magic"

    @property
    def attacks(self) -> bool:
        return self.fire_rate_ms > 0

    def dps(self) -> float:
        return tower_dps(self.damage, self.fire_rate_ms)


@dataclass(frozen=True)
class FireEvent:
    tower_id: int
    tower_key: str
    origin: Tuple[float, float]
    target_id: int
    impact: Tuple[float, float]
    damage: float
    splash_radius: float = 0.0
    crit: bool = False
    ability: Optional[str] = None
    dealt: float = 0.0       # health actually removed, splash and ability hits included


@dataclass(frozen=True)
class TowerSnapshot:
    id: int
    key: str
    position: Tuple[float, float]
    range: float
    target_id: Optional[int]
    ability: Optional[str] = None


@dataclass
class Tower:
    id: int
    pad_id: int
    x: float
    y: float
    defn: TowerTypeDef
    spent: int = 0
    next_fire_at: float = 0.0
    target_id: Optional[int] = None
    target_mode_idx: int = 0
    damage_dealt: float = 0.0
    shots: int = 0
    ability: Optional[str] = None
    next_passive_at: float = 0.0
    storm_shots: int = 0
    haste: float = 1.0
    haste_until: float = 0.0
    pending: List[abilities.PendingBlast] = field(default_factory=list)

    def __post_init__(self):
        if not self.spent:
            self.spent = self.defn.build_cost

    @property
    def target_mode(self) -> str:
        return TARGET_MODES[self.target_mode_idx]

    def cycle_target_mode(self):
        self.target_mode_idx = (self.target_mode_idx + 1) % len(TARGET_MODES)

    def upgrade_to(self, defn: TowerTypeDef):
        self.spent += defn.upgrade_cost
        self.defn = defn

    def _dist2(self, pos) -> float:
        return (pos[0] - self.x) ** 2 + (pos[1] - self.y) ** 2

    def can_hit(self, c: Creep) -> bool:
        if not c.is_targetable():
            return False
        if c.is_flying and not self.defn.hits_air:
            return False
        return self._dist2(c.position) <= self.defn.range ** 2

    def aura_bonus(self, towers: Sequence["Tower"]) -> float:
        """Strongest support aura covering this tower (auras do not stack)."""
        best = 0.0
        for t in towers:
            if t is self or t.defn.aura_damage_multiplier <= 0:
                continue
            if self._dist2((t.x, t.y)) <= t.defn.range ** 2:
                best = max(best, t.defn.aura_damage_multiplier)
        return best

    def pick_target(self, creeps: Sequence[Creep]) -> Optional[Creep]:
        cand = [c for c in creeps if self.can_hit(c)]
        if not cand:
            return None
        mode = self.target_mode
        # ties fall back to the lower creep id so targeting stays deterministic
        if mode == "FIRST":
            return max(cand, key=lambda c: (c.distance, -c.id))
        if mode == "LAST":
            return min(cand, key=lambda c: (c.distance, c.id))
        if mode == "STRONGEST":
            return max(cand, key=lambda c: (c.health, -c.id))
        return min(cand, key=lambda c: (self._dist2(c.position), c.id))

    def update(self, now: float, creeps: Sequence[Creep], towers: Sequence["Tower"], rng: random.Random) -> List[FireEvent]:
        d = self.defn
        if self.pending:
            self.damage_dealt += abilities.resolve_pending(self, now, creeps)
        if self.ability:
            abilities.pulse_aura(self, now, towers, rng)
        if not d.attacks or now < self.next_fire_at:
            return []
        target = self.pick_target(creeps)
        if target is None:
            # stays armed: the next creep in range is shot at once
            self.target_id = None
            return []
        self.target_id = target.id
        out = [self._shoot(target, now, creeps, towers, rng)]
        if out[0].ability == "quickdraw":
            follow = self.pick_target(creeps)
            if follow is not None:
                out.append(self._shoot(follow, now, creeps, towers, rng, allow_ability=False))

        # keep the fire grid so cadence does not depend on tick size
        due = self.next_fire_at
        interval = self.fire_interval(now)
        if self.storm_shots > 0:
            self.storm_shots -= 1
        self.next_fire_at = due + interval if now - due < interval else now + interval
        return out

    def fire_interval(self, now: float) -> float:
        interval = self.defn.fire_rate_ms
        if self.storm_shots > 0:
            interval /= abilities.ability_def(self)["params"]["speed"]
        if now < self.haste_until:
            interval /= self.haste
        return interval

    def crit_bonus(self, towers: Sequence["Tower"]) -> float:
        """Extra double-damage chance from a covering critical aura."""
        best = 0.0
        for t in towers:
            if t is self or t.ability != "critaura":
                continue
            if self._dist2((t.x, t.y)) <= t.defn.range ** 2:
                best = max(best, abilities.ability_def(t)["chance"])
        return best

    def _shoot(self, target: Creep, now: float, creeps: Sequence[Creep], towers: Sequence["Tower"],
               rng: random.Random, allow_ability: bool = True) -> FireEvent:
        d = self.defn
        self.shots += 1
        triggered = abilities.roll(self, rng) if allow_ability else None

        dmg = d.damage * (1.0 + self.aura_bonus(towers))
        crit = d.crit_chance > 0 and rng.random() < d.crit_chance
        if crit:
            dmg *= d.crit_multiplier
        bonus = self.crit_bonus(towers)
        if bonus > 0 and rng.random() < bonus:
            dmg *= 2.0
            crit = True
        magic = d.is_magic
        if triggered in abilities.PRE_HIT:
            dmg, magic, triggered = abilities.modify_hit(self, triggered, target, dmg, now)
            crit = crit or triggered in ("critical", "headshot")
        dmg = math.floor(dmg)
        impact = target.position
        dealt = 0.0

        if d.splash_radius > 0:
            for c in creeps:
                if not c.alive or (c.is_flying and not d.hits_air):
                    continue
                dist = math.dist(impact, c.position)
                part = splash_damage(dmg, dist, d.splash_radius)
                if part > 0:
                    dealt += c.take_damage(part, d.damage_tag, magic, d.armor_penetration)
        else:
            hit = air_damage(dmg, d.air_damage_bonus, target.is_flying)
            dealt += target.take_damage(hit, d.damage_tag, magic, d.armor_penetration)

        if d.slow_percent > 0:
            self._apply_slows(target, creeps)
        if d.dot_damage > 0 and not self._immune(target):
            target.apply_poison(d.dot_damage, d.dot_duration_ms)
        if triggered and triggered not in abilities.PRE_HIT:
            dealt += abilities.on_hit(self, triggered, target, impact, dmg, creeps, now, rng)

        self.damage_dealt += dealt
        return FireEvent(self.id, d.key, (self.x, self.y), target.id, impact, dmg,
                         d.splash_radius, crit, triggered, dealt)

    def _immune(self, c: Creep) -> bool:
        # elemental immunity negates debuffs along with the damage
        tag = c.type.only_damaged_by
        return bool(tag) and tag != self.defn.damage_tag

    def _apply_slows(self, target: Creep, creeps: Sequence[Creep]):
        d = self.defn
        if not self._immune(target):
            target.apply_slow(d.slow_percent, d.slow_duration_ms)
        extra = max(0, d.max_slow_targets - 1)
        if not extra:
            return
        tp = target.position
        others = [c for c in creeps if c is not target and self.can_hit(c)]
        others.sort(key=lambda c: (math.dist(tp, c.position), c.id))
        for c in others[:extra]:
            if not self._immune(c):
                c.apply_slow(d.slow_percent, d.slow_duration_ms)

    def snapshot(self) -> TowerSnapshot:
        return TowerSnapshot(self.id, self.defn.key, (self.x, self.y), self.defn.range, self.target_id, self.ability)
