from __future__ import annotations

"""Pure combat math: wave scaling, mitigation, splash falloff, slow/poison stacking.

Everything here is stateless and deterministic. These numbers are the balance
contract shared by the creeps, the towers and the tests, so keep the formulas
exactly as written (floor where they floor, clamp where they clamp).
"""

import math
from typing import Iterable

from .difficulty import CFG, GameConfig


def _clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else (hi if v > hi else v)


# ---- wave scaling ----

def hp_multiplier(wave: int, cfg: GameConfig = CFG) -> float:
    """1.0 at wave 1, +wave_hp_scaling per wave, capped at max_hp_multiplier."""
    w = max(1, int(wave))
    return min(cfg.max_hp_multiplier, 1.0 + (w - 1) * cfg.wave_hp_scaling)


def armor_multiplier(wave: int, has_base_armor: bool, cfg: GameConfig = CFG) -> float:
    """Creeps without base armor never scale."""
    if not has_base_armor:
        return 1.0
    w = max(1, int(wave))
    return min(cfg.max_armor_multiplier, 1.0 + (w - 1) * cfg.wave_armor_scaling)


def scaled_health(base: float, wave: int, difficulty: float = 1.0, cfg: GameConfig = CFG) -> int:
    return int(math.floor(base * hp_multiplier(wave, cfg) * difficulty))


def scaled_armor(base: float, wave: int, cfg: GameConfig = CFG) -> int:
    return int(math.floor(base * armor_multiplier(wave, base > 0, cfg)))


def gold_reward(base: int, difficulty: float = 1.0) -> int:
    if base <= 0:
        return 0
    return max(1, int(math.floor(base * difficulty)))


# ---- mitigation ----

def damage_after_armor(dmg: float, armor: float, cfg: GameConfig = CFG) -> int:
    """Percentage mitigation; at least 1 damage always lands through armor."""
    if armor <= 0:
        return int(dmg)
    return max(1, int(math.floor(dmg * cfg.armor_constant / (cfg.armor_constant + armor))))


def effective_armor(base: float, penetration: float) -> float:
    return max(0.0, base - penetration)


def air_damage(dmg: float, bonus: float, flying: bool) -> int:
    if flying and bonus > 0:
        return int(math.floor(dmg * (1.0 + bonus)))
    return int(dmg)


def splash_damage(base: float, dist: float, radius: float, min_pct: float | None = None) -> int:
    """Full damage at the impact point, linear falloff to min_pct at the edge, 0 outside."""
    if min_pct is None:
        min_pct = CFG.splash_min_pct
    if radius <= 0 or dist >= radius:
        return 0
    d = max(0.0, dist)
    return int(math.floor(base * (1.0 - (d / radius) * (1.0 - min_pct))))


def poison_damage(base: float, stacks: int, max_stacks: int) -> float:
    """Reference damage of one tick with `stacks` equal stacks, capped at `max_stacks`.

    The status tracker sums the per-stack damages of the live stacks, which
    equals this value whenever the stacks share one tower's damage.
    """
    return base * min(max(0, stacks), max_stacks)


# ---- slows ----

def slow_multiplier(pct: float) -> float:
    return _clamp(1.0 - pct / 100.0, 0.0, 1.0)


def stacked_slow_multiplier(pcts: Iterable[float], cfg: GameConfig = CFG) -> float:
    """Diminishing returns: the i-th strongest slow counts for falloff**i of its value.

    Order of the input does not matter; two 50% slows never fully stop a creep.
    """
    m = 1.0
    for i, pct in enumerate(sorted(pcts, reverse=True)):
        m *= slow_multiplier(pct * cfg.slow_stack_falloff ** i)
    return _clamp(m, 0.0, 1.0)


def tower_dps(damage: float, fire_rate_ms: float) -> float:
    """Zero fire rate means a support tower: 0 DPS, not an error."""
    if fire_rate_ms <= 0:
        return 0.0
    return damage * 1000.0 / fire_rate_ms
