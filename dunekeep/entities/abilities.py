from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple
import math
import random

from .creep import Creep
from ..core.scaling import splash_damage
from ..data.abilities_db import get_ability

if TYPE_CHECKING:
    from .tower import Tower

# rolled before the hit, they change the main shot itself
PRE_HIT = ("critical", "pierce", "headshot", "shatter")


@dataclass
class PendingBlast:
    """Delayed area damage left behind by a shot (aftershock, earthquake)."""
    at: float
    x: float
    y: float
    radius: float
    damage: float
    every: float = 0.0
    ticks_left: int = 1
    falloff: bool = True


def ability_def(tower: "Tower") -> Optional[Dict[str, Any]]:
    if not tower.ability:
        return None
    return get_ability(tower.defn.branch, tower.ability)


def roll(tower: "Tower", rng: random.Random) -> Optional[str]:
    """One chance roll per shot for the tower's active ability."""
    a = ability_def(tower)
    if a is None or a.get("passive"):
        return None
    return a["id"] if rng.random() < a["chance"] else None


def modify_hit(tower: "Tower", ability: str, target: Creep, dmg: float, now: float) -> Tuple[float, bool, Optional[str]]:
    """Pre-hit abilities. Returns (damage, magic, ability) where ability is
    None when the trigger had nothing to act on."""
    p = ability_def(tower)["params"]
    magic = tower.defn.is_magic
    if ability == "critical":
        return dmg * p["multiplier"], magic, ability
    if ability == "pierce":
        return dmg, True, ability
    if ability == "headshot":
        if target.health_fraction <= p["threshold"]:
            return dmg + target.health * 10, magic, ability
        return dmg * p["multiplier"], magic, ability
    if ability == "shatter":
        if tower._immune(target) or not target.status.is_slowed(now):
            return dmg, magic, None
        target.status.clear_slows()
        return dmg * p["multiplier"], magic, ability
    return dmg, magic, ability


def on_hit(tower: "Tower", ability: str, target: Creep, impact, dmg: float,
           creeps: Sequence[Creep], now: float, rng: random.Random) -> float:
    """Post-hit abilities. Returns the damage they dealt right away."""
    d = tower.defn
    p = ability_def(tower)["params"]
    dealt = 0.0

    if ability == "multishot":
        others = [c for c in creeps if c is not target and tower.can_hit(c)]
        others.sort(key=lambda c: (math.dist(impact, c.position), c.id))
        for c in others[:p["extra_targets"]]:
            dealt += c.take_damage(dmg, d.damage_tag, d.is_magic, d.armor_penetration)

    elif ability == "piercing":
        base = math.atan2(impact[1] - tower.y, impact[0] - tower.x)
        reach = math.dist((tower.x, tower.y), impact)
        behind = []
        for c in creeps:
            if c is target or not c.is_targetable() or (c.is_flying and not d.hits_air):
                continue
            pos = c.position
            dist = math.dist((tower.x, tower.y), pos)
            if dist <= reach:
                continue
            diff = abs(math.atan2(pos[1] - tower.y, pos[0] - tower.x) - base)
            diff = min(diff, 2 * math.pi - diff)
            if diff < p["max_angle"]:
                behind.append((dist, c.id, c))
        behind.sort(key=lambda e: (e[0], e[1]))
        for _, _, c in behind[:p["pierce"]]:
            dealt += c.take_damage(dmg, d.damage_tag, d.is_magic, d.armor_penetration)

    elif ability == "aftershock":
        part = math.floor(dmg * p["damage_pct"])
        n = p["blasts"]
        for i in range(n):
            ang = i / n * 2 * math.pi + rng.random() * 0.5
            off = p["min_offset"] + rng.random() * (p["max_offset"] - p["min_offset"])
            tower.pending.append(PendingBlast(
                at=now + (i + 1) * p["spread_ms"] / n,
                x=impact[0] + math.cos(ang) * off,
                y=impact[1] + math.sin(ang) * off,
                radius=p["radius"],
                damage=part,
            ))

    elif ability == "earthquake":
        n = int(p["duration_ms"] // p["tick_ms"])
        tower.pending.append(PendingBlast(
            at=now + p["tick_ms"], x=impact[0], y=impact[1], radius=p["radius"],
            damage=p["damage"], every=p["tick_ms"], ticks_left=n, falloff=False,
        ))

    elif ability == "shrapnel":
        part = math.floor(dmg * p["damage_pct"])
        n = p["fragments"]
        for i in range(n):
            ang = i / n * 2 * math.pi
            end = (impact[0] + math.cos(ang) * p["distance"], impact[1] + math.sin(ang) * p["distance"])
            for c in creeps:
                if c is target or not c.alive or (c.is_flying and not d.hits_air):
                    continue
                if _segment_dist(c.position, impact, end) <= p["hit_radius"]:
                    dealt += c.take_damage(part, d.damage_tag, d.is_magic, d.armor_penetration)

    elif ability == "trap":
        if not tower._immune(target):
            target.apply_freeze(p["duration_ms"])

    elif ability == "frostnova":
        for c in creeps:
            if not c.alive or tower._immune(c):
                continue
            if math.dist(target.position, c.position) <= p["radius"]:
                c.apply_slow(d.slow_percent, d.slow_duration_ms)

    elif ability == "plague":
        if not tower._immune(target):
            target.mark_plague(p["damage"], p["duration_ms"], p["radius"])

    elif ability == "explosion":
        if target.status.poison_stack_count(now) >= p["min_stacks"]:
            for c in creeps:
                if c is target or not c.alive:
                    continue
                if math.dist(impact, c.position) <= p["radius"]:
                    dealt += c.take_damage(p["damage"], d.damage_tag, True)

    elif ability == "corrosive":
        if not tower._immune(target):
            target.apply_armor_reduction(p["armor"])

    elif ability == "bulletstorm":
        tower.storm_shots = p["shots"]

    elif ability == "ricochet":
        near = [c for c in creeps if c is not target and c.is_targetable()
                and not (c.is_flying and not d.hits_air)
                and math.dist(impact, c.position) <= p["radius"]]
        if near:
            c = min(near, key=lambda c: (math.dist(impact, c.position), c.id))
            dealt += c.take_damage(math.floor(dmg * p["damage_pct"]), d.damage_tag, d.is_magic, d.armor_penetration)

    elif ability == "incendiary":
        if not tower._immune(target):
            target.apply_burn(p["damage"], p["duration_ms"])

    return dealt


def resolve_pending(tower: "Tower", now: float, creeps: Sequence[Creep]) -> float:
    """Land every delayed blast that is due by `now`, in time order."""
    if not tower.pending:
        return 0.0
    d = tower.defn
    dealt = 0.0
    for b in tower.pending:
        while b.ticks_left > 0 and b.at <= now:
            for c in creeps:
                # ground only: shockwaves do not reach fliers
                if not c.alive or c.is_flying:
                    continue
                dist = math.dist((b.x, b.y), c.position)
                if dist > b.radius:
                    continue
                part = splash_damage(b.damage, dist, b.radius) if b.falloff else b.damage
                if part > 0:
                    dealt += c.take_damage(part, d.damage_tag, d.is_magic, d.armor_penetration)
            b.at += b.every
            b.ticks_left -= 1
    tower.pending = [b for b in tower.pending if b.ticks_left > 0]
    return dealt


def pulse_aura(tower: "Tower", now: float, towers: Sequence["Tower"], rng: random.Random):
    """Passive aura abilities roll once every `tick_ms` on a fixed grid."""
    a = ability_def(tower)
    if a is None or not a.get("passive") or not a.get("tick_ms"):
        return
    p = a["params"]
    while tower.next_passive_at <= now:
        at = tower.next_passive_at
        tower.next_passive_at += a["tick_ms"]
        if rng.random() >= a["chance"]:
            continue
        buffed = [t for t in buffed_towers(tower, towers) if t.defn.attacks]
        if not buffed:
            continue
        if a["id"] == "warcry":
            for t in buffed:
                t.haste_until = max(t.haste_until, at + p["duration_ms"])
                t.haste = p["haste"]
        elif a["id"] == "overcharge":
            t = rng.choice(buffed)
            t.next_fire_at = min(t.next_fire_at, at)


def buffed_towers(aura: "Tower", towers: Sequence["Tower"]) -> List["Tower"]:
    r2 = aura.defn.range ** 2
    return sorted(
        (t for t in towers if t is not aura and (t.x - aura.x) ** 2 + (t.y - aura.y) ** 2 <= r2),
        key=lambda t: t.id,
    )


def _segment_dist(p, a, b) -> float:
    ax, ay = a
    dx, dy = b[0] - ax, b[1] - ay
    L2 = dx * dx + dy * dy
    if L2 == 0:
        return math.dist(p, a)
    t = max(0.0, min(1.0, ((p[0] - ax) * dx + (p[1] - ay) * dy) / L2))
    return math.dist(p, (ax + t * dx, ay + t * dy))
