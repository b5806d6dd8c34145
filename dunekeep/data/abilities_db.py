from __future__ import annotations
from typing import Any, Dict, List, Optional

# NOTE: Data-only module (no pygame import) so it can be used by the balance bot / headless sim.
# One of these is picked per level-4 tower. "chance" is rolled once per shot, or once per
# "tick_ms" for passive (aura) abilities.
ABILITIES: Dict[str, List[Dict[str, Any]]] = {
    "archer": [
        {"id": "multishot", "name": "Multishot", "desc": "Fires 3 arrows at different targets.",
         "chance": 0.20, "params": {"extra_targets": 2}},
        {"id": "piercing", "name": "Piercing Arrow", "desc": "Arrow goes through up to 2 creeps behind the target.",
         "chance": 0.15, "params": {"pierce": 2, "max_angle": 0.3}},
        {"id": "quickdraw", "name": "Quick Draw", "desc": "Fires a second arrow right away.",
         "chance": 0.25, "params": {}},
    ],
    "rockcannon": [
        {"id": "aftershock", "name": "Aftershock", "desc": "3 smaller blasts follow around the impact.",
         "chance": 0.25, "params": {"blasts": 3, "radius": 50, "damage_pct": 0.5, "spread_ms": 500,
                                    "min_offset": 30, "max_offset": 60}},
        {"id": "earthquake", "name": "Earthquake", "desc": "Shakes the ground for 3 s around the impact.",
         "chance": 0.20, "params": {"radius": 85, "damage": 8, "tick_ms": 500, "duration_ms": 3000}},
        {"id": "shrapnel", "name": "Shrapnel", "desc": "6 fragments hit creeps around the impact.",
         "chance": 0.30, "params": {"fragments": 6, "distance": 80, "hit_radius": 20, "damage_pct": 0.25}},
    ],
    "sniper": [
        {"id": "critical", "name": "Critical Shot", "desc": "Double damage.",
         "chance": 0.10, "params": {"multiplier": 2.0}},
        {"id": "pierce", "name": "Armor Pierce", "desc": "Ignores armor.",
         "chance": 0.20, "params": {}},
        {"id": "headshot", "name": "Headshot", "desc": "Executes wounded creeps, +50% otherwise.",
         "chance": 0.08, "params": {"threshold": 0.25, "multiplier": 1.5}},
    ],
    "icetower": [
        {"id": "trap", "name": "Ice Trap", "desc": "Freezes the target for 2 s.",
         "chance": 0.15, "params": {"duration_ms": 2000}},
        {"id": "frostnova", "name": "Frost Nova", "desc": "Slows every creep around the target.",
         "chance": 0.20, "params": {"radius": 80}},
        {"id": "shatter", "name": "Shatter", "desc": "Breaks the slow on a slowed target for double damage.",
         "chance": 0.12, "params": {"multiplier": 2.0}},
    ],
    "poison": [
        {"id": "plague", "name": "Plague", "desc": "The target spreads poison to its neighbours when it dies.",
         "chance": 0.18, "params": {"damage": 8, "duration_ms": 5000, "radius": 60}},
        {"id": "explosion", "name": "Toxic Explosion", "desc": "Heavily poisoned targets burst on nearby creeps.",
         "chance": 0.15, "params": {"min_stacks": 3, "damage": 40, "radius": 60}},
        {"id": "corrosive", "name": "Corrosion", "desc": "Strips 2 armor, up to 6.",
         "chance": 0.25, "params": {"armor": 2}},
    ],
    "rapidfire": [
        {"id": "bulletstorm", "name": "Bullet Storm", "desc": "Next 5 shots fire twice as fast.",
         "chance": 0.12, "params": {"shots": 5, "speed": 2.0}},
        {"id": "ricochet", "name": "Ricochet", "desc": "Bounces to the closest other creep for half damage.",
         "chance": 0.20, "params": {"radius": 100, "damage_pct": 0.5}},
        {"id": "incendiary", "name": "Incendiary", "desc": "Burns the target for 5 per second over 3 s.",
         "chance": 0.15, "params": {"damage": 5, "duration_ms": 3000}},
    ],
    "aura": [
        {"id": "warcry", "name": "War Cry", "desc": "Buffed towers sometimes attack 25% faster for 4 s.",
         "chance": 0.10, "passive": True, "tick_ms": 1000, "params": {"haste": 1.25, "duration_ms": 4000}},
        {"id": "critaura", "name": "Critical Aura", "desc": "Buffed towers get a 15% chance to double damage.",
         "chance": 0.15, "passive": True, "params": {"multiplier": 2.0}},
        {"id": "overcharge", "name": "Overcharge", "desc": "Sometimes reloads one buffed tower instantly.",
         "chance": 0.08, "passive": True, "tick_ms": 1000, "params": {}},
    ],
}


def abilities_for(branch: str) -> List[Dict[str, Any]]:
    return ABILITIES.get(branch, [])


def get_ability(branch: str, ability_id: str) -> Optional[Dict[str, Any]]:
    for a in abilities_for(branch):
        if a["id"] == ability_id:
            return a
    return None
