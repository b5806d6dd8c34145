from __future__ import annotations

from typing import Dict, Any
import json, os

from loguru import logger

PROFILE_FILE = os.path.join(os.getcwd(), "saves", "balance_profile.json")


def load_profile(path: str | None = None) -> Dict[str, Any] | None:
    path = path or PROFILE_FILE
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"ignoring unreadable balance profile {path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"ignoring balance profile {path}: expected an object")
        return None
    return data


def apply_profile(towers_db: Dict[str, Any], creeps_db: Dict[str, Any], profile: Dict[str, Any]) -> None:
    """Apply lightweight multipliers to the raw tables before they are frozen.

    Profile format:
    {
      "tower": {"damage_mul":0.95,"rate_mul":1.00,"range_mul":1.00,"cost_mul":1.00},
      "creep": {"hp_mul":1.10,"armor_add":0,"speed_mul":1.00,"reward_mul":1.00}
    }
    `rate_mul` > 1 means faster firing (shorter fire interval).
    Values that make a table invalid are caught by the loader afterwards.
    """
    t = (profile.get("tower") or {})
    c = (profile.get("creep") or {})

    t_dmg = float(t.get("damage_mul", 1.0))
    t_rate = float(t.get("rate_mul", 1.0))
    t_rng = float(t.get("range_mul", 1.0))
    t_cost = float(t.get("cost_mul", 1.0))

    for _, td in towers_db.items():
        for k in ("build_cost", "upgrade_cost"):
            if k in td:
                td[k] = int(round(float(td[k]) * t_cost))
        if "damage" in td:
            td["damage"] = float(td["damage"]) * t_dmg
        if float(td.get("fire_rate_ms", 0)) > 0 and t_rate > 0:
            td["fire_rate_ms"] = float(td["fire_rate_ms"]) / t_rate
        if "range" in td:
            td["range"] = float(td["range"]) * t_rng

    c_hp = float(c.get("hp_mul", 1.0))
    c_spd = float(c.get("speed_mul", 1.0))
    c_arm_add = float(c.get("armor_add", 0.0))
    c_rew = float(c.get("reward_mul", 1.0))

    for _, cd in creeps_db.items():
        cd["max_health"] = float(cd.get("max_health", 1.0)) * c_hp
        cd["speed"] = float(cd.get("speed", 0.0)) * c_spd
        cd["armor"] = max(0, int(round(float(cd.get("armor", 0)) + c_arm_add)))
        cd["gold_reward"] = int(round(float(cd.get("gold_reward", 0)) * c_rew))
