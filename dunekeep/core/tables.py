from __future__ import annotations

"""Static definition tables (creeps, waves, towers, mines, maps).

The JSON files under `dunekeep/data` are read once at startup, checked, and
turned into frozen dataclasses. Anything malformed raises ConfigError here so
a broken table never reaches gameplay.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import json
import math

from loguru import logger

from .balance_profile import apply_profile
from .difficulty import CFG, GameConfig
from .errors import ConfigError
from ..entities.creep import CreepTypeDef, SpawnOnDeath
from ..entities.tower import TowerTypeDef
from ..systems.economy import MineLadder, MineLevel
from ..systems.wave_scheduler import CreepGroup, WaveDef
from ..world.map import MapDef, Spot

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

WAVE_TYPES = {"normal", "boss", "flying", "digger", "ghost", "broodmother", "chaos", "flame", "plaguebearer"}
TOWER_KINDS = {"physical", "magic", "support"}
# branches that can be entered from an archer tower of these levels
BRANCH_FROM = "archer"
BRANCH_MAX_LEVEL = 2


@dataclass(frozen=True)
class GameTables:
    creeps: Mapping[str, CreepTypeDef]
    waves: Tuple[WaveDef, ...]
    towers: Mapping[str, TowerTypeDef]
    mines: MineLadder
    maps: Mapping[str, MapDef]

    @property
    def total_waves(self) -> int:
        return len(self.waves)

    def wave(self, n: int) -> Optional[WaveDef]:
        if 1 <= n <= len(self.waves):
            return self.waves[n - 1]
        return None

    def buildable_towers(self) -> List[TowerTypeDef]:
        return [t for t in self.towers.values() if t.build_cost > 0]

    def upgrade_options(self, key: str) -> List[TowerTypeDef]:
        """Next level of the same branch, plus branch entries for young archers."""
        cur = self.towers.get(key)
        if cur is None:
            return []
        out = []
        nxt = self.towers.get(f"{cur.branch}_{cur.level + 1}")
        if nxt is not None:
            out.append(nxt)
        if cur.branch == BRANCH_FROM and cur.level <= BRANCH_MAX_LEVEL:
            out.extend(t for t in self.towers.values() if t.level == 1 and t.branch != BRANCH_FROM)
        return out


# ---- helpers ----

def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ConfigError(path.name, "file not found") from None
    except ValueError as e:
        raise ConfigError(path.name, f"invalid JSON ({e})") from None


def _num(table: str, where: str, d: Dict[str, Any], key: str, default=None, minimum: float | None = None,
         positive: bool = False, integer: bool = False):
    if key not in d:
        if default is None:
            raise ConfigError(table, f"{where}: missing '{key}'")
        return default
    v = d[key]
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
        raise ConfigError(table, f"{where}: '{key}' must be a number, got {v!r}")
    if integer and int(v) != v:
        raise ConfigError(table, f"{where}: '{key}' must be an integer, got {v!r}")
    if positive and v <= 0:
        raise ConfigError(table, f"{where}: '{key}' must be > 0, got {v!r}")
    if minimum is not None and v < minimum:
        raise ConfigError(table, f"{where}: '{key}' must be >= {minimum}, got {v!r}")
    return int(v) if integer else v


def _obj(table: str, where: str, v: Any) -> Dict[str, Any]:
    if not isinstance(v, dict):
        raise ConfigError(table, f"{where}: expected an object")
    return v


# ---- parsers ----

def parse_creeps(raw: Any, cfg: GameConfig = CFG) -> Dict[str, CreepTypeDef]:
    T = "creeps"
    raw = _obj(T, "root", raw)
    if not raw:
        raise ConfigError(T, "no creep types defined")
    out: Dict[str, CreepTypeDef] = {}
    for key, d in raw.items():
        d = _obj(T, key, d)
        sod = None
        if d.get("spawn_on_death") is not None:
            s = _obj(T, f"{key}.spawn_on_death", d["spawn_on_death"])
            sod = SpawnOnDeath(str(s.get("type", "")), _num(T, f"{key}.spawn_on_death", s, "count", positive=True, integer=True))
        imm = None
        if "dispel_immunity_ms" in d:
            imm = float(_num(T, key, d, "dispel_immunity_ms", positive=True))
            if imm >= cfg.dispel_cooldown_ms:
                raise ConfigError(T, f"{key}: dispel immunity must be shorter than the dispel cooldown")
        only = d.get("only_damaged_by")
        if only is not None and (not isinstance(only, str) or not only):
            raise ConfigError(T, f"{key}: 'only_damaged_by' must be a damage tag")
        out[key] = CreepTypeDef(
            key=key,
            name=str(d.get("name", key)),
            max_health=float(_num(T, key, d, "max_health", positive=True)),
            speed=float(_num(T, key, d, "speed", minimum=0)),
            armor=float(_num(T, key, d, "armor", default=0, minimum=0)),
            gold_reward=_num(T, key, d, "gold_reward", default=0, minimum=0, integer=True),
            can_jump=bool(d.get("can_jump", False)),
            is_flying=bool(d.get("is_flying", False)),
            can_dig=bool(d.get("can_dig", False)),
            has_shield=bool(d.get("has_shield", False)),
            has_ghost_phase=bool(d.get("has_ghost_phase", False)),
            can_dispel=bool(d.get("can_dispel", False)),
            is_boss=bool(d.get("is_boss", False)),
            dispel_immunity_ms=imm,
            spawn_on_death=sod,
            size_scale=float(_num(T, key, d, "size_scale", default=1.0, positive=True)),
            only_damaged_by=only,
        )
    for key, c in out.items():
        if c.spawn_on_death is None:
            continue
        child = out.get(c.spawn_on_death.type)
        if child is None:
            raise ConfigError(T, f"{key}: spawn_on_death references unknown creep '{c.spawn_on_death.type}'")
        if child.spawn_on_death is not None:
            raise ConfigError(T, f"{key}: spawn_on_death child '{child.key}' must not spawn children itself")
    return out


def parse_waves(raw: Any, creeps: Mapping[str, CreepTypeDef]) -> Tuple[WaveDef, ...]:
    T = "waves"
    if not isinstance(raw, list) or not raw:
        raise ConfigError(T, "expected a non-empty list of waves")
    out: List[WaveDef] = []
    for i, d in enumerate(raw, start=1):
        d = _obj(T, f"entry {i}", d)
        n = _num(T, f"entry {i}", d, "wave", integer=True)
        if n != i:
            raise ConfigError(T, f"entry {i}: wave numbers must run 1, 2, 3... without gaps (got {n})")
        where = f"wave {n}"
        wtype = str(d.get("wave_type", "normal"))
        if wtype not in WAVE_TYPES:
            raise ConfigError(T, f"{where}: unknown wave_type '{wtype}'")
        groups_raw = d.get("groups")
        if not isinstance(groups_raw, list) or not groups_raw:
            raise ConfigError(T, f"{where}: needs at least one group")
        groups = []
        for j, g in enumerate(groups_raw):
            gw = f"{where} group {j}"
            g = _obj(T, gw, g)
            ctype = g.get("creep")
            if ctype not in creeps:
                raise ConfigError(T, f"{gw}: unknown creep type {ctype!r}")
            groups.append(CreepGroup(
                creep_type=ctype,
                count=_num(T, gw, g, "count", positive=True, integer=True),
                interval_ms=float(_num(T, gw, g, "interval_ms", positive=True)),
                delay_start_ms=float(_num(T, gw, g, "delay_start_ms", default=0, minimum=0)),
            ))
        out.append(WaveDef(
            wave_number=n,
            groups=tuple(groups),
            wave_type=wtype,
            announcement=str(d.get("announcement", "")),
            parallel_spawn=bool(d.get("parallel", False)),
        ))
    last = out[-1]
    if last.wave_type != "boss" or not last.parallel_spawn:
        raise ConfigError(T, f"final wave {last.wave_number} must be a parallel boss wave")
    return tuple(out)


def parse_towers(raw: Any) -> Dict[str, TowerTypeDef]:
    T = "towers"
    raw = _obj(T, "root", raw)
    out: Dict[str, TowerTypeDef] = {}
    for key, d in raw.items():
        d = _obj(T, key, d)
        kind = d.get("kind")
        if kind not in TOWER_KINDS:
            raise ConfigError(T, f"{key}: unknown kind {kind!r}")
        branch = str(d.get("branch", ""))
        level = _num(T, key, d, "level", positive=True, integer=True)
        if key != f"{branch}_{level}":
            raise ConfigError(T, f"{key}: key must be '<branch>_<level>'")
        fire = float(_num(T, key, d, "fire_rate_ms", minimum=0))
        td = TowerTypeDef(
            key=key,
            name=str(d.get("name", key)),
            kind=kind,
            branch=branch,
            level=level,
            range=float(_num(T, key, d, "range", positive=True)),
            fire_rate_ms=fire,
            damage=float(_num(T, key, d, "damage", minimum=0)),
            damage_tag=str(d.get("damage_tag", branch)),
            build_cost=_num(T, key, d, "build_cost", default=0, minimum=0, integer=True),
            upgrade_cost=_num(T, key, d, "upgrade_cost", default=0, minimum=0, integer=True),
            hits_air=bool(d.get("hits_air", True)),
            splash_radius=float(_num(T, key, d, "splash_radius", default=0, minimum=0)),
            slow_percent=float(_num(T, key, d, "slow_percent", default=0, minimum=0)),
            slow_duration_ms=float(_num(T, key, d, "slow_duration_ms", default=0, minimum=0)),
            max_slow_targets=_num(T, key, d, "max_slow_targets", default=1 if d.get("slow_percent") else 0, minimum=0, integer=True),
            dot_damage=float(_num(T, key, d, "dot_damage", default=0, minimum=0)),
            dot_duration_ms=float(_num(T, key, d, "dot_duration_ms", default=0, minimum=0)),
            crit_chance=float(_num(T, key, d, "crit_chance", default=0, minimum=0)),
            crit_multiplier=float(_num(T, key, d, "crit_multiplier", default=1.0, minimum=1.0)),
            aura_damage_multiplier=float(_num(T, key, d, "aura_damage_multiplier", default=0, minimum=0)),
            air_damage_bonus=float(_num(T, key, d, "air_damage_bonus", default=0, minimum=0)),
            armor_penetration=float(_num(T, key, d, "armor_penetration", default=0, minimum=0)),
        )
        if level == 1 and td.build_cost <= 0 and td.upgrade_cost <= 0:
            raise ConfigError(T, f"{key}: level 1 needs a build_cost or an upgrade_cost")
        if level > 1 and td.upgrade_cost <= 0:
            raise ConfigError(T, f"{key}: levels above 1 need an upgrade_cost")
        if td.slow_percent > 0 and td.slow_duration_ms <= 0:
            raise ConfigError(T, f"{key}: slow needs a positive slow_duration_ms")
        if td.dot_damage > 0 and td.dot_duration_ms <= 0:
            raise ConfigError(T, f"{key}: poison needs a positive dot_duration_ms")
        out[key] = td
    for key, td in out.items():
        if td.level > 1 and f"{td.branch}_{td.level - 1}" not in out:
            raise ConfigError(T, f"{key}: missing previous level {td.branch}_{td.level - 1}")
    if not any(t.build_cost > 0 for t in out.values()):
        raise ConfigError(T, "no tower can be built (no build_cost anywhere)")
    return out


def parse_mines(raw: Any) -> MineLadder:
    T = "mines"
    raw = _obj(T, "root", raw)
    levels_raw = raw.get("levels")
    if not isinstance(levels_raw, list) or len(levels_raw) < 2:
        raise ConfigError(T, "need level 0 plus at least one buildable level")
    levels = []
    for i, d in enumerate(levels_raw):
        d = _obj(T, f"level {i}", d)
        lv = _num(T, f"level {i}", d, "level", integer=True)
        if lv != i:
            raise ConfigError(T, f"levels must run 0, 1, 2... (got {lv} at position {i})")
        cost = _num(T, f"level {i}", d, "build_cost", minimum=0, integer=True)
        inc = _num(T, f"level {i}", d, "income_per_wave", minimum=0, integer=True)
        if i == 0 and (cost or inc):
            raise ConfigError(T, "level 0 is the empty slot: cost and income must be 0")
        if i > 0 and cost <= 0:
            raise ConfigError(T, f"level {i}: build_cost must be > 0")
        if levels and inc < levels[-1].income_per_wave:
            raise ConfigError(T, f"level {i}: income must not decrease")
        levels.append(MineLevel(lv, str(d.get("name", f"Mine L{lv}")), cost, inc))
    return MineLadder(levels)


def _spots(table: str, where: str, raw: Any) -> Tuple[Spot, ...]:
    if not isinstance(raw, list):
        raise ConfigError(table, f"{where}: expected a list")
    out = []
    seen = set()
    for d in raw:
        d = _obj(table, where, d)
        sid = _num(table, where, d, "id", integer=True)
        if sid in seen:
            raise ConfigError(table, f"{where}: duplicate id {sid}")
        seen.add(sid)
        out.append(Spot(sid, float(_num(table, where, d, "x")), float(_num(table, where, d, "y"))))
    return tuple(out)


def parse_maps(raw: Any) -> Dict[str, MapDef]:
    T = "maps"
    raw = _obj(T, "root", raw)
    if not raw:
        raise ConfigError(T, "no maps defined")
    out = {}
    for key, d in raw.items():
        d = _obj(T, key, d)
        wps = d.get("waypoints")
        if not isinstance(wps, list) or len(wps) < 2:
            raise ConfigError(T, f"{key}: a path needs at least two waypoints")
        pts = []
        for p in wps:
            if not (isinstance(p, (list, tuple)) and len(p) == 2 and all(isinstance(v, (int, float)) for v in p)):
                raise ConfigError(T, f"{key}: waypoint {p!r} is not [x, y]")
            pts.append((float(p[0]), float(p[1])))
        size = d.get("size", [1280, 720])
        out[key] = MapDef(
            key=key,
            name=str(d.get("name", key)),
            size=(int(size[0]), int(size[1])),
            waypoints=tuple(pts),
            pads=_spots(T, f"{key}.pads", d.get("pads", [])),
            mine_slots=_spots(T, f"{key}.mine_slots", d.get("mine_slots", [])),
        )
        if out[key].make_path().total_length <= 0:
            raise ConfigError(T, f"{key}: path has zero length")
    return out


def load_tables(base: Path | None = None, profile: Dict[str, Any] | None = None, cfg: GameConfig = CFG) -> GameTables:
    base = Path(base) if base else DATA_DIR
    creeps_db = read_json(base / "creeps.json")
    towers_db = read_json(base / "towers.json")
    if profile:
        try:
            apply_profile(_obj("towers", "root", towers_db), _obj("creeps", "root", creeps_db), profile)
        except (TypeError, ValueError) as e:
            raise ConfigError("balance_profile", str(e)) from None

    creeps = parse_creeps(creeps_db, cfg)
    waves = parse_waves(read_json(base / "waves.json"), creeps)
    towers = parse_towers(towers_db)
    tags = {t.damage_tag for t in towers.values()}
    for c in creeps.values():
        if c.only_damaged_by and c.only_damaged_by not in tags:
            raise ConfigError("creeps", f"{c.key}: no tower deals '{c.only_damaged_by}' damage")
    mines = parse_mines(read_json(base / "mines.json"))
    maps = parse_maps(read_json(base / "maps.json"))

    logger.info(
        f"tables loaded from {base}: {len(creeps)} creeps, {len(waves)} waves, "
        f"{len(towers)} towers, {mines.max_level} mine levels, {len(maps)} map(s)"
    )
    return GameTables(
        creeps=MappingProxyType(creeps),
        waves=waves,
        towers=MappingProxyType(towers),
        mines=mines,
        maps=MappingProxyType(maps),
    )
