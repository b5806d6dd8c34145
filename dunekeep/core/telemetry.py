from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import os, json, csv, time, datetime

from loguru import logger

from . import events as ev
from .events import EventEmitter


def _now_id() -> str:
    return datetime.datetime.now().strftime("%Y%m%d_%H%M%S")


def telemetry_enabled_from_env(default: str = "1") -> bool:
    v = str(os.environ.get("DUNEKEEP_TELEMETRY", default)).strip().lower()
    return v not in ("0", "false", "no", "off")


@dataclass
class WaveRow:
    wave: int
    wave_type: str = "normal"
    boss: bool = False
    gold_start: int = 0
    gold_end: int = 0
    hp_start: int = 0
    hp_end: int = 0
    towers: int = 0
    mines: int = 0
    creeps_spawned: int = 0
    creeps_killed: int = 0
    creeps_leaked: int = 0
    dmg_total: float = 0.0
    dmg_by_tower: Dict[str, float] = field(default_factory=dict)


class Telemetry:
    """Lightweight run telemetry.
    Writes:
      - <dir>/run_<id>_waves.csv
      - <dir>/run_<id>_events.jsonl (compact, one object per line)
    Default dir is saves/telemetry under the working directory.
    """
    def __init__(self, enabled: bool = True, run_id: Optional[str] = None, directory: Optional[str] = None):
        self.enabled = enabled
        self.run_id = run_id or _now_id()
        self.dir = directory or os.path.join(os.getcwd(), "saves", "telemetry")
        self.wave_rows: List[WaveRow] = []
        self._cur: Optional[WaveRow] = None

        self._events_path = os.path.join(self.dir, f"run_{self.run_id}_events.jsonl")
        self._waves_path = os.path.join(self.dir, f"run_{self.run_id}_waves.csv")

        self._events_fp = None
        if self.enabled:
            os.makedirs(self.dir, exist_ok=True)
            self._events_fp = open(self._events_path, "a", encoding="utf-8")

    def attach(self, events: EventEmitter):
        """Follow a session through its event channel."""
        events.on(ev.CREEP_SPAWNED, lambda c: self.creep_spawned(c.key))
        events.on(ev.CREEP_KILLED, lambda c: self.creep_killed(c.key))
        events.on(ev.CREEP_LEAKED, lambda c: self.creep_leaked(c.key))
        events.on(ev.TOWER_BUILT, lambda t: self._event("tower_build", {"tower": t.defn.key}))
        events.on(ev.TOWER_UPGRADED, lambda t: self._event("tower_upgrade", {"tower": t.defn.key}))
        events.on(ev.TOWER_ABILITY_SELECTED, lambda t: self._event("tower_ability", {"tower": t.defn.key, "ability": t.ability}))
        events.on(ev.MINE_BUILT, lambda m: self._event("mine_build", {"slot": m.slot_id}))
        events.on(ev.MINE_UPGRADED, lambda m: self._event("mine_upgrade", {"slot": m.slot_id, "level": m.level}))
        events.on(ev.GAME_OVER, lambda victory: self._event("game_over", {"victory": bool(victory)}))

    def close(self):
        if self._events_fp:
            try:
                self._events_fp.flush()
                self._events_fp.close()
            except OSError as e:
                logger.warning(f"telemetry: could not close event log: {e}")
            self._events_fp = None
        if self.enabled:
            self.flush_waves()

    def _event(self, kind: str, data: Dict[str, Any]):
        if not self.enabled or not self._events_fp:
            return
        row = {"t": time.time(), "kind": kind, **data}
        if self._cur:
            row.setdefault("wave", self._cur.wave)
        try:
            self._events_fp.write(json.dumps(row, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning(f"telemetry: dropping event {kind}: {e}")

    def start_run(self, seed: int = 0, meta: Optional[Dict[str, Any]] = None):
        self._event("run_start", {"seed": seed, "meta": meta or {}})

    def wave_start(self, wave: int, wave_type: str, controller, towers: int = 0, mines: int = 0):
        if not self.enabled:
            return
        self._cur = WaveRow(
            wave=wave,
            wave_type=wave_type,
            boss=(wave_type == "boss"),
            gold_start=int(controller.gold),
            hp_start=int(controller.hp),
            towers=int(towers),
            mines=int(mines),
        )
        self._event("wave_start", {"wave": wave, "type": wave_type})

    def wave_end(self, controller):
        if not self.enabled or not self._cur:
            return
        self._cur.gold_end = int(controller.gold)
        self._cur.hp_end = int(controller.hp)
        self.wave_rows.append(self._cur)
        self._event("wave_end", {"wave": self._cur.wave})
        self._cur = None

    def creep_spawned(self, creep_key: str):
        if not self.enabled or not self._cur:
            return
        self._cur.creeps_spawned += 1

    def creep_killed(self, creep_key: str):
        if not self.enabled or not self._cur:
            return
        self._cur.creeps_killed += 1
        self._event("creep_kill", {"creep": creep_key})

    def creep_leaked(self, creep_key: str):
        if not self.enabled or not self._cur:
            return
        self._cur.creeps_leaked += 1
        self._event("creep_leak", {"creep": creep_key})

    def damage(self, tower_key: str, amt: float):
        if not self.enabled or not self._cur:
            return
        a = float(max(0.0, amt))
        self._cur.dmg_total += a
        self._cur.dmg_by_tower[tower_key] = float(self._cur.dmg_by_tower.get(tower_key, 0.0) + a)
        # summary only, no per-hit events

    def flush_waves(self):
        if not self.enabled:
            return
        fieldnames = [
            "wave", "wave_type", "boss",
            "gold_start", "gold_end", "hp_start", "hp_end",
            "towers", "mines",
            "creeps_spawned", "creeps_killed", "creeps_leaked",
            "dmg_total", "dmg_by_tower_json",
        ]
        try:
            with open(self._waves_path, "w", newline="", encoding="utf-8") as f:
                w = csv.DictWriter(f, fieldnames=fieldnames)
                w.writeheader()
                for r in self.wave_rows:
                    w.writerow({
                        "wave": r.wave,
                        "wave_type": r.wave_type,
                        "boss": int(r.boss),
                        "gold_start": r.gold_start,
                        "gold_end": r.gold_end,
                        "hp_start": r.hp_start,
                        "hp_end": r.hp_end,
                        "towers": r.towers,
                        "mines": r.mines,
                        "creeps_spawned": r.creeps_spawned,
                        "creeps_killed": r.creeps_killed,
                        "creeps_leaked": r.creeps_leaked,
                        "dmg_total": f"{r.dmg_total:.2f}",
                        "dmg_by_tower_json": json.dumps(r.dmg_by_tower, ensure_ascii=False),
                    })
        except OSError as e:
            logger.warning(f"telemetry: could not write {self._waves_path}: {e}")
