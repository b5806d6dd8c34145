from __future__ import annotations
from typing import Dict, List, Optional
import math
import random

from loguru import logger

from ..world.map import MapDef
from ..world.path import PathSystem

# branch rotation for archers that get specialised, in build order
COMPOSITION = ["rapidfire", "icetower", "rockcannon", "poison", "sniper", "aura"]


class AutoBot:
    """Heuristic player used for headless balance runs.

    Goals:
    - Put archers on the pads that see the most path
    - Specialise them following a fixed composition (ice and poison early,
      since some creeps only take those)
    - Buy mines while enough waves remain to pay them back
    - Spend the rest on straight upgrades, cheapest first
    - Give every max-level tower a random ability
    """

    def __init__(self, rng: random.Random, reserve: int = 0, max_towers: Optional[int] = None):
        self.rng = rng
        self.reserve = reserve
        self.max_towers = max_towers
        self._pad_order: List[int] = []

    # ---------------------------
    # Pads
    # ---------------------------
    def rank_pads(self, map_def: MapDef, path: PathSystem, radius: float, step: float = 20.0) -> List[int]:
        """Pads sorted by how much path lies within `radius` (ties by id)."""
        samples = []
        d = 0.0
        while d <= path.total_length:
            samples.append(path.position_at(d).position)
            d += step
        cover: Dict[int, int] = {}
        for p in map_def.pads:
            cover[p.id] = sum(1 for s in samples if math.dist((p.x, p.y), s) <= radius)
        return sorted(cover, key=lambda pid: (-cover[pid], pid))

    def choose_branch(self, index: int, wave: int) -> str:
        cycle = list(COMPOSITION)
        if wave >= 12 and wave % 2 == 0:
            # keep the two counters up front, vary the rest
            head, tail = cycle[:2], cycle[2:]
            self.rng.shuffle(tail)
            cycle = head + tail
        return cycle[index % len(cycle)]

    # ---------------------------
    # Turn
    # ---------------------------
    def act(self, session) -> int:
        """Spend gold between waves; returns the number of purchases made."""
        if not self._pad_order:
            archer = session.tables.towers["archer_1"]
            self._pad_order = self.rank_pads(session.map, session.world.path, archer.range)

        wave = session.controller.wave
        remaining = session.tables.total_waves - wave
        bought = 0
        bought += self._place_towers(session, limit=2 if wave < 3 else 1)
        bought += self._build_mines(session, remaining)
        bought += self._specialise(session, wave)
        bought += self._place_towers(session)
        bought += self._upgrade(session)
        self._pick_abilities(session)
        if bought:
            logger.debug(f"bot: {bought} purchase(s) before wave {wave + 1}, gold left {session.controller.gold}")
        return bought

    def _can_spend(self, session, cost: int) -> bool:
        return session.controller.gold - cost >= self.reserve

    def _place_towers(self, session, limit: Optional[int] = None) -> int:
        cost = session.tables.towers["archer_1"].build_cost
        n = 0
        for pid in self._pad_order:
            if limit is not None and n >= limit:
                break
            if self.max_towers is not None and len(session.towers) >= self.max_towers:
                break
            if session.world.tower_on_pad(pid) is not None:
                continue
            if not self._can_spend(session, cost):
                break
            if session.build_tower(pid, "archer") is not None:
                n += 1
        return n

    def _build_mines(self, session, waves_remaining: int) -> int:
        n = 0
        ladder = session.mines.ladder
        if len(session.towers) < 4:
            return 0
        for mine in sorted(session.mines.mines.values(), key=lambda m: m.slot_id):
            if not mine.can_upgrade():
                continue
            if ladder.upgrade_value(mine.level, waves_remaining) <= 0:
                continue
            if not self._can_spend(session, mine.next_cost()):
                continue
            if mine.is_built:
                ok = session.upgrade_mine(mine)
            else:
                ok = session.build_mine(mine.slot_id)
            n += int(ok)
            # one mine step per turn; towers first
            if ok:
                break
        return n

    def _specialise(self, session, wave: int) -> int:
        n = 0
        index = sum(1 for t in session.towers if t.defn.branch != "archer")
        for t in sorted(session.towers, key=lambda t: t.id):
            if t.defn.branch != "archer" or t.defn.level != 2:
                continue
            branch = self.choose_branch(index, wave)
            target = session.tables.towers.get(f"{branch}_1")
            if target is None or not self._can_spend(session, target.upgrade_cost):
                continue
            if session.upgrade_tower(t, target.key):
                n += 1
                index += 1
        return n

    def _upgrade(self, session) -> int:
        n = 0
        while True:
            best = None
            for t in session.towers:
                if t.defn.branch == "archer" and t.defn.level >= 2:
                    continue  # waiting for _specialise
                key = f"{t.defn.branch}_{t.defn.level + 1}"
                nxt = session.tables.towers.get(key)
                if nxt is None or not self._can_spend(session, nxt.upgrade_cost):
                    continue
                if best is None or (nxt.upgrade_cost, t.id) < (best[1].upgrade_cost, best[0].id):
                    best = (t, nxt)
            if best is None or not session.upgrade_tower(best[0], best[1].key):
                return n
            n += 1

    def _pick_abilities(self, session) -> int:
        n = 0
        for t in sorted(session.towers, key=lambda t: t.id):
            options = session.ability_options(t)
            if options and session.select_ability(t, self.rng.choice(options)["id"]):
                n += 1
        return n
