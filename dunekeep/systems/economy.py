from __future__ import annotations

"""Gold economy: mine ladder, wave completion bonus and end-of-run score.

Mines are the passive income structure. Each slot on the map holds one mine
that climbs the ladder level by level and never goes back down. Income is
paid once per completed wave, after the wave gold bonus.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
import math

from loguru import logger

from ..core.difficulty import CFG, GameConfig


@dataclass(frozen=True)
class MineLevel:
    level: int
    name: str
    build_cost: int
    income_per_wave: int


class MineLadder:
    def __init__(self, levels: Sequence[MineLevel]):
        self.levels = tuple(sorted(levels, key=lambda lv: lv.level))

    @property
    def max_level(self) -> int:
        return self.levels[-1].level

    def get(self, level: int) -> MineLevel:
        return self.levels[level]

    def get_mine_cost(self, level: int) -> int:
        """Price to reach `level` from the level below it."""
        if level <= 0 or level > self.max_level:
            return 0
        return self.levels[level].build_cost

    def get_total_investment(self, level: int) -> int:
        level = min(max(0, level), self.max_level)
        return sum(lv.build_cost for lv in self.levels[1:level + 1])

    def income(self, level: int) -> int:
        if level <= 0 or level > self.max_level:
            return 0
        return self.levels[level].income_per_wave

    def break_even_waves(self, level: int) -> int:
        """Waves of income needed to repay everything spent to reach `level`."""
        inc = self.income(level)
        if inc <= 0:
            return 0
        return math.ceil(self.get_total_investment(level) / inc)

    def upgrade_value(self, current_level: int, waves_remaining: int) -> int:
        """Net gold an upgrade returns over the waves left (negative = not worth it)."""
        if current_level >= self.max_level:
            return 0
        nxt = current_level + 1
        diff = self.income(nxt) - self.income(current_level)
        return diff * max(0, waves_remaining) - self.get_mine_cost(nxt)


@dataclass
class GoldMine:
    slot_id: int
    ladder: MineLadder
    level: int = 0
    total_invested: int = 0

    @property
    def is_built(self) -> bool:
        return self.level > 0

    def can_upgrade(self) -> bool:
        return self.level < self.ladder.max_level

    def next_cost(self) -> int:
        return self.ladder.get_mine_cost(self.level + 1) if self.can_upgrade() else 0

    @property
    def income_per_wave(self) -> int:
        return self.ladder.income(self.level)

    def _raise(self) -> int:
        cost = self.next_cost()
        self.level += 1
        self.total_invested += cost
        return cost


@dataclass
class MineField:
    """All mine slots on the map. Gold checks go through `spend`, which
    returns False (and changes nothing) when the balance is short."""
    ladder: MineLadder
    slot_ids: Sequence[int]
    mines: Dict[int, GoldMine] = field(default_factory=dict)

    def __post_init__(self):
        for sid in self.slot_ids:
            self.mines.setdefault(sid, GoldMine(sid, self.ladder))

    def get(self, slot_id: int) -> Optional[GoldMine]:
        return self.mines.get(slot_id)

    def build_mine(self, slot_id: int, spend: Callable[[int], bool]) -> bool:
        m = self.mines.get(slot_id)
        if m is None or m.is_built:
            return False
        if not spend(m.next_cost()):
            return False
        m._raise()
        logger.debug(f"mine built on slot {slot_id}")
        return True

    def upgrade_mine(self, mine: GoldMine, spend: Callable[[int], bool]) -> bool:
        if not mine.is_built or not mine.can_upgrade():
            return False
        if not spend(mine.next_cost()):
            return False
        mine._raise()
        logger.debug(f"mine on slot {mine.slot_id} upgraded to L{mine.level}")
        return True

    def total_income(self) -> int:
        return sum(m.income_per_wave for m in self.mines.values())

    def built(self) -> List[GoldMine]:
        return [m for m in self.mines.values() if m.is_built]

    def reset(self):
        for m in self.mines.values():
            m.level = 0
            m.total_invested = 0


def wave_gold_bonus(wave: int, cfg: GameConfig = CFG) -> int:
    w = max(1, int(wave))
    return cfg.wave_gold_bonus_base + ((w - 1) // cfg.wave_gold_bonus_interval) * cfg.wave_gold_bonus_increment


# ---- score ----

@dataclass(frozen=True)
class ScoreBreakdown:
    wave_score: int
    gold_score: int
    hp_bonus: int
    time_multiplier: float
    final_score: int


def time_multiplier(seconds: float, cfg: GameConfig = CFG) -> float:
    if seconds <= cfg.time_bonus_full_s:
        return cfg.time_bonus_max
    return max(1.0, cfg.time_bonus_max - (seconds - cfg.time_bonus_full_s) / cfg.time_bonus_decay_s)


def calculate_score(
    waves_completed: int,
    gold_earned: int,
    hp_remaining: int,
    time_seconds: float,
    cfg: GameConfig = CFG,
) -> ScoreBreakdown:
    wave_score = max(0, waves_completed) * cfg.wave_bonus_points
    gold_score = int(math.floor(max(0, gold_earned) * cfg.gold_bonus_multiplier))
    hp_bonus = max(0, hp_remaining) * cfg.hp_bonus_points
    tm = time_multiplier(time_seconds, cfg)
    final = int(math.floor((wave_score + gold_score + hp_bonus) * tm))
    return ScoreBreakdown(wave_score, gold_score, hp_bonus, tm, final)
