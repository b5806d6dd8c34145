from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class RunStats:
    """Counters for the results screen and telemetry; not part of the balance contract."""
    creeps_killed: int = 0
    creeps_leaked: int = 0
    bosses_killed: int = 0

    gold_from_kills: int = 0
    gold_from_waves: int = 0
    gold_from_mines: int = 0

    towers_built: int = 0
    towers_upgraded: int = 0
    mines_built: int = 0
    mines_upgraded: int = 0

    damage_by_tower: Dict[str, float] = field(default_factory=dict)

    def record_damage(self, tower_key: str, amount: float):
        if amount <= 0:
            return
        self.damage_by_tower[tower_key] = self.damage_by_tower.get(tower_key, 0.0) + float(amount)

    @property
    def damage_total(self) -> float:
        return sum(self.damage_by_tower.values())

    def as_dict(self) -> dict:
        return {
            "creeps_killed": self.creeps_killed,
            "creeps_leaked": self.creeps_leaked,
            "bosses_killed": self.bosses_killed,
            "gold_from_kills": self.gold_from_kills,
            "gold_from_waves": self.gold_from_waves,
            "gold_from_mines": self.gold_from_mines,
            "towers_built": self.towers_built,
            "towers_upgraded": self.towers_upgraded,
            "mines_built": self.mines_built,
            "mines_upgraded": self.mines_upgraded,
            "damage_total": round(self.damage_total, 2),
        }
