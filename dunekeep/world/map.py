from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .path import PathSystem


@dataclass(frozen=True)
class Spot:
    """A fixed build location: tower pad or mine slot."""
    id: int
    x: float
    y: float


@dataclass(frozen=True)
class MapDef:
    key: str
    name: str
    size: Tuple[int, int]
    waypoints: Tuple[Tuple[float, float], ...]
    pads: Tuple[Spot, ...]
    mine_slots: Tuple[Spot, ...]

    def make_path(self) -> PathSystem:
        return PathSystem(self.waypoints)

    def pad(self, pad_id: int) -> Spot | None:
        for p in self.pads:
            if p.id == pad_id:
                return p
        return None

    def mine_slot(self, slot_id: int) -> Spot | None:
        for s in self.mine_slots:
            if s.id == slot_id:
                return s
        return None
