from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple
import bisect
import math

Vec = Tuple[float, float]


@dataclass(frozen=True)
class PathPoint:
    position: Vec
    direction: Vec
    progress: float
    segment_index: int


class PathSystem:
    """Immutable polyline walked by distance traveled.

    A creep only stores how far it has gone; position, heading and progress
    are derived here. Boundaries between segments belong to the earlier one.
    """

    def __init__(self, waypoints: Sequence[Sequence[float]]):
        self.points: Tuple[Vec, ...] = tuple((float(p[0]), float(p[1])) for p in waypoints)
        self._lengths: List[float] = []
        self._dirs: List[Vec] = []
        self._ends: List[float] = []  # cumulative distance at the end of each segment
        total = 0.0
        for (x1, y1), (x2, y2) in zip(self.points, self.points[1:]):
            dx, dy = x2 - x1, y2 - y1
            ln = math.hypot(dx, dy)
            self._lengths.append(ln)
            self._dirs.append((dx / ln, dy / ln) if ln > 0 else (1.0, 0.0))
            total += ln
            self._ends.append(total)
        self.total_length = total

    @property
    def segment_count(self) -> int:
        return len(self._lengths)

    def _segment_for(self, d: float) -> int:
        # first segment whose end >= d; a boundary distance resolves to the lower index
        i = bisect.bisect_left(self._ends, d)
        i = min(i, len(self._ends) - 1)
        # skip zero-length segments so a direction is always meaningful
        while i < len(self._ends) - 1 and self._lengths[i] <= 0:
            i += 1
        return i

    def position_at(self, distance: float) -> PathPoint:
        if len(self.points) < 2:
            p = self.points[0] if self.points else (0.0, 0.0)
            return PathPoint(p, (1.0, 0.0), 0.0, 0)
        if self.total_length <= 0:
            return PathPoint(self.points[0], (1.0, 0.0), 0.0, 0)

        d = min(max(0.0, float(distance)), self.total_length)
        i = self._segment_for(d)
        start = self._ends[i] - self._lengths[i]
        ln = self._lengths[i]
        t = (d - start) / ln if ln > 0 else 0.0
        (x1, y1), (x2, y2) = self.points[i], self.points[i + 1]
        pos = (x1 + (x2 - x1) * t, y1 + (y2 - y1) * t)
        return PathPoint(pos, self._dirs[i], d / self.total_length, i)

    def distance_remaining(self, distance: float) -> float:
        return max(0.0, self.total_length - distance)

    def has_reached_end(self, distance: float) -> bool:
        return distance >= self.total_length

    def progress(self, distance: float) -> float:
        if self.total_length <= 0:
            return 0.0
        return min(1.0, max(0.0, distance / self.total_length))
