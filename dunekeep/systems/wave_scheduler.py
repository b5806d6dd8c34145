from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

from loguru import logger

IDLE = "idle"
SPAWNING = "spawning"
DRAINING = "draining"
COMPLETE = "complete"


@dataclass(frozen=True)
class CreepGroup:
    creep_type: str
    count: int
    interval_ms: float
    delay_start_ms: float = 0.0


@dataclass(frozen=True)
class WaveDef:
    wave_number: int
    groups: Tuple[CreepGroup, ...]
    wave_type: str = "normal"
    announcement: str = ""
    parallel_spawn: bool = False

    @property
    def is_boss(self) -> bool:
        return self.wave_type == "boss"

    @property
    def creep_count(self) -> int:
        return sum(g.count for g in self.groups)


@dataclass(frozen=True)
class SpawnEvent:
    creep_type: str
    at: float                    # virtual time the spawn was due
    group_index: int = -1        # -1 for spawn-on-death children
    distance: float = 0.0        # children appear where their parent died


@dataclass
class _GroupTimer:
    group: CreepGroup
    index: int
    next_at: Optional[float] = None   # None until the group is activated
    spawned: int = 0

    @property
    def done(self) -> bool:
        return self.spawned >= self.group.count


@dataclass
class WaveCounters:
    total: int = 0
    spawned: int = 0
    killed: int = 0
    leaked: int = 0

    @property
    def active(self) -> int:
        return self.spawned - self.killed - self.leaked

    @property
    def remaining(self) -> int:
        return self.total - self.killed - self.leaked


class WaveScheduler:
    """Turns one WaveDef into spawn events on the virtual clock.

    Parallel waves start every group at wave start (each offset by its own
    delay). Sequential waves activate group i+1 when group i has spawned its
    last creep; the group's delay still counts from wave start, so its first
    spawn is at max(activation, start + delay).

    The scheduler never advances to the next wave by itself; it only reports
    its state and counters.
    """

    def __init__(self, child_stagger_ms: float = 100.0):
        self.child_stagger_ms = child_stagger_ms
        self.state = IDLE
        self.wave: Optional[WaveDef] = None
        self.started_at = 0.0
        self.counters = WaveCounters()
        self._timers: List[_GroupTimer] = []
        self._children: List[SpawnEvent] = []

    # ---- lifecycle ----
    def start(self, wave: WaveDef, now: float) -> bool:
        if self.state in (SPAWNING, DRAINING):
            return False
        self.wave = wave
        self.started_at = now
        self.state = SPAWNING
        self.counters = WaveCounters(total=wave.creep_count)
        self._children = []
        self._timers = [_GroupTimer(g, i) for i, g in enumerate(wave.groups)]
        if wave.parallel_spawn:
            for t in self._timers:
                t.next_at = now + t.group.delay_start_ms
        elif self._timers:
            first = self._timers[0]
            first.next_at = now + first.group.delay_start_ms
        logger.info(
            f"wave {wave.wave_number} scheduled: {wave.creep_count} creeps in "
            f"{len(wave.groups)} group(s), {'parallel' if wave.parallel_spawn else 'sequential'}"
        )
        return True

    def acknowledge(self) -> bool:
        """Move a Complete wave back to Idle once the caller has paid it out."""
        if self.state != COMPLETE:
            return False
        self.state = IDLE
        return True

    def cancel(self):
        """Drop every pending group spawn and queued child; back to Idle."""
        if self.state != IDLE:
            logger.debug(f"wave scheduler cancelled with {self.pending_spawns()} pending spawn(s)")
        self._timers = []
        self._children = []
        self.state = IDLE

    # ---- queries ----
    @property
    def is_active(self) -> bool:
        return self.state in (SPAWNING, DRAINING)

    @property
    def is_complete(self) -> bool:
        return self.state == COMPLETE

    def groups_finished(self) -> bool:
        return all(t.done for t in self._timers)

    def pending_spawns(self) -> int:
        return sum(t.group.count - t.spawned for t in self._timers) + len(self._children)

    def group_first_spawn_times(self) -> List[Optional[float]]:
        """Scheduled time of each group's next spawn (None if not yet active)."""
        return [t.next_at for t in self._timers]

    # ---- per tick ----
    def poll(self, now: float) -> List[SpawnEvent]:
        """Every spawn due at or before `now`, ordered by due time then group."""
        out: List[SpawnEvent] = []
        if self.state != SPAWNING:
            return out
        while True:
            best: Optional[_GroupTimer] = None
            for t in self._timers:
                if t.done or t.next_at is None or t.next_at > now:
                    continue
                if best is None or t.next_at < best.next_at:
                    best = t
            child = self._children[0] if self._children and self._children[0].at <= now else None
            if best is None and child is None:
                break
            if child is not None and (best is None or child.at < best.next_at):
                out.append(self._children.pop(0))
                continue
            at = best.next_at
            out.append(SpawnEvent(best.group.creep_type, at, best.index))
            best.spawned += 1
            if best.done:
                best.next_at = None
                self._activate_after(best, at)
            else:
                best.next_at = at + best.group.interval_ms
        self.counters.spawned += len(out)
        self._refresh()
        return out

    def _activate_after(self, finished: _GroupTimer, at: float):
        if self.wave is None or self.wave.parallel_spawn:
            return
        nxt = finished.index + 1
        if nxt < len(self._timers):
            t = self._timers[nxt]
            t.next_at = max(at, self.started_at + t.group.delay_start_ms)

    def enqueue_children(self, creep_type: str, count: int, now: float, distance: float) -> int:
        """Spawn-on-death: add `count` children to this wave's total."""
        if not self.is_active or count <= 0:
            return 0
        for i in range(count):
            self._children.append(SpawnEvent(creep_type, now + i * self.child_stagger_ms, -1, distance))
        self._children.sort(key=lambda e: e.at)
        self.counters.total += count
        self.state = SPAWNING
        return count

    def record_kill(self):
        if not self.is_active:
            return
        self.counters.killed += 1
        self._refresh()

    def record_leak(self):
        if not self.is_active:
            return
        self.counters.leaked += 1
        self._refresh()

    def _refresh(self):
        if not self.is_active:
            return
        if not self.groups_finished() or self._children:
            self.state = SPAWNING
            return
        c = self.counters
        if c.killed + c.leaked >= c.spawned and c.active <= 0:
            self.state = COMPLETE
            logger.info(
                f"wave {self.wave.wave_number if self.wave else '?'} complete: "
                f"killed={c.killed} leaked={c.leaked}"
            )
        else:
            self.state = DRAINING
