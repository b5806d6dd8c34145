from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import List

from ..core.difficulty import CFG, GameConfig
from ..core.scaling import stacked_slow_multiplier

# jump phases
JUMP_NONE = "none"
JUMP_IDLE = "idle"
JUMP_WARNING = "warning"
JUMP_COOLDOWN = "cooldown"

# dig phases
DIG_NONE = "none"
DIG_WALK = "walk"
DIG_STOP = "stop"
DIG_BURROW = "burrow"
DIG_RESURFACE = "resurface"

_DIG_NEXT = {
    DIG_WALK: DIG_STOP,
    DIG_STOP: DIG_BURROW,
    DIG_BURROW: DIG_RESURFACE,
    DIG_RESURFACE: DIG_WALK,
}


@dataclass
class SlowStack:
    pct: float
    expiry: float


@dataclass
class PoisonStack:
    damage_per_tick: float
    expiry: float


@dataclass
class BurnEffect:
    damage_per_tick: float
    expiry: float
    next_tick: float


@dataclass
class StatusReport:
    """What happened to one creep between two status updates."""
    walk_ms: float = 0.0          # virtual time spent walking at (slowed) base speed
    extra_distance: float = 0.0   # jumps + tunnelling, not affected by slows
    poison_ticks: List[float] = field(default_factory=list)
    burn_ticks: List[float] = field(default_factory=list)
    jumps: int = 0
    dispels: int = 0
    ghost_ended: bool = False


class StatusEffectTracker:
    """Layered per-creep state: shield, slow, poison, burn, freeze, armor
    reduction, ghost, jump, dig, dispel.

    All timers are absolute expiries on the virtual clock. `advance(now)`
    walks every phase boundary between the last update and `now` in order,
    so one long frame lands on the same phases as many short ones.
    """

    def __init__(
        self,
        spawned_at: float = 0.0,
        has_shield: bool = False,
        can_jump: bool = False,
        can_dig: bool = False,
        has_ghost_phase: bool = False,
        can_dispel: bool = False,
        dispel_immunity_ms: float | None = None,
        cfg: GameConfig = CFG,
    ):
        self.cfg = cfg
        self.last_update = float(spawned_at)

        self.shield_hits = cfg.shield_hits if has_shield else 0

        # fixed capacity rings; appending past the cap evicts the oldest stack
        self.slows: deque[SlowStack] = deque(maxlen=cfg.max_slow_stacks)
        self.poisons: deque[PoisonStack] = deque(maxlen=cfg.max_poison_stacks)
        self.next_poison_tick: float | None = None

        # a new burn replaces the old one; freeze stops walking outright
        self.burn: BurnEffect | None = None
        self.frozen_until = 0.0
        self.armor_reduction = 0.0

        self.has_ghost_phase = has_ghost_phase
        self.ghost_triggered = False
        self.ghost_until = 0.0

        self.jump_phase = JUMP_IDLE if can_jump else JUMP_NONE
        self.jump_until = spawned_at + cfg.jump_cooldown_ms if can_jump else 0.0

        self.dig_phase = DIG_WALK if can_dig else DIG_NONE
        self.dig_until = spawned_at + cfg.digger_walk_ms if can_dig else 0.0

        self.can_dispel = can_dispel
        self.dispel_immunity_ms = float(dispel_immunity_ms or cfg.dispel_immunity_ms)
        self.next_dispel_at = spawned_at + cfg.dispel_cooldown_ms if can_dispel else 0.0
        self.immune_until = 0.0

    # ---- queries ----
    def is_immune(self, now: float) -> bool:
        return now < self.immune_until

    def is_burrowed(self) -> bool:
        return self.dig_phase == DIG_BURROW

    def is_ghost(self, now: float) -> bool:
        return self.ghost_triggered and now < self.ghost_until

    def is_invulnerable(self, now: float) -> bool:
        return self.is_burrowed() or self.is_ghost(now)

    def is_targetable(self, now: float) -> bool:
        return not self.is_invulnerable(now)

    def is_frozen(self, now: float) -> bool:
        return now < self.frozen_until

    def is_burning(self, now: float) -> bool:
        return self.burn is not None and now <= self.burn.expiry

    def is_slowed(self, now: float) -> bool:
        return bool(self.active_slows(now))

    def active_slows(self, now: float) -> List[float]:
        return [s.pct for s in self.slows if s.expiry > now]

    def speed_multiplier(self, now: float) -> float:
        return stacked_slow_multiplier(self.active_slows(now), self.cfg)

    def flags(self, now: float) -> frozenset:
        out = set()
        if self.active_slows(now):
            out.add("slowed")
        if any(p.expiry >= now for p in self.poisons):
            out.add("poisoned")
        if self.is_frozen(now):
            out.add("frozen")
        if self.is_burning(now):
            out.add("burning")
        if self.armor_reduction > 0:
            out.add("corroded")
        if self.shield_hits > 0:
            out.add("shielded")
        if self.is_ghost(now):
            out.add("ghost")
        if self.is_burrowed():
            out.add("burrowed")
        if self.dig_phase in (DIG_STOP, DIG_RESURFACE):
            out.add(self.dig_phase)
        if self.jump_phase == JUMP_WARNING:
            out.add("jump_warning")
        if self.is_immune(now):
            out.add("immune")
        return frozenset(out)

    # ---- debuffs ----
    def apply_slow(self, pct: float, duration_ms: float, now: float) -> bool:
        if pct <= 0 or duration_ms <= 0 or self.is_immune(now):
            return False
        self.slows.append(SlowStack(float(pct), now + duration_ms))
        return True

    def apply_poison(self, damage_per_tick: float, duration_ms: float, now: float) -> bool:
        if damage_per_tick <= 0 or duration_ms <= 0 or self.is_immune(now):
            return False
        if self.next_poison_tick is None:
            self.next_poison_tick = now + self.cfg.poison_tick_ms
        self.poisons.append(PoisonStack(float(damage_per_tick), now + duration_ms))
        return True

    def clear_slows(self):
        self.slows.clear()

    def apply_freeze(self, duration_ms: float, now: float) -> bool:
        if duration_ms <= 0 or self.is_immune(now):
            return False
        self.frozen_until = max(self.frozen_until, now + duration_ms)
        return True

    def apply_burn(self, damage_per_tick: float, duration_ms: float, now: float) -> bool:
        if damage_per_tick <= 0 or duration_ms <= 0 or self.is_immune(now):
            return False
        self.burn = BurnEffect(float(damage_per_tick), now + duration_ms, now + self.cfg.burn_tick_ms)
        return True

    def apply_armor_reduction(self, amount: float, now: float) -> bool:
        if amount <= 0 or self.is_immune(now):
            return False
        self.armor_reduction = min(self.cfg.max_armor_reduction, self.armor_reduction + amount)
        return True

    def poison_stack_count(self, now: float) -> int:
        return sum(1 for p in self.poisons if p.expiry >= now)

    def absorb_hit(self) -> bool:
        """Shield blocks the whole hit and loses one charge."""
        if self.shield_hits > 0:
            self.shield_hits -= 1
            return True
        return False

    def maybe_trigger_ghost(self, health_fraction: float, now: float) -> bool:
        # single trigger per lifetime
        if not self.has_ghost_phase or self.ghost_triggered:
            return False
        if health_fraction > self.cfg.ghost_phase_threshold:
            return False
        self.ghost_triggered = True
        self.ghost_until = now + self.cfg.ghost_phase_ms
        return True

    def _dispel(self, at: float):
        self.slows.clear()
        self.poisons.clear()
        self.next_poison_tick = None
        self.burn = None
        self.frozen_until = 0.0
        self.armor_reduction = 0.0
        self.immune_until = at + self.dispel_immunity_ms

    # ---- per tick ----
    def advance(self, now: float) -> StatusReport:
        rep = StatusReport()
        t0 = self.last_update
        if now <= t0:
            return rep
        cfg = self.cfg
        frozen_ms = max(0.0, min(now, self.frozen_until) - t0)

        # poison ticks and dispels interleaved in time order
        while self.next_poison_tick is not None and self.next_poison_tick <= now:
            tick = self.next_poison_tick
            if self.can_dispel and self.next_dispel_at <= tick:
                self._dispel(self.next_dispel_at)
                self.next_dispel_at += cfg.dispel_cooldown_ms
                rep.dispels += 1
                break
            live = [p for p in self.poisons if p.expiry >= tick]
            if not live:
                self.next_poison_tick = None
                break
            rep.poison_ticks.append(sum(p.damage_per_tick for p in live))
            self.next_poison_tick = tick + cfg.poison_tick_ms
        while self.burn is not None and self.burn.next_tick <= min(now, self.burn.expiry):
            if self.can_dispel and self.next_dispel_at <= self.burn.next_tick:
                break
            rep.burn_ticks.append(self.burn.damage_per_tick)
            self.burn.next_tick += cfg.burn_tick_ms
        while self.can_dispel and self.next_dispel_at <= now:
            self._dispel(self.next_dispel_at)
            self.next_dispel_at += cfg.dispel_cooldown_ms
            rep.dispels += 1

        # expiry
        if self.burn is not None and now >= self.burn.expiry:
            self.burn = None
        if self.frozen_until and now >= self.frozen_until:
            self.frozen_until = 0.0
        if self.slows and any(s.expiry <= now for s in self.slows):
            self.slows = deque((s for s in self.slows if s.expiry > now), maxlen=cfg.max_slow_stacks)
        if self.poisons and any(p.expiry < now for p in self.poisons):
            self.poisons = deque((p for p in self.poisons if p.expiry >= now), maxlen=cfg.max_poison_stacks)
            if not self.poisons:
                self.next_poison_tick = None
        if self.ghost_triggered and self.ghost_until and now >= self.ghost_until:
            self.ghost_until = 0.0
            rep.ghost_ended = True

        # jump: idle -> warning -> leap -> cooldown -> warning ...
        if self.jump_phase != JUMP_NONE:
            while self.jump_until <= now:
                if self.jump_phase in (JUMP_COOLDOWN, JUMP_IDLE):
                    self.jump_phase = JUMP_WARNING
                    self.jump_until += cfg.jump_warning_ms
                else:
                    rep.extra_distance += cfg.jump_distance
                    rep.jumps += 1
                    self.jump_phase = JUMP_COOLDOWN
                    self.jump_until += cfg.jump_cooldown_ms

        # dig: walk -> stop -> burrow -> resurface -> walk, split the frame by phase
        if self.dig_phase == DIG_NONE:
            rep.walk_ms = now - t0
        else:
            cursor = t0
            while cursor < now:
                seg_end = min(self.dig_until, now)
                span = seg_end - cursor
                if self.dig_phase == DIG_WALK:
                    rep.walk_ms += span
                elif self.dig_phase == DIG_BURROW:
                    rep.extra_distance += cfg.digger_tunnel_distance * span / cfg.burrow_ms
                cursor = seg_end
                if self.dig_until <= now:
                    self.dig_phase = _DIG_NEXT[self.dig_phase]
                    self.dig_until += self._dig_duration(self.dig_phase)

        if frozen_ms > 0:
            rep.walk_ms = max(0.0, rep.walk_ms - frozen_ms)
        self.last_update = now
        return rep

    def _dig_duration(self, phase: str) -> float:
        c = self.cfg
        return {
            DIG_WALK: c.digger_walk_ms,
            DIG_STOP: c.digger_stop_ms,
            DIG_BURROW: c.burrow_ms,
            DIG_RESURFACE: c.digger_resurface_ms,
        }[phase]
