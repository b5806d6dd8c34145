from __future__ import annotations

SPEEDS = (1, 2, 3)


class GameClock:
    """Virtual clock in milliseconds.

    `now` only moves by `delta * time_scale` while unpaused; paused wall time
    is counted separately and never reaches the simulation.
    """

    def __init__(self, speeds=SPEEDS):
        self.speeds = tuple(speeds)
        self.time_scale = self.speeds[0]
        self.paused = False
        self.now = 0.0
        self.wall_ms = 0.0
        self.paused_wall_ms = 0.0

    def advance(self, delta_ms: float) -> float:
        """Feed one frame of wall time; returns the virtual time that elapsed."""
        if delta_ms <= 0:
            return 0.0
        if self.paused:
            self.paused_wall_ms += delta_ms
            return 0.0
        self.wall_ms += delta_ms
        dt = delta_ms * self.time_scale
        self.now += dt
        return dt

    def set_speed(self, n: int) -> bool:
        if n not in self.speeds:
            return False
        self.time_scale = n
        return True

    def cycle_speed(self) -> int:
        # x1 / x2 / x3
        i = self.speeds.index(self.time_scale) if self.time_scale in self.speeds else -1
        self.time_scale = self.speeds[(i + 1) % len(self.speeds)]
        return self.time_scale

    def set_paused(self, on: bool):
        self.paused = bool(on)

    def played_seconds(self) -> int:
        return int(self.wall_ms // 1000)

    def reset(self):
        self.time_scale = self.speeds[0]
        self.paused = False
        self.now = 0.0
        self.wall_ms = 0.0
        self.paused_wall_ms = 0.0
