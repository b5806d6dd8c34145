from __future__ import annotations
from typing import Any, Callable, Dict, List

from loguru import logger

Listener = Callable[..., Any]

# controller
GOLD_CHANGED = "gold_changed"
HEALTH_CHANGED = "health_changed"
CASTLE_DESTROYED = "castle_destroyed"
WAVE_CHANGED = "wave_changed"
PAUSE_CHANGED = "pause_changed"
SPEED_CHANGED = "speed_changed"
GAME_OVER = "game_over"

# session / world
WAVE_STARTED = "wave_started"
WAVE_COMPLETED = "wave_completed"
CREEP_SPAWNED = "creep_spawned"
CREEP_KILLED = "creep_killed"
CREEP_LEAKED = "creep_leaked"
MINE_BUILT = "mine_built"
MINE_UPGRADED = "mine_upgraded"
TOWER_BUILT = "tower_built"
TOWER_UPGRADED = "tower_upgraded"
TOWER_ABILITY_SELECTED = "tower_ability_selected"


class EventEmitter:
    """Observer registry. Emitters call `emit` only after their state is updated."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, fn: Listener) -> Listener:
        self._listeners.setdefault(event, []).append(fn)
        return fn

    def off(self, event: str, fn: Listener | None = None):
        if fn is None:
            self._listeners.pop(event, None)
            return
        lst = self._listeners.get(event)
        if lst and fn in lst:
            lst.remove(fn)

    def emit(self, event: str, *args, **kwargs) -> int:
        lst = self._listeners.get(event)
        if not lst:
            return 0
        # copy: listeners may unsubscribe while being called
        for fn in list(lst):
            fn(*args, **kwargs)
        logger.trace(f"event {event} -> {len(lst)} listener(s)")
        return len(lst)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def clear(self):
        self._listeners.clear()
