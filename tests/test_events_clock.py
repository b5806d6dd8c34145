"""Unit tests for the event channel and the virtual game clock."""

from __future__ import annotations

import pytest

from dunekeep.core.events import EventEmitter
from dunekeep.core.time import GameClock

pytestmark = pytest.mark.unit


class TestEventEmitter:
    def test_emit_returns_listener_count(self):
        bus = EventEmitter()
        got = []
        bus.on("x", got.append)
        bus.on("x", lambda v: got.append(v * 2))
        assert bus.emit("x", 3) == 2
        assert got == [3, 6]
        assert bus.emit("nobody") == 0

    def test_off(self):
        bus = EventEmitter()
        fn = bus.on("x", lambda: None)
        bus.on("x", lambda: None)
        bus.off("x", fn)
        assert bus.listener_count("x") == 1
        bus.off("x")
        assert bus.listener_count("x") == 0

    def test_unsubscribe_during_emit(self):
        bus = EventEmitter()
        calls = []

        def once():
            calls.append(1)
            bus.off("x", once)

        bus.on("x", once)
        bus.emit("x")
        bus.emit("x")
        assert calls == [1]

    def test_listener_errors_propagate(self):
        bus = EventEmitter()
        bus.on("x", lambda: 1 / 0)
        with pytest.raises(ZeroDivisionError):
            bus.emit("x")


class TestGameClock:
    def test_scaled_advance(self):
        c = GameClock()
        assert c.advance(100) == 100
        c.set_speed(3)
        assert c.advance(100) == 300
        assert c.now == 400
        assert c.wall_ms == 200

    def test_pause_freezes_virtual_time(self):
        c = GameClock()
        c.set_paused(True)
        assert c.advance(5000) == 0
        assert c.now == 0
        assert c.paused_wall_ms == 5000
        assert c.played_seconds() == 0

    def test_rejects_unknown_speed(self):
        c = GameClock()
        assert not c.set_speed(4)
        assert c.time_scale == 1

    def test_cycle(self):
        c = GameClock()
        assert [c.cycle_speed() for _ in range(3)] == [2, 3, 1]

    def test_played_seconds_floor(self):
        c = GameClock()
        c.set_speed(2)
        c.advance(2999)
        assert c.played_seconds() == 2

    def test_non_positive_delta(self):
        c = GameClock()
        assert c.advance(-10) == 0
        assert c.advance(0) == 0
