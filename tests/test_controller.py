"""Unit tests for GameController state and its emit-after-mutation events."""

from __future__ import annotations

import pytest

from dunekeep.core import events as ev
from dunekeep.core.events import EventEmitter
from dunekeep.systems.controller import GameController

pytestmark = pytest.mark.unit


@pytest.fixture
def bus():
    return EventEmitter()


@pytest.fixture
def ctl(bus):
    return GameController(total_waves=35, events=bus)


class TestGold:
    def test_listener_sees_new_balance(self, ctl, bus):
        seen = []
        bus.on(ev.GOLD_CHANGED, lambda g: seen.append((g, ctl.gold)))
        assert ctl.spend_gold(100)
        ctl.add_gold(30)
        assert seen == [(150, 150), (180, 180)]

    def test_cannot_overspend(self, ctl, bus):
        seen = []
        bus.on(ev.GOLD_CHANGED, seen.append)
        assert not ctl.spend_gold(ctl.gold + 1)
        assert not ctl.spend_gold(-5)
        assert ctl.gold == 250
        assert seen == []

    def test_earned_tracks_income_only(self, ctl):
        ctl.add_gold(40)
        ctl.spend_gold(10)
        ctl.add_gold(0)
        assert ctl.gold_earned == 40
        assert ctl.gold_spent == 10
        assert ctl.can_afford(280)
        assert not ctl.can_afford(281)


class TestCastle:
    def test_damage_and_destroy(self, ctl, bus):
        destroyed = []
        bus.on(ev.CASTLE_DESTROYED, lambda: destroyed.append(ctl.hp))
        assert not ctl.take_damage(24)
        assert ctl.take_damage(5)
        assert ctl.hp == 0
        assert destroyed == [0]
        assert not ctl.take_damage(1)
        assert destroyed == [0]

    def test_health_event(self, ctl, bus):
        seen = []
        bus.on(ev.HEALTH_CHANGED, lambda hp, mx: seen.append((hp, mx)))
        ctl.take_damage(2)
        assert seen == [(23, 25)]


class TestFlow:
    def test_speed(self, ctl, bus):
        seen = []
        bus.on(ev.SPEED_CHANGED, seen.append)
        assert ctl.set_game_speed(3)
        assert not ctl.set_game_speed(5)
        assert ctl.set_game_speed(3)
        assert seen == [3]

    def test_pause_toggle(self, ctl):
        assert ctl.toggle_pause() is True
        assert ctl.toggle_pause() is False

    def test_game_over_once(self, ctl, bus):
        seen = []
        bus.on(ev.GAME_OVER, seen.append)
        ctl.mark_game_over(victory=True)
        ctl.mark_game_over(victory=False)
        assert seen == [True]
        assert ctl.victory
        assert ctl.toggle_pause() is False

    def test_reset(self, ctl):
        ctl.spend_gold(100)
        ctl.set_wave(4)
        ctl.reset()
        assert ctl.state()["gold"] == 250
        assert ctl.state()["wave"] == 0
        assert ctl.state()["total_waves"] == 35
