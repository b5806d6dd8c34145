"""Unit tests for Creep: damage pipeline, movement and snapshots."""

from __future__ import annotations

import pytest

from dunekeep.core.difficulty import CFG
from dunekeep.entities.creep import Creep, CreepTypeDef
from dunekeep.world.path import PathSystem

pytestmark = pytest.mark.unit

PATH = PathSystem([(0, 0), (1000, 0)])


def _creep(wave: int = 1, distance: float = 0.0, **kw) -> Creep:
    base = dict(key="dummy", name="Dummy", max_health=100, speed=100, armor=0, gold_reward=5)
    base.update(kw)
    return Creep(uid=1, typedef=CreepTypeDef(**base), path=PATH, wave=wave, now=0.0, distance=distance)


class TestDamage:
    def test_armor_mitigates(self):
        c = _creep(armor=100)
        assert c.take_damage(100, "archer") == 50
        assert c.health == 50

    def test_magic_ignores_armor(self):
        c = _creep(armor=100)
        assert c.take_damage(40, "icetower", magic=True) == 40

    def test_armor_penetration(self):
        c = _creep(armor=100)
        assert c.take_damage(100, "sniper", armor_penetration=100) == 100

    def test_armor_reduction_adds_to_penetration(self):
        c = _creep(armor=106)
        c.apply_armor_reduction(6)
        assert c.take_damage(100, "archer") == 50

    def test_elemental_immunity(self):
        c = _creep(only_damaged_by="ice")
        assert c.take_damage(50, "archer") == 0
        assert c.take_damage(5, "ice") == 5

    def test_shield_blocks_whole_hits(self):
        c = _creep(has_shield=True)
        for _ in range(CFG.shield_hits):
            assert c.take_damage(30, "archer") == 0
        assert c.take_damage(30, "archer") == 30

    def test_overkill_reports_remaining_health(self):
        c = _creep(max_health=30)
        assert c.take_damage(50, "archer") == 30
        assert not c.alive
        assert c.take_damage(10, "archer") == 0

    def test_ghost_phase_blocks_damage(self):
        c = _creep(has_ghost_phase=True)
        c.take_damage(90, "archer")
        assert c.alive
        assert "ghost" in c.snapshot().flags
        assert not c.is_targetable()
        assert c.take_damage(50, "archer") == 0


class TestScaling:
    def test_wave_scaled_stats(self):
        c = _creep(wave=1000, armor=10)
        assert c.max_health == 350
        assert c.armor == 20

    def test_reward(self):
        assert _creep(gold_reward=7).reward == 7


class TestMovement:
    def test_walks_at_speed(self):
        c = _creep()
        c.move(c.update_status(1000))
        assert c.distance == pytest.approx(100)
        assert c.position == pytest.approx((100, 0))

    def test_slow_reduces_speed(self):
        c = _creep()
        c.apply_slow(50, 5000)
        c.move(c.update_status(1000))
        assert c.distance == pytest.approx(50)

    def test_poison_ticks_kill(self):
        c = _creep(max_health=10)
        c.apply_poison(6, 5000)
        c.update_status(2000)
        assert not c.alive

    def test_poison_respects_elemental_immunity(self):
        c = _creep(only_damaged_by="ice")
        c.apply_poison(6, 5000)
        c.update_status(2000)
        assert c.health == 100

    def test_burn_respects_elemental_immunity(self):
        c = _creep(only_damaged_by="ice")
        c.apply_burn(5, 3000)
        c.update_status(3000)
        assert c.health == 100

    def test_frozen_creep_stays_put(self):
        c = _creep(distance=100)
        c.apply_freeze(500)
        c.move(c.update_status(1000))
        assert c.distance == pytest.approx(150)

    def test_reached_end(self):
        c = _creep(distance=999)
        assert not c.reached_end()
        c.move(c.update_status(100))
        assert c.reached_end()


class TestSnapshot:
    def test_fields(self):
        c = _creep(distance=250, size_scale=1.5, is_flying=True)
        s = c.snapshot()
        assert s.id == 1
        assert s.type == "dummy"
        assert s.position == (250, 0)
        assert s.direction == (1, 0)
        assert s.health_fraction == 1.0
        assert s.size_scale == 1.5
        assert s.flying
