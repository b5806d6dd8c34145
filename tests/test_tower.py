"""Unit tests for tower targeting and firing."""

from __future__ import annotations

import random

import pytest

from dunekeep.core.difficulty import CFG
from dunekeep.entities import abilities
from dunekeep.entities.creep import Creep, CreepTypeDef
from dunekeep.entities.tower import Tower, TowerTypeDef
from dunekeep.world.path import PathSystem

pytestmark = pytest.mark.unit

PATH = PathSystem([(0, 0), (1000, 0)])
RNG = random.Random(0)


class ForcedRng(random.Random):
    """Every chance roll succeeds."""

    def random(self):
        return 0.0


class NeverRng(random.Random):
    def random(self):
        return 0.999


FORCED = ForcedRng()


def _creep(uid: int, distance: float, **kw) -> Creep:
    base = dict(key=kw.pop("key", "dummy"), name="Dummy", max_health=100, speed=100, armor=0, gold_reward=5)
    base.update(kw)
    return Creep(uid=uid, typedef=CreepTypeDef(**base), path=PATH, wave=1, now=0.0, distance=distance)


def _tower(tid: int = 1, x: float = 500, y: float = 50, **kw) -> Tower:
    base = dict(key="archer_1", name="Archer", kind="physical", branch="archer", level=1,
                range=150, fire_rate_ms=500, damage=10, damage_tag="archer", build_cost=50)
    base.update(kw)
    return Tower(id=tid, pad_id=tid, x=x, y=y, defn=TowerTypeDef(**base))


class TestTargeting:
    def setup_method(self):
        self.creeps = [
            _creep(1, 420, max_health=50),
            _creep(2, 560, max_health=80),
            _creep(3, 500, max_health=200),
        ]

    def test_first_is_furthest_along(self):
        assert _tower().pick_target(self.creeps).id == 2

    def test_last(self):
        t = _tower()
        t.cycle_target_mode()
        assert t.target_mode == "LAST"
        assert t.pick_target(self.creeps).id == 1

    def test_strongest(self):
        t = _tower()
        t.target_mode_idx = 2
        assert t.pick_target(self.creeps).id == 3

    def test_closest(self):
        t = _tower()
        t.target_mode_idx = 3
        assert t.pick_target(self.creeps).id == 3

    def test_out_of_range_ignored(self):
        assert _tower().pick_target([_creep(1, 100)]) is None

    def test_ground_tower_ignores_flyers(self):
        t = _tower(hits_air=False)
        assert t.pick_target([_creep(1, 500, is_flying=True)]) is None


class TestFiring:
    def test_respects_fire_rate(self):
        t = _tower()
        c = _creep(1, 500)
        assert len(t.update(0, [c], [t], RNG)) == 1
        assert t.update(499, [c], [t], RNG) == []
        assert len(t.update(500, [c], [t], RNG)) == 1
        assert c.health == 80

    def test_air_bonus(self):
        t = _tower(air_damage_bonus=2)
        c = _creep(1, 500, is_flying=True)
        t.update(0, [c], [t], RNG)
        assert c.health == 70

    def test_splash_hits_neighbours(self):
        t = _tower(splash_radius=60, hits_air=False)
        a, b, far = _creep(1, 500), _creep(2, 530), _creep(3, 700)
        ev = t.update(0, [a, b, far], [t], RNG)
        # FIRST picks b; a sits 30px from the impact
        assert ev[0].target_id == 2
        assert ev[0].splash_radius == 60
        assert b.health == 90
        assert 90 < a.health < 100
        assert far.health == 100

    def test_aura_boosts_neighbours(self):
        t = _tower()
        aura = _tower(2, x=520, key="aura_1", kind="support", branch="aura", fire_rate_ms=0, damage=0,
                      damage_tag="aura", aura_damage_multiplier=0.25)
        c = _creep(1, 500)
        t.update(0, [c], [t, aura], RNG)
        assert c.health == 88
        assert aura.update(0, [c], [t, aura], RNG) == []

    def test_slow_and_immunity(self):
        ice = _tower(slow_percent=40, slow_duration_ms=1000, damage_tag="ice", kind="magic")
        normal = _creep(1, 500)
        flame = _creep(2, 510, only_damaged_by="fire")
        ice.update(0, [normal], [ice], RNG)
        assert normal.status.active_slows(0) == [40]
        ice.update(500, [flame], [ice], RNG)
        assert flame.status.active_slows(500) == []

    def test_multi_slow_targets(self):
        ice = _tower(slow_percent=40, slow_duration_ms=1000, max_slow_targets=2, damage_tag="ice", kind="magic")
        a, b, c = _creep(1, 560), _creep(2, 540), _creep(3, 450)
        ice.update(0, [a, b, c], [ice], RNG)
        slowed = [x.id for x in (a, b, c) if x.status.active_slows(0)]
        assert slowed == [1, 2]

    def test_poison_applied(self):
        t = _tower(dot_damage=4, dot_duration_ms=3000, damage_tag="poison")
        c = _creep(1, 500)
        t.update(0, [c], [t], RNG)
        assert c.status.poison_stack_count(0) == 1

    def test_upgrade_accumulates_spent(self):
        t = _tower()
        t.upgrade_to(TowerTypeDef(key="archer_2", name="Archer II", kind="physical", branch="archer", level=2,
                                  range=150, fire_rate_ms=400, damage=15, damage_tag="archer", upgrade_cost=110))
        assert t.spent == 160
        assert t.defn.key == "archer_2"

    def test_support_tower_dps_is_zero(self):
        assert _tower(fire_rate_ms=0).defn.dps() == 0.0


def _maxed(branch: str, ability: str, tag: str | None = None, **kw) -> Tower:
    t = _tower(key=f"{branch}_4", branch=branch, level=4, damage_tag=tag or branch, **kw)
    t.ability = ability
    return t


class TestFireCadence:
    @pytest.mark.parametrize("step", [1000 / 60, 50.0])
    def test_shot_count_does_not_depend_on_tick_size(self, step):
        t = _tower(fire_rate_ms=420)
        c = _creep(1, 500, max_health=1e9)
        k = 0
        while k * step <= 42_020:
            t.update(k * step, [c], [t], RNG)
            k += 1
        # due at 0, 420, ..., 42000
        assert t.shots == 101

    def test_late_shot_keeps_the_grid(self):
        t = _tower(fire_rate_ms=420)
        c = _creep(1, 500, max_health=1e9)
        t.update(0, [c], [t], RNG)
        t.update(450, [c], [t], RNG)
        assert t.next_fire_at == 840

    def test_idle_tower_fires_as_soon_as_a_target_appears(self):
        t = _tower(fire_rate_ms=420)
        assert t.update(0, [], [t], RNG) == []
        assert t.next_fire_at == 0
        c = _creep(1, 500, max_health=1e9)
        assert len(t.update(5000, [c], [t], RNG)) == 1
        assert t.next_fire_at == 5420

    def test_fire_event_reports_dealt_damage(self):
        t = _tower()
        c = _creep(1, 500, armor=100)
        ev = t.update(0, [c], [t], RNG)[0]
        assert ev.damage == 10
        assert ev.dealt == 5
        assert t.damage_dealt == 5


class TestShotAbilities:
    def test_no_trigger_when_the_roll_fails(self):
        t = _maxed("sniper", "critical")
        c = _creep(1, 500)
        ev = t.update(0, [c], [t], NeverRng())[0]
        assert ev.ability is None
        assert c.health == 90

    def test_critical(self):
        t = _maxed("sniper", "critical")
        c = _creep(1, 500)
        ev = t.update(0, [c], [t], FORCED)[0]
        assert ev.ability == "critical"
        assert ev.crit
        assert ev.dealt == 20
        assert c.health == 80

    def test_pierce_ignores_armor(self):
        t = _maxed("sniper", "pierce")
        c = _creep(1, 500, armor=100)
        t.update(0, [c], [t], FORCED)
        assert c.health == 90

    def test_headshot_executes_wounded(self):
        t = _maxed("sniper", "headshot")
        c = _creep(1, 500)
        c.health = 20
        ev = t.update(0, [c], [t], FORCED)[0]
        assert not c.alive
        assert ev.dealt == 20

    def test_headshot_bonus_on_healthy(self):
        t = _maxed("sniper", "headshot")
        c = _creep(1, 500)
        t.update(0, [c], [t], FORCED)
        assert c.health == 85

    def test_shatter_needs_a_slowed_target(self):
        t = _maxed("icetower", "shatter", tag="ice", kind="magic")
        slowed, plain = _creep(1, 500), _creep(2, 500)
        slowed.apply_slow(40, 1000)
        ev = t.update(0, [slowed], [t], FORCED)[0]
        assert ev.ability == "shatter"
        assert slowed.health == 80
        assert slowed.status.active_slows(0) == []
        t.next_fire_at = 0
        ev = t.update(0, [plain], [t], FORCED)[0]
        assert ev.ability is None
        assert plain.health == 90

    def test_ice_trap_freezes(self):
        t = _maxed("icetower", "trap", tag="ice", kind="magic")
        c = _creep(1, 500)
        t.update(0, [c], [t], FORCED)
        assert c.status.is_frozen(0)
        c.move(c.update_status(1000))
        assert c.distance == 500

    def test_frost_nova_slows_around_the_target(self):
        t = _maxed("icetower", "frostnova", tag="ice", kind="magic", slow_percent=30, slow_duration_ms=1000)
        near, target, far = _creep(1, 500), _creep(2, 540), _creep(3, 700)
        t.update(0, [near, target, far], [t], FORCED)
        assert near.status.active_slows(0) == [30]
        assert far.status.active_slows(0) == []

    def test_debuffs_skip_immune_creeps(self):
        t = _maxed("icetower", "trap", tag="ice", kind="magic")
        c = _creep(1, 500, only_damaged_by="poison")
        t.update(0, [c], [t], FORCED)
        assert not c.status.is_frozen(0)

    def test_plague_marks_target(self):
        t = _maxed("poison", "plague")
        c = _creep(1, 500)
        t.update(0, [c], [t], FORCED)
        assert c.plague == (8, 5000, 60)

    def test_toxic_explosion_on_stacked_target(self):
        t = _maxed("poison", "explosion")
        target, near = _creep(1, 540), _creep(2, 500)
        for _ in range(3):
            target.apply_poison(1, 5000)
        t.update(0, [target, near], [t], FORCED)
        assert target.health == 90
        assert near.health == 60

    def test_corrosion_is_capped(self):
        t = _maxed("poison", "corrosive")
        c = _creep(1, 500, max_health=1e6)
        for now in (0, 500, 1000, 1500):
            t.update(now, [c], [t], FORCED)
        assert c.status.armor_reduction == CFG.max_armor_reduction

    def test_bullet_storm_halves_the_next_intervals(self):
        t = _maxed("rapidfire", "bulletstorm", fire_rate_ms=300)
        c = _creep(1, 500, max_health=1e6)
        t.update(0, [c], [t], FORCED)
        assert t.storm_shots == 4
        assert t.next_fire_at == 150

    def test_ricochet_hits_the_closest_other_creep(self):
        t = _maxed("rapidfire", "ricochet")
        target, near, far = _creep(1, 540), _creep(2, 500), _creep(3, 700)
        t.update(0, [target, near, far], [t], FORCED)
        assert near.health == 95
        assert far.health == 100

    def test_incendiary_burns(self):
        t = _maxed("rapidfire", "incendiary")
        c = _creep(1, 500)
        t.update(0, [c], [t], FORCED)
        assert c.status.is_burning(0)
        c.update_status(3000)
        assert c.health == 100 - 10 - 3 * 5

    def test_multishot(self):
        t = _maxed("archer", "multishot")
        creeps = [_creep(1, 540), _creep(2, 500), _creep(3, 460), _creep(4, 420)]
        t.update(0, creeps, [t], FORCED)
        assert [c.health for c in creeps] == [90, 90, 90, 100]

    def test_piercing_arrow_hits_creeps_behind(self):
        t = _maxed("archer", "piercing", x=300, y=0)
        creeps = [_creep(1, 420), _creep(2, 500), _creep(3, 560), _creep(4, 700)]
        t.update(0, creeps, [t], FORCED)
        assert [c.health for c in creeps] == [90, 90, 90, 100]

    def test_quick_draw_fires_twice(self):
        t = _maxed("archer", "quickdraw")
        c = _creep(1, 500)
        evs = t.update(0, [c], [t], FORCED)
        assert len(evs) == 2
        assert evs[1].ability is None
        assert t.shots == 2
        assert c.health == 80


class TestDelayedBlasts:
    def test_aftershock_schedules_three_blasts(self):
        t = _maxed("rockcannon", "aftershock")
        c = _creep(1, 500, max_health=1e6)
        t.update(0, [c], [t], FORCED)
        assert len(t.pending) == 3
        assert all(0 < b.at <= 500 for b in t.pending)
        abilities.resolve_pending(t, 500, [c])
        assert t.pending == []

    def test_earthquake_ticks_on_ground_creeps(self):
        t = _maxed("rockcannon", "earthquake")
        c = _creep(1, 500)
        flyer = _creep(2, 480, is_flying=True)
        t.update(0, [c, flyer], [t], FORCED)
        assert c.health == 90
        assert abilities.resolve_pending(t, 3000, [c, flyer]) == 6 * 8
        assert c.health == 90 - 48
        assert flyer.health == 100
        assert t.pending == []

    def test_shrapnel_skips_the_target(self):
        t = _maxed("rockcannon", "shrapnel")
        target, near = _creep(1, 540), _creep(2, 500)
        t.update(0, [target, near], [t], FORCED)
        assert target.health == 90
        assert near.health == 98


class TestAuraAbilities:
    def _aura(self, ability: str) -> Tower:
        a = _tower(2, x=520, key="aura_4", kind="support", branch="aura", level=4,
                   fire_rate_ms=0, damage=0, damage_tag="aura")
        a.ability = ability
        return a

    def test_passive_is_not_rolled_per_shot(self):
        assert abilities.roll(self._aura("warcry"), FORCED) is None

    def test_war_cry_hastes_neighbours(self):
        t, aura = _tower(), self._aura("warcry")
        aura.next_passive_at = 1000
        aura.update(1000, [], [t, aura], FORCED)
        assert t.haste_until == 5000
        assert t.fire_interval(1000) == pytest.approx(400)
        assert t.fire_interval(5000) == 500
        assert aura.next_passive_at == 2000

    def test_critical_aura(self):
        t, aura = _tower(), self._aura("critaura")
        assert t.crit_bonus([t, aura]) == pytest.approx(0.15)
        c = _creep(1, 500)
        ev = t.update(0, [c], [t, aura], FORCED)[0]
        assert ev.crit
        assert c.health == 80

    def test_overcharge_reloads_a_tower(self):
        t, aura = _tower(), self._aura("overcharge")
        t.next_fire_at = 5000
        aura.next_passive_at = 1000
        aura.update(1000, [], [t, aura], FORCED)
        assert t.next_fire_at == 1000
