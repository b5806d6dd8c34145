"""Unit tests for loading and validating the definition tables."""

from __future__ import annotations

import json
import shutil

import pytest

from dunekeep.core.errors import ConfigError, DunekeepError
from dunekeep.core.tables import (
    DATA_DIR,
    load_tables,
    parse_creeps,
    parse_maps,
    parse_mines,
    parse_towers,
    parse_waves,
    read_json,
)

pytestmark = pytest.mark.unit

GRUNT = {"grunt": {"max_health": 10, "speed": 50}}


class TestShippedTables:
    def test_counts(self, tables):
        assert tables.total_waves == 35
        assert len(tables.creeps) >= 14
        assert "dunes" in tables.maps

    def test_final_wave_is_parallel_boss(self, tables):
        last = tables.wave(tables.total_waves)
        assert last.is_boss
        assert last.parallel_spawn

    def test_waves_only_use_known_creeps(self, tables):
        for w in tables.waves:
            for g in w.groups:
                assert g.creep_type in tables.creeps

    def test_wave_lookup_bounds(self, tables):
        assert tables.wave(0) is None
        assert tables.wave(36) is None
        assert tables.wave(1).wave_number == 1

    def test_tables_are_read_only(self, tables):
        with pytest.raises(TypeError):
            tables.creeps["new"] = None

    def test_only_archer_is_buildable(self, tables):
        assert [t.key for t in tables.buildable_towers()] == ["archer_1"]

    def test_upgrade_options(self, tables):
        keys = {t.key for t in tables.upgrade_options("archer_1")}
        assert "archer_2" in keys
        assert {"rapidfire_1", "sniper_1", "rockcannon_1", "icetower_1", "poison_1", "aura_1"} <= keys
        assert [t.key for t in tables.upgrade_options("archer_3")] == ["archer_4"]
        assert [t.key for t in tables.upgrade_options("poison_2")] == ["poison_3"]
        assert tables.upgrade_options("rapidfire_4") == []
        assert tables.upgrade_options("nope") == []

    def test_immune_creeps_have_a_counter(self, tables):
        tags = {t.damage_tag for t in tables.towers.values()}
        for c in tables.creeps.values():
            if c.only_damaged_by:
                assert c.only_damaged_by in tags


class TestCreepValidation:
    def test_error_hierarchy(self):
        with pytest.raises(DunekeepError):
            parse_creeps({})
        with pytest.raises(ValueError):
            parse_creeps({})

    def test_missing_health(self):
        with pytest.raises(ConfigError, match="max_health"):
            parse_creeps({"x": {"speed": 10}})

    def test_unknown_child(self):
        with pytest.raises(ConfigError, match="unknown creep"):
            parse_creeps({"mother": {"max_health": 10, "speed": 5, "spawn_on_death": {"type": "ghost", "count": 2}}})

    def test_grandchildren_rejected(self):
        raw = {
            "a": {"max_health": 10, "speed": 5, "spawn_on_death": {"type": "b", "count": 1}},
            "b": {"max_health": 10, "speed": 5, "spawn_on_death": {"type": "c", "count": 1}},
            "c": {"max_health": 10, "speed": 5},
        }
        with pytest.raises(ConfigError, match="must not spawn"):
            parse_creeps(raw)

    def test_bool_is_not_a_number(self):
        with pytest.raises(ConfigError):
            parse_creeps({"x": {"max_health": True, "speed": 5}})


class TestWaveValidation:
    def _creeps(self):
        return parse_creeps(GRUNT)

    def _boss(self, n):
        return {"wave": n, "wave_type": "boss", "parallel": True,
                "groups": [{"creep": "grunt", "count": 1, "interval_ms": 100}]}

    def test_valid(self):
        waves = parse_waves([self._boss(1)], self._creeps())
        assert waves[0].groups[0].count == 1

    def test_numbering_gap(self):
        with pytest.raises(ConfigError, match="without gaps"):
            parse_waves([self._boss(2)], self._creeps())

    def test_unknown_creep(self):
        w = self._boss(1)
        w["groups"][0]["creep"] = "dragon"
        with pytest.raises(ConfigError, match="unknown creep type"):
            parse_waves([w], self._creeps())

    @pytest.mark.parametrize("field,value", [("count", 0), ("interval_ms", 0), ("count", 1.5), ("delay_start_ms", -1)])
    def test_bad_group_numbers(self, field, value):
        w = self._boss(1)
        w["groups"][0][field] = value
        with pytest.raises(ConfigError):
            parse_waves([w], self._creeps())

    def test_final_wave_must_be_parallel_boss(self):
        w = self._boss(1)
        w["parallel"] = False
        with pytest.raises(ConfigError, match="parallel boss"):
            parse_waves([w], self._creeps())

    def test_unknown_wave_type(self):
        w = self._boss(1)
        w["wave_type"] = "party"
        with pytest.raises(ConfigError):
            parse_waves([w], self._creeps())

    def test_empty(self):
        with pytest.raises(ConfigError):
            parse_waves([], self._creeps())


class TestTowerValidation:
    BASE = {"kind": "physical", "branch": "archer", "level": 1, "build_cost": 50,
            "range": 100, "fire_rate_ms": 500, "damage": 5}

    def test_key_must_match(self):
        with pytest.raises(ConfigError, match="branch"):
            parse_towers({"bow_1": dict(self.BASE)})

    def test_missing_previous_level(self):
        lvl3 = dict(self.BASE, level=3, upgrade_cost=100)
        with pytest.raises(ConfigError, match="previous level"):
            parse_towers({"archer_1": dict(self.BASE), "archer_3": lvl3})

    def test_upgrade_cost_required(self):
        lvl2 = dict(self.BASE, level=2)
        del lvl2["build_cost"]
        with pytest.raises(ConfigError, match="upgrade_cost"):
            parse_towers({"archer_1": dict(self.BASE), "archer_2": lvl2})

    def test_slow_needs_duration(self):
        with pytest.raises(ConfigError, match="slow"):
            parse_towers({"archer_1": dict(self.BASE, slow_percent=30)})

    def test_nothing_buildable(self):
        t = dict(self.BASE, build_cost=0, upgrade_cost=10)
        with pytest.raises(ConfigError, match="no tower"):
            parse_towers({"archer_1": t})

    def test_defaults(self):
        t = parse_towers({"archer_1": dict(self.BASE)})["archer_1"]
        assert t.damage_tag == "archer"
        assert t.hits_air
        assert t.max_slow_targets == 0


class TestMineAndMapValidation:
    def test_level_zero_must_be_free(self):
        with pytest.raises(ConfigError, match="level 0"):
            parse_mines({"levels": [{"level": 0, "build_cost": 5, "income_per_wave": 0},
                                    {"level": 1, "build_cost": 10, "income_per_wave": 1}]})

    def test_ladder_needs_a_buildable_level(self):
        with pytest.raises(ConfigError):
            parse_mines({"levels": [{"level": 0, "build_cost": 0, "income_per_wave": 0}]})

    def test_income_must_not_drop(self):
        with pytest.raises(ConfigError, match="income"):
            parse_mines({"levels": [{"level": 0, "build_cost": 0, "income_per_wave": 0},
                                    {"level": 1, "build_cost": 10, "income_per_wave": 5},
                                    {"level": 2, "build_cost": 10, "income_per_wave": 4}]})

    def test_two_waypoints_required(self):
        with pytest.raises(ConfigError, match="two waypoints"):
            parse_maps({"m": {"waypoints": [[0, 0]]}})

    def test_zero_length_path(self):
        with pytest.raises(ConfigError, match="zero length"):
            parse_maps({"m": {"waypoints": [[5, 5], [5, 5]]}})

    def test_duplicate_pad_ids(self):
        with pytest.raises(ConfigError, match="duplicate"):
            parse_maps({"m": {"waypoints": [[0, 0], [9, 0]], "pads": [{"id": 1, "x": 0, "y": 0}, {"id": 1, "x": 1, "y": 1}]}})


class TestFiles:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            read_json(tmp_path / "creeps.json")

    def test_invalid_json(self, tmp_path):
        p = tmp_path / "waves.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="invalid JSON"):
            read_json(p)

    def test_load_from_directory(self, tmp_path):
        for f in DATA_DIR.glob("*.json"):
            shutil.copy(f, tmp_path / f.name)
        assert load_tables(tmp_path).total_waves == 35

    def test_unmatched_immunity_rejected(self, tmp_path):
        for f in DATA_DIR.glob("*.json"):
            shutil.copy(f, tmp_path / f.name)
        creeps = json.loads((tmp_path / "creeps.json").read_text(encoding="utf-8"))
        creeps["flame"]["only_damaged_by"] = "lightning"
        (tmp_path / "creeps.json").write_text(json.dumps(creeps), encoding="utf-8")
        with pytest.raises(ConfigError, match="lightning"):
            load_tables(tmp_path)
