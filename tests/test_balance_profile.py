"""Unit tests for optional balance profiles applied at load time."""

from __future__ import annotations

import json

import pytest

from dunekeep.core.balance_profile import load_profile
from dunekeep.core.errors import ConfigError
from dunekeep.core.tables import load_tables

pytestmark = pytest.mark.unit


class TestLoadProfile:
    def test_missing(self, tmp_path):
        assert load_profile(str(tmp_path / "none.json")) is None

    def test_corrupt(self, tmp_path):
        p = tmp_path / "p.json"
        p.write_text("{", encoding="utf-8")
        assert load_profile(str(p)) is None

    def test_not_an_object(self, tmp_path):
        p = tmp_path / "p.json"
        p.write_text("[1, 2]", encoding="utf-8")
        assert load_profile(str(p)) is None

    def test_valid(self, tmp_path):
        p = tmp_path / "p.json"
        p.write_text(json.dumps({"creep": {"hp_mul": 1.5}}), encoding="utf-8")
        assert load_profile(str(p)) == {"creep": {"hp_mul": 1.5}}


class TestApplyProfile:
    def test_multipliers(self):
        t = load_tables(profile={"creep": {"hp_mul": 2}, "tower": {"cost_mul": 2, "rate_mul": 2}})
        assert t.creeps["furball"].max_health == 110
        assert t.towers["archer_1"].build_cost == 100

    def test_shipped_tables_untouched(self, tables):
        load_tables(profile={"creep": {"hp_mul": 3}})
        assert tables.creeps["furball"].max_health == 55

    def test_bad_value(self):
        with pytest.raises(ConfigError):
            load_tables(profile={"tower": {"damage_mul": "lots"}})

    def test_invalid_result_caught(self):
        with pytest.raises(ConfigError):
            load_tables(profile={"creep": {"hp_mul": 0}})
