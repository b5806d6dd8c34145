"""Shared fixtures: the shipped tables, a tiny hand-made table set, sessions."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from dunekeep.core.tables import GameTables, load_tables, parse_creeps, parse_maps, parse_mines, parse_towers, parse_waves
from dunekeep.systems.session import GameSession
from dunekeep.world.path import PathSystem


@pytest.fixture(scope="session")
def tables() -> GameTables:
    return load_tables()


@pytest.fixture
def straight_path() -> PathSystem:
    # 1000 px along the x axis
    return PathSystem([(0, 0), (1000, 0)])


@pytest.fixture
def l_path() -> PathSystem:
    # 100 right then 100 down
    return PathSystem([(0, 0), (100, 0), (100, 100)])


def make_tables(creeps=None, waves=None, towers=None) -> GameTables:
    """Small deterministic tables for flow tests."""
    creeps_raw = creeps or {
        "grunt": {"max_health": 30, "speed": 100, "armor": 0, "gold_reward": 5},
        "brute": {"max_health": 1000, "speed": 100, "armor": 0, "gold_reward": 50, "is_boss": True},
    }
    waves_raw = waves or [
        {"wave": 1, "groups": [{"creep": "grunt", "count": 2, "interval_ms": 500}]},
        {"wave": 2, "wave_type": "boss", "parallel": True, "groups": [{"creep": "brute", "count": 1, "interval_ms": 500}]},
    ]
    towers_raw = towers or {
        "archer_1": {"kind": "physical", "branch": "archer", "level": 1, "build_cost": 50,
                     "range": 150, "fire_rate_ms": 500, "damage": 10},
        "archer_2": {"kind": "physical", "branch": "archer", "level": 2, "upgrade_cost": 100,
                     "range": 150, "fire_rate_ms": 400, "damage": 20},
        "icetower_1": {"kind": "magic", "branch": "icetower", "level": 1, "upgrade_cost": 60,
                       "range": 150, "fire_rate_ms": 500, "damage": 5, "damage_tag": "ice",
                       "slow_percent": 40, "slow_duration_ms": 1000},
    }
    maps_raw = {
        "test": {
            "waypoints": [[0, 0], [1000, 0]],
            "pads": [{"id": 1, "x": 500, "y": 50}, {"id": 2, "x": 900, "y": 50}],
            "mine_slots": [{"id": 1, "x": 0, "y": 300}],
        }
    }
    mines_raw = {"levels": [
        {"level": 0, "build_cost": 0, "income_per_wave": 0},
        {"level": 1, "build_cost": 75, "income_per_wave": 12},
        {"level": 2, "build_cost": 150, "income_per_wave": 22},
    ]}
    c = parse_creeps(creeps_raw)
    return GameTables(
        creeps=MappingProxyType(c),
        waves=parse_waves(waves_raw, c),
        towers=MappingProxyType(parse_towers(towers_raw)),
        mines=parse_mines(mines_raw),
        maps=MappingProxyType(parse_maps(maps_raw)),
    )


@pytest.fixture
def small_tables() -> GameTables:
    return make_tables()


@pytest.fixture
def session(small_tables) -> GameSession:
    s = GameSession(small_tables, seed=7)
    yield s
    s.close()


@pytest.fixture
def full_session(tables) -> GameSession:
    s = GameSession(tables, seed=3)
    yield s
    s.close()


def run_until(session: GameSession, cond, step_ms: float = 50.0, limit_ms: float = 600_000.0) -> bool:
    """Tick `session` until `cond()` holds; False if the limit is hit first."""
    elapsed = 0.0
    while not cond():
        if elapsed >= limit_ms:
            return False
        session.tick(step_ms)
        elapsed += step_ms
    return True
