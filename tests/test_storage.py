"""Unit tests for the highscore table and its JSON persistence."""

from __future__ import annotations

import json

import pytest

from dunekeep.core.storage import (
    HighscoreRecord,
    RunRecordStats,
    SaveManager,
    insert_highscore,
    rank_highscores,
)

pytestmark = pytest.mark.unit


def _rec(score, hp=10, secs=100, name="p"):
    return HighscoreRecord(name, score, 5, 35, run_stats=RunRecordStats(hp_left=hp, gold_earned=0, time_seconds=secs))


class TestRanking:
    def test_tie_breaks(self):
        a = _rec(100, hp=5, secs=50, name="a")
        b = _rec(100, hp=9, secs=90, name="b")
        c = _rec(100, hp=9, secs=60, name="c")
        d = _rec(200, name="d")
        assert [r.player_name for r in rank_highscores([a, b, c, d])] == ["d", "c", "b", "a"]

    def test_only_top_ten_kept(self):
        recs = [_rec(s) for s in range(20)]
        top = rank_highscores(recs)
        assert len(top) == 10
        assert top[0].score == 19
        assert top[-1].score == 10

    def test_insert_rank(self):
        table = [_rec(s) for s in range(100, 1100, 100)]
        assert insert_highscore(table, _rec(550)) == 6
        assert insert_highscore(table, _rec(50)) is None

    def test_date_filled_in(self):
        assert len(_rec(1).date) == 10


class TestSerialisation:
    def test_keys(self):
        d = _rec(42, hp=3, secs=77).to_dict()
        assert set(d) == {"playerName", "score", "waveReached", "totalWaves", "date", "runStats"}
        assert d["runStats"] == {"hpLeft": 3, "goldEarned": 0, "timeSeconds": 77}

    def test_from_dict(self):
        r = HighscoreRecord.from_dict(_rec(42, hp=3).to_dict())
        assert r.score == 42
        assert r.run_stats.hp_left == 3


class TestSaveManager:
    def test_missing_file_is_empty(self, tmp_path):
        assert SaveManager(str(tmp_path)).load_highscores() == []

    def test_submit_persists(self, tmp_path):
        sm = SaveManager(str(tmp_path))
        assert sm.submit(_rec(10, name="x")) == 1
        assert sm.submit(_rec(20, name="y")) == 1
        loaded = SaveManager(str(tmp_path)).load_highscores()
        assert [r.player_name for r in loaded] == ["y", "x"]

    def test_full_table_rejects_low_score(self, tmp_path):
        sm = SaveManager(str(tmp_path))
        sm.save_highscores([_rec(s) for s in range(100, 1100, 100)])
        assert sm.submit(_rec(1)) is None
        assert min(r.score for r in sm.load_highscores()) == 100

    def test_corrupt_file(self, tmp_path):
        (tmp_path / "highscores.json").write_text("[{oops", encoding="utf-8")
        assert SaveManager(str(tmp_path)).load_highscores() == []

    def test_malformed_entry_skipped(self, tmp_path):
        good = _rec(5, name="ok").to_dict()
        (tmp_path / "highscores.json").write_text(json.dumps([{"score": 3}, good]), encoding="utf-8")
        loaded = SaveManager(str(tmp_path)).load_highscores()
        assert [r.player_name for r in loaded] == ["ok"]
