from __future__ import annotations
import json, os, datetime
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

SAVE_DIR = os.path.join(os.getcwd(), "saves")
HIGHSCORE_FILE = "highscores.json"
MAX_HIGHSCORES = 10


@dataclass
class RunRecordStats:
    hp_left: int = 0
    gold_earned: int = 0
    time_seconds: int = 0


@dataclass
class HighscoreRecord:
    player_name: str
    score: int
    wave_reached: int
    total_waves: int
    date: str = ""
    run_stats: RunRecordStats = field(default_factory=RunRecordStats)

    def __post_init__(self):
        if not self.date:
            self.date = datetime.date.today().isoformat()

    def sort_key(self):
        # score desc, hp left desc, time asc
        return (-self.score, -self.run_stats.hp_left, self.run_stats.time_seconds)

    def to_dict(self) -> dict:
        return {
            "playerName": self.player_name,
            "score": self.score,
            "waveReached": self.wave_reached,
            "totalWaves": self.total_waves,
            "date": self.date,
            "runStats": {
                "hpLeft": self.run_stats.hp_left,
                "goldEarned": self.run_stats.gold_earned,
                "timeSeconds": self.run_stats.time_seconds,
            },
        }

    @classmethod
    def from_dict(cls, d: dict) -> "HighscoreRecord":
        rs = d.get("runStats") or {}
        return cls(
            player_name=str(d["playerName"]),
            score=int(d["score"]),
            wave_reached=int(d["waveReached"]),
            total_waves=int(d["totalWaves"]),
            date=str(d.get("date", "")),
            run_stats=RunRecordStats(
                hp_left=int(rs.get("hpLeft", 0)),
                gold_earned=int(rs.get("goldEarned", 0)),
                time_seconds=int(rs.get("timeSeconds", 0)),
            ),
        )


def rank_highscores(records: List[HighscoreRecord], limit: int = MAX_HIGHSCORES) -> List[HighscoreRecord]:
    return sorted(records, key=HighscoreRecord.sort_key)[:limit]


def insert_highscore(records: List[HighscoreRecord], rec: HighscoreRecord, limit: int = MAX_HIGHSCORES) -> Optional[int]:
    """1-based rank of `rec` once inserted, or None if it did not make the cut."""
    table = rank_highscores(records + [rec], limit)
    for i, r in enumerate(table):
        if r is rec:
            return i + 1
    return None


class SaveManager:
    """JSON files under saves/: the highscore table."""

    def __init__(self, save_dir: Optional[str] = None):
        self.save_dir = save_dir or SAVE_DIR
        self.highscore_file = os.path.join(self.save_dir, HIGHSCORE_FILE)
        os.makedirs(self.save_dir, exist_ok=True)

    def load_highscores(self) -> List[HighscoreRecord]:
        if not os.path.exists(self.highscore_file):
            return []
        try:
            with open(self.highscore_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"highscores unreadable, starting fresh: {e}")
            return []
        out = []
        for d in raw if isinstance(raw, list) else []:
            try:
                out.append(HighscoreRecord.from_dict(d))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"skipping malformed highscore entry {d!r}: {e}")
        return rank_highscores(out)

    def save_highscores(self, records: List[HighscoreRecord]):
        table = rank_highscores(records)
        with open(self.highscore_file, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in table], f, indent=2, ensure_ascii=False)

    def submit(self, rec: HighscoreRecord) -> Optional[int]:
        """Insert and persist; returns the rank reached (1-based) or None."""
        records = self.load_highscores()
        rank = insert_highscore(records, rec)
        if rank is not None:
            self.save_highscores(records + [rec])
            logger.info(f"highscore #{rank}: {rec.player_name} {rec.score}")
        return rank
