from __future__ import annotations
import argparse
import os
import random
import sys
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from ..core.balance_profile import load_profile
from ..core.tables import GameTables, load_tables
from ..systems.session import GameSession
from .bot import AutoBot

# one wave may not run longer than this much virtual time
WAVE_TIMEOUT_MS = 15 * 60 * 1000


@dataclass
class EpisodeResult:
    seed: int
    waves_cleared: int
    hp_end: int
    gold_end: int
    gold_earned: int
    score: int
    victory: bool
    ticks: int
    timed_out: bool = False


def run_episode(
    tables: GameTables,
    seed: int = 0,
    max_waves: Optional[int] = None,
    dt_ms: float = 1000.0 / 60.0,
    bot: Optional[AutoBot] = None,
) -> EpisodeResult:
    """Play one game at a fixed timestep with the AutoBot. Same seed, same result."""
    session = GameSession(tables, seed=seed)
    bot = bot or AutoBot(random.Random(seed))
    last = min(max_waves or tables.total_waves, tables.total_waves)

    ticks = 0
    timed_out = False
    try:
        while not session.game_over and session.waves_completed < last:
            bot.act(session)
            if not session.start_next_wave():
                break
            started = session.now
            while session.scheduler.is_active and not session.game_over:
                session.tick(dt_ms)
                ticks += 1
                if session.now - started > WAVE_TIMEOUT_MS:
                    timed_out = True
                    break
            if timed_out:
                logger.warning(f"sim seed={seed}: wave {session.controller.wave} timed out")
                break
            logger.debug(
                f"sim seed={seed} wave={session.controller.wave} hp={session.controller.hp} "
                f"gold={session.controller.gold} towers={len(session.towers)}"
            )
    finally:
        session.close()

    c = session.controller
    return EpisodeResult(
        seed=seed,
        waves_cleared=session.waves_completed,
        hp_end=c.hp,
        gold_end=c.gold,
        gold_earned=c.gold_earned,
        score=session.final_score().final_score,
        victory=c.victory,
        ticks=ticks,
        timed_out=timed_out,
    )


def run_batch(tables: GameTables, seeds: List[int], max_waves: Optional[int] = None) -> List[EpisodeResult]:
    out = []
    for s in seeds:
        res = run_episode(tables, seed=s, max_waves=max_waves)
        logger.info(
            f"[SIM] seed={s} waves={res.waves_cleared} hp={res.hp_end} gold={res.gold_end} "
            f"score={res.score}{' victory' if res.victory else ''}"
        )
        out.append(res)
    return out


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Headless balance runs with the auto bot.")
    ap.add_argument("--episodes", type=int, default=5)
    ap.add_argument("--seed", type=int, default=1)
    ap.add_argument("--max-waves", type=int, default=None)
    ap.add_argument("--profile", action="store_true", help="apply saves/balance_profile.json")
    args = ap.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=os.environ.get("DUNEKEEP_LOG_LEVEL", "INFO"))

    tables = load_tables(profile=load_profile() if args.profile else None)
    results = run_batch(tables, list(range(args.seed, args.seed + args.episodes)), args.max_waves)
    if results:
        mean = sum(r.waves_cleared for r in results) / len(results)
        wins = sum(1 for r in results if r.victory)
        logger.info(f"[SIM] mean waves={mean:.2f} victories={wins}/{len(results)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
