from __future__ import annotations

"""Balance constants for the simulation.

Every tuning number lives here so gameplay code never carries its own
"magic numbers". The values mirror the shipped balance of the desert
campaign:

- HP grows 8% per wave and saturates at 3.5x
- armor grows 4% per wave (only for creeps that have armor) up to 2x
- all durations are milliseconds of virtual (speed-scaled) time
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class GameConfig:
    # --- run ---
    starting_gold: int = 250
    max_castle_hp: int = 25
    game_speeds: tuple = (1, 2, 3)
    leak_damage: int = 1
    boss_leak_damage: int = 2

    # --- wave scaling ---
    wave_hp_scaling: float = 0.08
    max_hp_multiplier: float = 3.5
    wave_armor_scaling: float = 0.04
    max_armor_multiplier: float = 2.0
    difficulty: float = 1.0

    # --- wave flow ---
    wave_countdown_seconds: int = 3
    child_spawn_stagger_ms: float = 100.0

    # --- wave gold bonus: base + floor((wave-1)/interval) * increment ---
    wave_gold_bonus_base: int = 25
    wave_gold_bonus_increment: int = 14
    wave_gold_bonus_interval: int = 5

    # --- scoring ---
    wave_bonus_points: int = 100
    gold_bonus_multiplier: float = 1.0
    hp_bonus_points: int = 500
    time_bonus_full_s: float = 900.0
    time_bonus_decay_s: float = 1800.0
    time_bonus_max: float = 1.5

    # --- combat math ---
    splash_min_pct: float = 0.3
    armor_constant: float = 100.0

    # --- status effects ---
    shield_hits: int = 5
    max_slow_stacks: int = 4
    slow_stack_falloff: float = 0.5
    max_poison_stacks: int = 3
    poison_tick_ms: float = 1000.0
    burn_tick_ms: float = 1000.0
    max_armor_reduction: float = 6.0

    # --- jumper ---
    jump_cooldown_ms: float = 4000.0
    jump_distance: float = 150.0
    jump_warning_ms: float = 500.0

    # --- digger ---
    digger_walk_ms: float = 3000.0
    digger_stop_ms: float = 400.0
    burrow_ms: float = 2500.0
    digger_resurface_ms: float = 600.0
    digger_tunnel_distance: float = 120.0

    # --- ghost ---
    ghost_phase_ms: float = 5000.0
    ghost_phase_threshold: float = 0.15

    # --- boss dispel ---
    dispel_cooldown_ms: float = 6000.0
    dispel_immunity_ms: float = 2000.0

    # --- tower abilities ---
    ability_level: int = 4

    # --- highscores ---
    highscore_limit: int = 10


CFG = GameConfig()
