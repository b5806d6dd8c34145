from __future__ import annotations

# Window defaults (the map is authored for this size)
DEFAULT_W = 1280
DEFAULT_H = 720
FPS = 60

TOP_BAR_H = 56
BOTTOM_BAR_H = 72

# click radius around pads and mine slots, in map pixels
SPOT_RADIUS = 22

# colors
C_BG      = (196, 170, 120)
C_UI_BG   = (30, 35, 40)
C_PATH    = (150, 120, 80)
C_PAD     = (110, 100, 85)
C_SLOT    = (120, 95, 40)
C_MINE    = (255, 200, 60)
C_RANGE   = (255, 255, 255)

C_TEXT    = (240, 240, 240)
C_GOLD    = (255, 215, 0)
C_HP      = (220, 70, 70)
C_OK      = (120, 255, 120)
C_BAD     = (255, 120, 120)

# tower body by branch
C_BRANCH = {
    "archer": (150, 110, 60),
    "rapidfire": (200, 150, 60),
    "sniper": (90, 90, 140),
    "rockcannon": (110, 110, 110),
    "icetower": (120, 200, 240),
    "poison": (110, 190, 80),
    "aura": (220, 120, 220),
}

# creep tint by status flag, first match wins
C_FLAG = [
    ("ghost", (200, 200, 255)),
    ("burrowed", (120, 90, 50)),
    ("shielded", (80, 160, 255)),
    ("frozen", (210, 240, 255)),
    ("burning", (255, 140, 40)),
    ("poisoned", (120, 220, 80)),
    ("slowed", (150, 220, 255)),
    ("corroded", (150, 130, 70)),
]
C_CREEP = (170, 60, 50)
C_CREEP_AIR = (210, 90, 200)

# key -> branch entered from an archer (1..6 on the keyboard)
BRANCH_KEYS = ["rapidfire", "sniper", "rockcannon", "icetower", "poison", "aura"]
