"""
Static activity config: ratio bounds, colour palette, and bootstrap defaults.

The defaults are only written by services/store.py when storage holds no
activities at all; RatioTracker itself never seeds.
"""

import re


# ── Ratio bounds offered to users ─────────────────────────────────────────

MIN_RATIO = 1
MAX_RATIO = 10


# ── Colour palette ────────────────────────────────────────────────────────

COLOR_OPTIONS = [
    "#007AFF",
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEAA7",
    "#DDA0DD",
    "#98D8C8",
    "#F7DC6F",
    "#BB8FCE",
]

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def is_valid_color(color) -> bool:
    return isinstance(color, str) and bool(_HEX_COLOR.match(color))


# ── First-run defaults ────────────────────────────────────────────────────

DEFAULT_ACTIVITIES = [
    {"name": "Gaming", "ratio": 1, "color": "#FF6B6B"},
    {"name": "Music Making", "ratio": 2, "color": "#4ECDC4"},
    {"name": "Quality Time", "ratio": 3, "color": "#45B7D1"},
]
