# ipl_snapshot/cricket_math.py
from __future__ import annotations

import re
from typing import Union

BALLS_PER_OVER = 6

# Digit after the dot counts balls in the current over: "16.2" is 16 overs + 2 balls
_NOTATION_RE = re.compile(r"^(\d+)(?:\.(\d?))?$")


def notation_to_balls(overs: Union[str, int, float]) -> int:
    """Overs notation ("19.4", "19.", 20, 7.2) to a ball count. Raises ValueError otherwise."""
    m = _NOTATION_RE.match(str(overs).strip())
    if not m:
        raise ValueError(f"Invalid overs notation: {overs!r}")

    completed = int(m.group(1))
    balls = int(m.group(2) or 0)
    if balls >= BALLS_PER_OVER:
        raise ValueError(f"Invalid overs notation: {overs!r} (balls part must be 0-5)")
    return completed * BALLS_PER_OVER + balls


def notation_to_overs(overs: Union[str, int, float]) -> float:
    """"16.2" -> 16.333... (two balls into the 17th over, not 16.2 overs)."""
    return notation_to_balls(overs) / BALLS_PER_OVER
