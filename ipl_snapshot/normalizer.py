# ipl_snapshot/normalizer.py
"""
Pure parsing/derivation helpers shared by every source.

Nothing here does I/O. Parsers return None (never 0) when the text does not
match, so callers can tell "unknown" apart from a real zero.
"""
from __future__ import annotations

import re
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from ipl_snapshot.cricket_math import BALLS_PER_OVER, notation_to_overs
from ipl_snapshot.models import NO_BALL, WICKET, WIDE, BallOutcome, LiveMatch, Score, Team
from ipl_snapshot.teams import DEFAULT_DIRECTORY, TeamDirectory

DEFAULT_INNINGS_OVERS = 20

# "156/4 (16.2 ov)", "156/4 (16 ov)", "156/4(16.2)", "RCB 156/4 (16.2 overs)"
_SCORE_RE = re.compile(
    r"(\d+)\s*/\s*(\d+)\s*\(\s*(\d+)(?:\.(\d))?\s*(?:ov(?:ers?)?)?\s*\)",
    flags=re.IGNORECASE,
)
_TIME_12H_RE = re.compile(r"(\d{1,2})[:.](\d{2})\s*([AP])\.?\s*M\.?", flags=re.IGNORECASE)
_TIME_24H_RE = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")


# -----------------------------
# Scores + run rates
# -----------------------------
def parse_score(text: Optional[str]) -> Optional[Score]:
    if not text:
        return None
    m = _SCORE_RE.search(str(text))
    if not m:
        return None

    runs = int(m.group(1))
    wickets = int(m.group(2))
    completed = int(m.group(3))
    balls = int(m.group(4)) if m.group(4) is not None else 0

    if wickets > 10 or balls >= BALLS_PER_OVER:
        return None

    return Score(runs=runs, wickets=wickets, overs=completed + balls / BALLS_PER_OVER)


def compute_current_run_rate(score: Optional[Score]) -> Optional[float]:
    if score is None or score.overs <= 0:
        return None
    return score.runs / score.overs


def _first_innings_complete(first: Score, innings_overs: int) -> bool:
    return first.all_out or first.overs_as_balls() >= innings_overs * BALLS_PER_OVER


def compute_required_run_rate(
    first_innings: Optional[Score],
    second_innings: Optional[Score],
    innings_overs: int = DEFAULT_INNINGS_OVERS,
) -> Optional[float]:
    """
    (target - runs) / overs remaining, target = first innings runs + 1.

    Only defined while the chase is live: first innings finished, second innings
    not all out, runs still needed and balls still left.
    """
    if first_innings is None or second_innings is None:
        return None
    if not _first_innings_complete(first_innings, innings_overs):
        return None
    if second_innings.all_out:
        return None

    target = first_innings.runs + 1
    runs_needed = target - second_innings.runs
    balls_remaining = innings_overs * BALLS_PER_OVER - second_innings.overs_as_balls()
    if runs_needed <= 0 or balls_remaining <= 0:
        return None

    return runs_needed / (balls_remaining / BALLS_PER_OVER)


def derive_run_rates(live: LiveMatch, innings_overs: int = DEFAULT_INNINGS_OVERS) -> LiveMatch:
    """Fill currentRunRate/requiredRunRate from the scores; team1 is assumed to bat first."""
    first, second = live.team1_score, live.team2_score

    chasing = first is not None and second is not None and _first_innings_complete(first, innings_overs)
    batting = second if chasing else first

    return replace(
        live,
        current_run_rate=compute_current_run_rate(batting),
        required_run_rate=compute_required_run_rate(first, second, innings_overs),
    )


def canonicalize_team(name: str, directory: TeamDirectory = DEFAULT_DIRECTORY) -> Team:
    return directory.canonicalize(name)


# -----------------------------
# Numbers
# -----------------------------
def parse_int(text: object) -> Optional[int]:
    if text is None:
        return None
    s = str(text).strip()
    if not s or s.lower() == "nan":
        return None
    m = re.search(r"-?\d+", s.replace("−", "-"))
    if not m:
        return None
    return int(m.group(0))


def parse_float(text: object) -> Optional[float]:
    if text is None:
        return None
    s = str(text).strip().replace("−", "-")
    if not s or s.lower() == "nan":
        return None
    m = re.search(r"[-+]?\d*\.?\d+", s)
    if not m:
        return None
    return float(m.group(0))


def parse_overs(text: object) -> Optional[float]:
    """Bowler/innings overs notation: "3.2" -> 3.333..."""
    if text is None:
        return None
    m = re.search(r"\d+(?:\.\d)?", str(text))
    if not m:
        return None
    try:
        return notation_to_overs(m.group(0))
    except ValueError:
        return None


def parse_ball(text: object) -> Optional[BallOutcome]:
    """One delivery from a recent-overs strip: "4", "W", "1wd", "nb", "•"."""
    if text is None:
        return None
    s = str(text).strip().lower()
    if not s:
        return None
    if s in ("•", ".", "dot"):
        return 0
    if "wd" in s or "wide" in s:
        return WIDE
    if "nb" in s or "no-ball" in s or "no ball" in s:
        return NO_BALL
    if s in ("w", "wkt", "wicket") or s.startswith("w"):
        return WICKET
    if s.isdigit() and 0 <= int(s) <= 6:
        return int(s)
    return None


# -----------------------------
# Dates + times
# -----------------------------
def parse_match_date(text: Optional[str], today: Optional[date] = None) -> str:
    """
    "Saturday, April 9, 2025" / "Sat 20 April, 2024" / "2025-04-09" -> "2025-04-09".
    Unparseable text falls back to today's date.
    """
    fallback = (today or date.today()).isoformat()
    if not text or not str(text).strip():
        return fallback
    try:
        return date_parser.parse(str(text), fuzzy=True).date().isoformat()
    except (ValueError, OverflowError):
        return fallback


def parse_match_time(text: Optional[str]) -> str:
    """"7:30 PM IST" -> "19:30"; "15:30" -> "15:30"; anything else -> "00:00"."""
    if not text:
        return "00:00"
    s = str(text)

    m = _TIME_12H_RE.search(s)
    if m:
        hours = int(m.group(1))
        minutes = m.group(2)
        period = m.group(3).upper()
        if hours > 12 or int(minutes) > 59:
            return "00:00"
        if period == "P" and hours < 12:
            hours += 12
        if period == "A" and hours == 12:
            hours = 0
        return f"{hours:02d}:{minutes}"

    m = _TIME_24H_RE.search(s)
    if m:
        return f"{int(m.group(1)):02d}:{m.group(2)}"

    return "00:00"


def localize_timestamp(raw: Optional[str], tz_name: str, today: Optional[date] = None) -> Tuple[str, str]:
    """
    GMT/ISO timestamp ("2025-04-09T14:00:00") -> (local ISO date, local "HH:MM").
    Naive timestamps are treated as UTC.
    """
    if not raw:
        return (today or date.today()).isoformat(), "00:00"
    try:
        dt = date_parser.isoparse(str(raw).strip())
    except ValueError:
        return parse_match_date(raw, today), parse_match_time(raw)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    local = dt.astimezone(ZoneInfo(tz_name))
    return local.date().isoformat(), local.strftime("%H:%M")


def now_hhmm(tz_name: str) -> str:
    return datetime.now(ZoneInfo(tz_name)).strftime("%H:%M")
