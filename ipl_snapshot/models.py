from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from ipl_snapshot.cricket_math import BALLS_PER_OVER


# -----------------------------
# Match status semantics
# -----------------------------
class MatchStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"


# Ball outcomes in an over: runs off the bat (0-6) or one of the markers below
WICKET = "W"
WIDE = "WD"
NO_BALL = "NB"
BallOutcome = Union[int, str]

MAX_WICKETS = 10


def slugify(name: str) -> str:
    """
    Stable lowercase id for a team name:
      "Test XI" -> "test-xi"
      "Royal Challengers Bengaluru" -> "royal-challengers-bengaluru"
    """
    s = str(name or "").strip().lower()
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"[^a-z0-9-]", "", s)
    s = re.sub(r"-{2,}", "-", s).strip("-")
    return s


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


# -----------------------------
# Teams + scores
# -----------------------------
@dataclass(frozen=True)
class Team:
    id: str
    name: str
    short_name: str
    logo: Optional[str] = None
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "shortName": self.short_name,
            "logo": self.logo,
            "color": self.color,
        })


@dataclass(frozen=True)
class Score:
    """
    Innings score. `overs` is completed overs + balls/6, so "16.2 ov" is 16.333...
    """
    runs: int
    wickets: int
    overs: float

    def __post_init__(self) -> None:
        if self.runs < 0:
            raise ValueError(f"runs cannot be negative: {self.runs}")
        if self.wickets < 0 or self.wickets > MAX_WICKETS:
            raise ValueError(f"wickets must be 0-{MAX_WICKETS}: {self.wickets}")
        if self.overs < 0:
            raise ValueError(f"overs cannot be negative: {self.overs}")

    @classmethod
    def from_balls(cls, runs: int, wickets: int, balls: int) -> "Score":
        return cls(runs=runs, wickets=wickets, overs=balls / BALLS_PER_OVER)

    def overs_as_balls(self) -> int:
        return int(round(self.overs * BALLS_PER_OVER))

    @property
    def all_out(self) -> bool:
        return self.wickets >= MAX_WICKETS

    def to_dict(self) -> Dict[str, Any]:
        return {"runs": self.runs, "wickets": self.wickets, "overs": self.overs}


# -----------------------------
# Live-match detail
# -----------------------------
@dataclass(frozen=True)
class Batsman:
    name: str
    runs: int
    balls: int
    fours: int = 0
    sixes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "runs": self.runs,
            "balls": self.balls,
            "fours": self.fours,
            "sixes": self.sixes,
        }


@dataclass(frozen=True)
class Bowler:
    name: str
    overs: float
    maidens: int
    runs: int
    wickets: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "overs": self.overs,
            "maidens": self.maidens,
            "runs": self.runs,
            "wickets": self.wickets,
        }


@dataclass(frozen=True)
class Over:
    over_number: int
    balls: Tuple[BallOutcome, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"over": self.over_number, "runs": list(self.balls)}


@dataclass(frozen=True)
class CommentaryItem:
    time: str
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "text": self.text}


# -----------------------------
# Matches
# -----------------------------
@dataclass(frozen=True)
class Match:
    id: str
    team1: Team
    team2: Team
    date: str  # ISO-8601 date
    time: str  # "HH:MM" 24h
    venue: str
    status: MatchStatus
    result: Optional[str] = None

    def teams(self) -> Tuple[Team, Team]:
        return self.team1, self.team2

    def sort_key(self) -> Tuple[str, str, str]:
        return self.date, self.time, self.id

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "team1": self.team1.to_dict(),
            "team2": self.team2.to_dict(),
            "date": self.date,
            "time": self.time,
            "venue": self.venue,
            "status": self.status.value,
            "result": self.result,
        })


@dataclass(frozen=True)
class LiveMatch(Match):
    team1_score: Optional[Score] = None
    team2_score: Optional[Score] = None
    current_batsmen: Optional[Tuple[Batsman, ...]] = None  # striker first, at most 2
    current_bowler: Optional[Bowler] = None
    recent_overs: Optional[Tuple[Over, ...]] = None
    commentary: Optional[Tuple[CommentaryItem, ...]] = None  # newest first
    current_run_rate: Optional[float] = None
    required_run_rate: Optional[float] = None
    last_wicket: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out.update(_drop_none({
            "team1Score": self.team1_score.to_dict() if self.team1_score else None,
            "team2Score": self.team2_score.to_dict() if self.team2_score else None,
            "currentBatsmen": [b.to_dict() for b in self.current_batsmen] if self.current_batsmen else None,
            "currentBowler": self.current_bowler.to_dict() if self.current_bowler else None,
            "recentOvers": [o.to_dict() for o in self.recent_overs] if self.recent_overs else None,
            "commentary": [c.to_dict() for c in self.commentary] if self.commentary else None,
            "currentRunRate": self.current_run_rate,
            "requiredRunRate": self.required_run_rate,
            "lastWicket": self.last_wicket,
        }))
        return out


# -----------------------------
# Points table
# -----------------------------
@dataclass(frozen=True)
class PointsTableEntry:
    team: Team
    matches: int
    won: int
    lost: int
    tied: int
    points: int
    net_run_rate: float

    def ranking_key(self) -> Tuple[int, float, str]:
        # Points desc, NRR desc, then team id for a deterministic order
        return -self.points, -self.net_run_rate, self.team.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team": self.team.to_dict(),
            "matches": self.matches,
            "won": self.won,
            "lost": self.lost,
            "tied": self.tied,
            "points": self.points,
            "netRunRate": self.net_run_rate,
        }


# -----------------------------
# Aggregate snapshot
# -----------------------------
@dataclass(frozen=True)
class TournamentSnapshot:
    teams: Tuple[Team, ...]
    upcoming_matches: Tuple[Match, ...]
    live_match: Optional[LiveMatch]
    points_table: Tuple[PointsTableEntry, ...]
    complete_schedule: Tuple[Match, ...]

    def referenced_teams(self) -> Iterator[Team]:
        for entry in self.points_table:
            yield entry.team
        for m in self.complete_schedule:
            yield from m.teams()
        for m in self.upcoming_matches:
            yield from m.teams()
        if self.live_match is not None:
            yield from self.live_match.teams()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teams": [t.to_dict() for t in self.teams],
            "upcomingMatches": [m.to_dict() for m in self.upcoming_matches],
            "liveMatch": self.live_match.to_dict() if self.live_match else None,
            "pointsTable": [e.to_dict() for e in self.points_table],
            "completeSchedule": [m.to_dict() for m in self.complete_schedule],
        }
