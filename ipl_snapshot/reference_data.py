# ipl_snapshot/reference_data.py
"""
Bundled static snapshot served for any section no upstream could provide.

Built once at import. Dates are laid out relative to the day the process
started so the dashboard always has something "upcoming" to show.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from ipl_snapshot.config import INNINGS_OVERS, UPCOMING_MATCHES_LIMIT
from ipl_snapshot.cricket_math import notation_to_overs
from ipl_snapshot.models import (
    WICKET,
    Batsman,
    Bowler,
    CommentaryItem,
    LiveMatch,
    Match,
    MatchStatus,
    Over,
    PointsTableEntry,
    Score,
    Team,
    TournamentSnapshot,
)
from ipl_snapshot.normalizer import derive_run_rates
from ipl_snapshot.points_table import ScoringRules, build_entry
from ipl_snapshot.snapshot import assemble_snapshot
from ipl_snapshot.teams import DEFAULT_DIRECTORY, TeamDirectory

REFERENCE_SOURCE = "reference"
SCHEDULE_SIZE = 40


def _team(directory: TeamDirectory, team_id: str) -> Team:
    team = directory.get(team_id)
    if team is None:
        raise KeyError(f"Reference data refers to unknown team id: {team_id}")
    return team


def _upcoming(directory: TeamDirectory, today: date) -> List[Match]:
    fixtures = [
        ("csk", "mi", "19:30", "MA Chidambaram Stadium, Chennai"),
        ("rcb", "kkr", "15:30", "M.Chinnaswamy Stadium, Bengaluru"),
        ("dc", "pbks", "19:30", "Arun Jaitley Stadium, Delhi"),
        ("gt", "rr", "19:30", "Narendra Modi Stadium, Ahmedabad"),
        ("srh", "lsg", "15:30", "Rajiv Gandhi Intl. Stadium, Hyderabad"),
    ]
    out: List[Match] = []
    for i, (t1, t2, time, venue) in enumerate(fixtures):
        out.append(
            Match(
                id=f"match-{i + 1}",
                team1=_team(directory, t1),
                team2=_team(directory, t2),
                date=(today + timedelta(days=i)).isoformat(),
                time=time,
                venue=venue,
                status=MatchStatus.UPCOMING,
            )
        )
    return out


def _live(directory: TeamDirectory, today: date, innings_overs: int) -> LiveMatch:
    live = LiveMatch(
        id="live-match-1",
        team1=_team(directory, "kkr"),
        team2=_team(directory, "rcb"),
        date=today.isoformat(),
        time="19:30",
        venue="Eden Gardens, Kolkata",
        status=MatchStatus.LIVE,
        team1_score=Score(runs=187, wickets=6, overs=20.0),
        team2_score=Score(runs=156, wickets=4, overs=notation_to_overs("16.2")),
        current_batsmen=(
            Batsman(name="Virat Kohli", runs=73, balls=42, fours=8, sixes=3),
            Batsman(name="Glenn Maxwell", runs=24, balls=14, fours=2, sixes=2),
        ),
        current_bowler=Bowler(name="Andre Russell", overs=notation_to_overs("3.2"), maidens=0, runs=36, wickets=2),
        recent_overs=(
            Over(over_number=15, balls=(1, 4, 6, 0, 1, 1)),
            Over(over_number=16, balls=(4, 1, 0, WICKET, 2, 1)),
        ),
        commentary=(
            CommentaryItem(time="19:45", text="Kohli smashes a huge six over long-on!"),
            CommentaryItem(time="19:43", text="Russell gets the important wicket of Finch."),
            CommentaryItem(time="19:40", text="RCB need 32 runs from 22 balls with 6 wickets remaining."),
        ),
        last_wicket="Aaron Finch b Andre Russell 34(21)",
    )
    return derive_run_rates(live, innings_overs)


def _points_table(directory: TeamDirectory, rules: ScoringRules) -> List[PointsTableEntry]:
    rows = [
        ("gt", 14, 10, 4, 0.809),
        ("csk", 14, 9, 5, 0.652),
        ("srh", 14, 8, 6, 0.484),
        ("lsg", 14, 8, 6, 0.284),
        ("rcb", 14, 8, 6, 0.24),
        ("kkr", 14, 7, 7, 0.217),
        ("mi", 14, 6, 8, -0.212),
        ("dc", 14, 5, 9, -0.505),
        ("pbks", 14, 5, 9, -0.375),
        ("rr", 14, 4, 10, -1.01),
    ]
    return [
        build_entry(
            _team(directory, team_id),
            matches=matches,
            won=won,
            lost=lost,
            tied=0,
            points=None,
            net_run_rate=nrr,
            rules=rules,
            source=REFERENCE_SOURCE,
        )
        for team_id, matches, won, lost, nrr in rows
    ]


def _schedule(directory: TeamDirectory, today: date) -> List[Match]:
    # Round-robin over the roster: first three played, fourth live, rest upcoming
    roster = directory.teams
    out: List[Match] = []
    for i in range(SCHEDULE_SIZE):
        t1 = roster[i % len(roster)]
        t2 = roster[(i + 1) % len(roster)]
        if i < 3:
            status = MatchStatus.COMPLETED
        elif i == 3:
            status = MatchStatus.LIVE
        else:
            status = MatchStatus.UPCOMING
        out.append(
            Match(
                id=f"schedule-match-{i + 1}",
                team1=t1,
                team2=t2,
                date=(today + timedelta(days=min(i, 19))).isoformat(),
                time="15:30" if i % 2 == 0 else "19:30",
                venue=f"{t1.name} Stadium, {t1.name.split()[-1]}",
                status=status,
            )
        )
    return out


def build_reference_snapshot(
    today: Optional[date] = None,
    *,
    directory: TeamDirectory = DEFAULT_DIRECTORY,
    rules: Optional[ScoringRules] = None,
    innings_overs: int = INNINGS_OVERS,
    upcoming_limit: int = UPCOMING_MATCHES_LIMIT,
) -> TournamentSnapshot:
    today = today or date.today()
    rules = rules or ScoringRules.from_config()
    return assemble_snapshot(
        upcoming=_upcoming(directory, today),
        live_match=_live(directory, today, innings_overs),
        points_table=_points_table(directory, rules),
        schedule=_schedule(directory, today),
        roster=directory.teams,
        upcoming_limit=upcoming_limit,
    )


REFERENCE_SNAPSHOT: TournamentSnapshot = build_reference_snapshot()

