# ipl_snapshot/points_table.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ipl_snapshot.config import POINTS_PER_TIE, POINTS_PER_WIN
from ipl_snapshot.logging import logger
from ipl_snapshot.models import PointsTableEntry, Team


@dataclass(frozen=True)
class ScoringRules:
    """League scoring: points = win * won + tie * tied."""
    win: int = 2
    tie: int = 1

    @classmethod
    def from_config(cls) -> "ScoringRules":
        return cls(win=POINTS_PER_WIN, tie=POINTS_PER_TIE)

    def points_for(self, won: int, tied: int) -> int:
        return self.win * won + self.tie * tied


def rank_points_table(entries: Iterable[PointsTableEntry]) -> Tuple[PointsTableEntry, ...]:
    """
    Returns points table sorted by:
    1) Points (desc)
    2) NRR (desc)
    """
    return tuple(sorted(entries, key=lambda e: e.ranking_key()))


def build_entry(
    team: Team,
    *,
    matches: int,
    won: int,
    lost: int,
    tied: Optional[int],
    points: Optional[int],
    net_run_rate: float,
    rules: ScoringRules,
    source: str = "",
) -> PointsTableEntry:
    """
    Tied defaults to 0 when the table has no tied column. Missing points are
    computed from the rules; present points that disagree are kept and logged.
    """
    tied_i = tied if tied is not None else 0
    expected = rules.points_for(won, tied_i)

    if points is None:
        points = expected
    elif points != expected:
        logger.warning(
            "points_mismatch",
            source=source,
            team=team.id,
            points=points,
            expected=expected,
            won=won,
            tied=tied_i,
        )

    return PointsTableEntry(
        team=team,
        matches=matches,
        won=won,
        lost=lost,
        tied=tied_i,
        points=points,
        net_run_rate=net_run_rate,
    )

