# ipl_snapshot/snapshot.py
from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence, Tuple

from ipl_snapshot.config import UPCOMING_MATCHES_LIMIT
from ipl_snapshot.models import LiveMatch, Match, MatchStatus, PointsTableEntry, Team, TournamentSnapshot
from ipl_snapshot.points_table import rank_points_table
from ipl_snapshot.teams import DEFAULT_DIRECTORY


def select_upcoming(matches: Iterable[Match], limit: int = UPCOMING_MATCHES_LIMIT) -> Tuple[Match, ...]:
    """Soonest first (date, then time), at most `limit`."""
    return tuple(sorted(matches, key=lambda m: m.sort_key())[:limit])


def derive_upcoming(schedule: Iterable[Match], limit: int = UPCOMING_MATCHES_LIMIT) -> Tuple[Match, ...]:
    return select_upcoming((m for m in schedule if m.status == MatchStatus.UPCOMING), limit)


def collect_teams(base: Iterable[Team], snapshot: TournamentSnapshot) -> Tuple[Team, ...]:
    """Roster first, then any other team the snapshot references; dedup by id, first wins."""
    seen: Dict[str, Team] = {}
    for team in base:
        seen.setdefault(team.id, team)
    for team in snapshot.referenced_teams():
        seen.setdefault(team.id, team)
    return tuple(seen.values())


def assemble_snapshot(
    *,
    upcoming: Sequence[Match],
    live_match: Optional[LiveMatch],
    points_table: Sequence[PointsTableEntry],
    schedule: Sequence[Match],
    roster: Iterable[Team] = DEFAULT_DIRECTORY.teams,
    upcoming_limit: int = UPCOMING_MATCHES_LIMIT,
) -> TournamentSnapshot:
    """
    Final shape handed to callers: ranked table, trimmed upcoming list and a
    team set covering every referenced team.
    """
    draft = TournamentSnapshot(
        teams=(),
        upcoming_matches=select_upcoming(upcoming, upcoming_limit),
        live_match=live_match,
        points_table=rank_points_table(points_table),
        complete_schedule=tuple(schedule),
    )
    return TournamentSnapshot(
        teams=collect_teams(roster, draft),
        upcoming_matches=draft.upcoming_matches,
        live_match=draft.live_match,
        points_table=draft.points_table,
        complete_schedule=draft.complete_schedule,
    )
