# ipl_snapshot/live_score_api.py
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Optional

from ipl_snapshot.config import (
    INNINGS_OVERS,
    LIVE_SCORE_API_BASE_URL,
    LIVE_SCORE_API_TIMEOUT_SECONDS,
    MATCH_TIMEZONE,
)
from ipl_snapshot.errors import ParseFailed
from ipl_snapshot.http_client import HttpClient
from ipl_snapshot.logging import logger
from ipl_snapshot.models import CommentaryItem, LiveMatch, MatchStatus
from ipl_snapshot.normalizer import derive_run_rates, now_hhmm, parse_score
from ipl_snapshot.sources import Section, SnapshotSource, SourceResult
from ipl_snapshot.teams import DEFAULT_DIRECTORY, TeamDirectory

SOURCE_NAME = "live_score_api"

IPL_TITLE_MARKERS = ("IPL", "Indian Premier League")


def is_ipl_title(title: Optional[str]) -> bool:
    if not title:
        return False
    return any(marker in title for marker in IPL_TITLE_MARKERS)


class LiveScoreApiSource(SnapshotSource):
    """
    Community live-score API. It only knows about "the current match", so the
    only section it can produce is the live match, and only for IPL games.
    """

    def __init__(
        self,
        base_url: str = LIVE_SCORE_API_BASE_URL,
        *,
        http: Optional[HttpClient] = None,
        timeout: float = LIVE_SCORE_API_TIMEOUT_SECONDS,
        directory: TeamDirectory = DEFAULT_DIRECTORY,
        innings_overs: int = INNINGS_OVERS,
        tz_name: str = MATCH_TIMEZONE,
        today: Optional[Callable[[], date]] = None,
        clock: Optional[Callable[[], str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.http = http or HttpClient(SOURCE_NAME, timeout)
        self.directory = directory
        self.innings_overs = innings_overs
        self.tz_name = tz_name
        self._today = today or date.today
        self._clock = clock or (lambda: now_hhmm(self.tz_name))

    @property
    def name(self) -> str:
        return SOURCE_NAME

    def live_match_from_payload(self, data: Dict[str, Any]) -> Optional[LiveMatch]:
        """
        None when the current match is not an IPL game (the live section stays
        unknown rather than "no live match").
        """
        if not is_ipl_title(data.get("title")):
            logger.debug("live_score_not_ipl", source=self.name, title=data.get("title"))
            return None

        names = [n.strip() for n in str(data.get("teams") or "").split(" vs ") if n.strip()]
        if len(names) != 2:
            raise ParseFailed("teams", data.get("teams"))

        team1 = self.directory.canonicalize(names[0])
        team2 = self.directory.canonicalize(names[1])

        lines = [ln for ln in str(data.get("score") or "").split("\n") if ln.strip()]
        team1_score = parse_score(lines[0]) if len(lines) >= 1 else None
        team2_score = parse_score(lines[1]) if len(lines) >= 2 else None

        now = self._clock()
        update = str(data.get("update") or "").strip()
        commentary = (CommentaryItem(time=now, text=update),) if update else None

        match_date = self._today().isoformat()
        live = LiveMatch(
            id=f"{match_date}-{team1.id}-{team2.id}",
            team1=team1,
            team2=team2,
            date=match_date,
            time=now,
            venue=str(data.get("venue") or "Unknown Venue").strip(),
            status=MatchStatus.LIVE,
            team1_score=team1_score,
            team2_score=team2_score,
            commentary=commentary,
        )
        return derive_run_rates(live, self.innings_overs)

    def fetch_snapshot(self) -> SourceResult:
        result = SourceResult(source=self.name)

        def live() -> None:
            url = f"{self.base_url}/score"
            data = self.http.get_json(url, params={"id": "current"})
            if not isinstance(data, dict) or data.get("error"):
                raise ParseFailed("score", data)
            result.partial.put(Section.LIVE_MATCH, self.live_match_from_payload(data))

        self._run_section(result, Section.LIVE_MATCH.value, live)

        logger.info(
            "source_fetched",
            source=self.name,
            sections=[s.value for s in result.partial.sections],
            errors=len(result.errors),
        )
        return result
