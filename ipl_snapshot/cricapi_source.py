# ipl_snapshot/cricapi_source.py
from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from ipl_snapshot.config import (
    CRICAPI_API_KEY,
    CRICAPI_BASE_URL,
    CRICAPI_ENABLED,
    CRICAPI_SERIES_ID,
    CRICAPI_SERIES_SEARCH,
    CRICAPI_TIMEOUT_SECONDS,
    INNINGS_OVERS,
    MATCH_TIMEZONE,
)
from ipl_snapshot.cricket_math import notation_to_balls
from ipl_snapshot.errors import FetchFailed, ParseFailed
from ipl_snapshot.http_client import HttpClient
from ipl_snapshot.logging import logger
from ipl_snapshot.models import LiveMatch, Match, MatchStatus, Score, Team
from ipl_snapshot.normalizer import derive_run_rates, localize_timestamp, parse_score
from ipl_snapshot.sources import Section, SnapshotSource, SourceResult
from ipl_snapshot.teams import DEFAULT_DIRECTORY, TeamDirectory

SOURCE_NAME = "cricapi"


def _team_names(item: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    info = item.get("teamInfo")
    if isinstance(info, list) and len(info) >= 2:
        a = str((info[0] or {}).get("name") or "").strip()
        b = str((info[1] or {}).get("name") or "").strip()
        if a and b:
            return a, b

    teams = item.get("teams")
    if isinstance(teams, list) and len(teams) >= 2:
        a = str(teams[0] or "").strip()
        b = str(teams[1] or "").strip()
        if a and b:
            return a, b

    return None


def _status(item: Dict[str, Any]) -> MatchStatus:
    if item.get("matchEnded"):
        return MatchStatus.COMPLETED
    if item.get("matchStarted"):
        return MatchStatus.LIVE
    return MatchStatus.UPCOMING


def _score_entry(entry: Dict[str, Any]) -> Optional[Score]:
    """
    Score rows come as {"r": 156, "w": 4, "o": 16.2, "inning": "... Inning 1"};
    older payloads put the whole "156/4 (16.2 ov)" string in "r".
    """
    r, w, o = entry.get("r"), entry.get("w"), entry.get("o")
    if isinstance(r, str) and "/" in r:
        return parse_score(r)
    try:
        balls = notation_to_balls(o)
        return Score.from_balls(int(r), int(w), balls)
    except (TypeError, ValueError):
        return None


class CricApiSource(SnapshotSource):
    """
    CricketData (CricAPI) JSON API: schedule, upcoming matches and live match.
    The API has no points table, so that section is never produced here.
    """

    def __init__(
        self,
        api_key: str = CRICAPI_API_KEY,
        base_url: str = CRICAPI_BASE_URL,
        *,
        enabled: bool = CRICAPI_ENABLED,
        series_id: str = CRICAPI_SERIES_ID,
        series_search: str = CRICAPI_SERIES_SEARCH,
        http: Optional[HttpClient] = None,
        timeout: float = CRICAPI_TIMEOUT_SECONDS,
        directory: TeamDirectory = DEFAULT_DIRECTORY,
        innings_overs: int = INNINGS_OVERS,
        tz_name: str = MATCH_TIMEZONE,
        today: Optional[Callable[[], date]] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.enabled = enabled
        self.series_id = series_id
        self.series_search = series_search
        self.http = http or HttpClient(SOURCE_NAME, timeout)
        self.directory = directory
        self.innings_overs = innings_overs
        self.tz_name = tz_name
        self._today = today or date.today

    @property
    def name(self) -> str:
        return SOURCE_NAME

    # -----------------------
    # Transport
    # -----------------------
    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self.enabled:
            raise FetchFailed("CricAPI is disabled (set CRICAPI_ENABLED=1 to enable)", source=self.name)
        if not self.api_key:
            raise FetchFailed("CRICAPI_API_KEY is not configured", source=self.name)

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        query = dict(params or {})
        query["apikey"] = self.api_key

        data = self.http.get_json(url, params=query)
        if not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("reason") or data.get("message") if isinstance(data, dict) else None
            raise FetchFailed(message or "Unknown API error", source=self.name, url=url)

        return data.get("data")

    def resolve_series_id(self) -> str:
        if self.series_id:
            return self.series_id

        found = self.get_json("series", {"offset": 0, "search": self.series_search})
        if not isinstance(found, list) or not found:
            raise ParseFailed("series", self.series_search)

        # Most recent season first
        found = sorted(found, key=lambda s: str(s.get("startDate") or ""), reverse=True)
        series_id = str(found[0].get("id") or "")
        if not series_id:
            raise ParseFailed("series", found[0])
        return series_id

    # -----------------------
    # Normalization
    # -----------------------
    def _match_from_item(self, item: Dict[str, Any], today: date) -> Optional[Match]:
        names = _team_names(item)
        if not names:
            return None

        team1 = self.directory.canonicalize(names[0])
        team2 = self.directory.canonicalize(names[1])
        match_date, match_time = localize_timestamp(item.get("dateTimeGMT"), self.tz_name, today)
        status = _status(item)
        result = str(item.get("status") or "").strip() if status == MatchStatus.COMPLETED else ""

        return Match(
            id=str(item.get("id") or f"{match_date}-{team1.id}-{team2.id}"),
            team1=team1,
            team2=team2,
            date=match_date,
            time=match_time,
            venue=str(item.get("venue") or "TBA").strip(),
            status=status,
            result=result or None,
        )

    def _innings_scores(self, info: Dict[str, Any], names: Tuple[str, str]) -> List[Tuple[int, Score]]:
        """[(team index 0/1, score)] in innings order."""
        out: List[Tuple[int, Score]] = []
        for entry in info.get("score") or []:
            if not isinstance(entry, dict):
                continue
            inning = str(entry.get("inning") or "").casefold()
            idx = None
            for i, n in enumerate(names):
                if n.casefold() in inning:
                    idx = i
                    break
            score = _score_entry(entry)
            if idx is None or score is None:
                logger.debug("score_entry_skipped", source=self.name, inning=entry.get("inning"))
                continue
            out.append((idx, score))
        return out

    def live_match_from_info(self, info: Dict[str, Any], today: date) -> LiveMatch:
        names = _team_names(info)
        if not names:
            raise ParseFailed("live_match", info.get("name"))

        innings = self._innings_scores(info, names)
        # team1 is whoever batted first
        if innings and innings[0][0] == 1:
            names = (names[1], names[0])
            innings = [(1 - idx, s) for idx, s in innings]

        scores: Dict[int, Score] = {}
        for idx, s in innings:
            scores[idx] = s  # latest innings per team

        team1: Team = self.directory.canonicalize(names[0])
        team2: Team = self.directory.canonicalize(names[1])
        match_date, match_time = localize_timestamp(info.get("dateTimeGMT"), self.tz_name, today)

        live = LiveMatch(
            id=str(info.get("id") or f"{match_date}-{team1.id}-{team2.id}"),
            team1=team1,
            team2=team2,
            date=match_date,
            time=match_time,
            venue=str(info.get("venue") or "TBA").strip(),
            status=MatchStatus.LIVE,
            team1_score=scores.get(0),
            team2_score=scores.get(1),
        )
        return derive_run_rates(live, self.innings_overs)

    # -----------------------
    # Source
    # -----------------------
    def fetch_snapshot(self) -> SourceResult:
        result = SourceResult(source=self.name)
        partial = result.partial
        today = self._today()

        def collect() -> None:
            series_id = self.resolve_series_id()
            data = self.get_json("series_info", {"id": series_id})
            match_list = (data or {}).get("matchList") if isinstance(data, dict) else None
            if not isinstance(match_list, list) or not match_list:
                raise ParseFailed("matchList", series_id)

            schedule: List[Match] = []
            live_id: Optional[str] = None
            for item in match_list:
                if not isinstance(item, dict):
                    continue
                try:
                    m = self._match_from_item(item, today)
                except ParseFailed as e:
                    logger.debug("match_item_skipped", source=self.name, error=str(e))
                    continue
                if m is None:
                    continue
                schedule.append(m)
                if live_id is None and m.status == MatchStatus.LIVE:
                    live_id = m.id

            partial.put(Section.SCHEDULE, schedule)
            partial.put(
                Section.UPCOMING,
                sorted((m for m in schedule if m.status == MatchStatus.UPCOMING), key=lambda m: m.sort_key()),
            )

            if live_id is None:
                partial.confirm_no_live_match()
                return

            self._run_section(result, Section.LIVE_MATCH.value, lambda: live(live_id))

        def live(match_id: str) -> None:
            info = self.get_json("match_info", {"id": match_id})
            if not isinstance(info, dict):
                raise ParseFailed("match_info", match_id)
            partial.put(Section.LIVE_MATCH, self.live_match_from_info(info, today))

        self._run_section(result, Section.SCHEDULE.value, collect)

        logger.info(
            "source_fetched",
            source=self.name,
            sections=[s.value for s in partial.sections],
            errors=len(result.errors),
        )
        return result
