"""Tests for the CricAPI source with a fake HTTP client."""

from __future__ import annotations

import pytest

from conftest import TODAY, FakeHttp
from ipl_snapshot.cricapi_source import CricApiSource
from ipl_snapshot.errors import FetchFailed
from ipl_snapshot.models import MatchStatus
from ipl_snapshot.sources import Section

BASE = "https://api.cricapi.com/v1"

SERIES = {
    "status": "success",
    "data": [
        {"id": "ipl-2024", "name": "Indian Premier League 2024", "startDate": "2024-03-22"},
        {"id": "ipl-2025", "name": "Indian Premier League 2025", "startDate": "2025-03-22"},
    ],
}

SERIES_INFO = {
    "status": "success",
    "data": {
        "info": {"id": "ipl-2025", "name": "Indian Premier League 2025"},
        "matchList": [
            {
                "id": "m1",
                "name": "Kolkata Knight Riders vs Royal Challengers Bengaluru, 1st Match",
                "venue": "Eden Gardens, Kolkata",
                "dateTimeGMT": "2025-03-22T14:00:00",
                "teams": ["Kolkata Knight Riders", "Royal Challengers Bengaluru"],
                "status": "Royal Challengers Bengaluru won by 7 wkts",
                "matchStarted": True,
                "matchEnded": True,
            },
            {
                "id": "m19",
                "name": "Kolkata Knight Riders vs Royal Challengers Bengaluru, 19th Match",
                "venue": "Eden Gardens, Kolkata",
                "dateTimeGMT": "2025-04-10T14:00:00",
                "teamInfo": [
                    {"name": "Royal Challengers Bengaluru", "shortname": "RCB"},
                    {"name": "Kolkata Knight Riders", "shortname": "KKR"},
                ],
                "status": "Royal Challengers Bengaluru need 32 runs",
                "matchStarted": True,
                "matchEnded": False,
            },
            {
                "id": "m21",
                "name": "Mumbai Indians vs Chennai Super Kings, 21st Match",
                "venue": "Wankhede Stadium, Mumbai",
                "dateTimeGMT": "2025-04-12T14:00:00",
                "teams": ["Mumbai Indians", "Chennai Super Kings"],
                "status": "Match not started",
                "matchStarted": False,
                "matchEnded": False,
            },
            {
                "id": "m20",
                "name": "Gujarat Titans vs Tbc",
                "dateTimeGMT": "2025-04-11T10:00:00",
                "teams": ["Gujarat Titans", "Lucknow Super Giants"],
                "matchStarted": False,
                "matchEnded": False,
            },
            {"id": "broken", "teams": ["Only One"]},
        ],
    },
}

MATCH_INFO = {
    "status": "success",
    "data": {
        "id": "m19",
        "name": "Kolkata Knight Riders vs Royal Challengers Bengaluru, 19th Match",
        "venue": "Eden Gardens, Kolkata",
        "dateTimeGMT": "2025-04-10T14:00:00",
        "teamInfo": [
            {"name": "Royal Challengers Bengaluru", "shortname": "RCB"},
            {"name": "Kolkata Knight Riders", "shortname": "KKR"},
        ],
        "score": [
            {"r": 187, "w": 6, "o": 20, "inning": "Kolkata Knight Riders Inning 1"},
            {"r": 156, "w": 4, "o": 16.2, "inning": "Royal Challengers Bengaluru Inning 1"},
        ],
    },
}


def _route(series=SERIES, series_info=SERIES_INFO, match_info=MATCH_INFO) -> FakeHttp:
    return FakeHttp(
        json={
            f"{BASE}/series": series,
            f"{BASE}/series_info": series_info,
            f"{BASE}/match_info": match_info,
        }
    )


def _source(http: FakeHttp, **kwargs) -> CricApiSource:
    kwargs.setdefault("enabled", True)
    kwargs.setdefault("api_key", "test-key")
    return CricApiSource(base_url=BASE, http=http, today=lambda: TODAY, **kwargs)


class TestDisabled:
    """Tests for the disabled/unconfigured paths."""

    def test_disabled_makes_no_calls(self):
        http = _route()
        result = _source(http, enabled=False).fetch_snapshot()
        assert result.partial.is_empty()
        assert isinstance(result.error, FetchFailed)
        assert http.calls == []

    def test_missing_key(self):
        result = _source(_route(), api_key="").fetch_snapshot()
        assert result.partial.is_empty()
        assert "CRICAPI_API_KEY" in str(result.error)


class TestFetchSnapshot:
    """Tests for the happy path."""

    def test_sections(self):
        http = _route()
        result = _source(http).fetch_snapshot()

        assert result.errors == []
        assert not result.partial.has(Section.POINTS_TABLE)

        schedule = result.partial.get(Section.SCHEDULE)
        assert [m.id for m in schedule] == ["m1", "m19", "m21", "m20"]
        assert schedule[0].status == MatchStatus.COMPLETED
        assert schedule[0].result == "Royal Challengers Bengaluru won by 7 wkts"
        assert schedule[0].date == "2025-03-22"
        assert schedule[0].time == "19:30"
        assert schedule[2].result is None

        upcoming = result.partial.get(Section.UPCOMING)
        assert [m.id for m in upcoming] == ["m20", "m21"]

    def test_series_search_picks_latest(self):
        http = _route()
        _source(http).fetch_snapshot()
        series_info_call = [p for url, p in http.calls if url.endswith("/series_info")][0]
        assert series_info_call["id"] == "ipl-2025"
        assert series_info_call["apikey"] == "test-key"

    def test_configured_series_skips_search(self):
        http = _route()
        _source(http, series_id="fixed").fetch_snapshot()
        assert not any(url.endswith("/series") for url, _ in http.calls)

    def test_live_match_batting_order(self):
        live = _source(_route()).fetch_snapshot().partial.get(Section.LIVE_MATCH)
        # teamInfo lists RCB first, but KKR batted first
        assert live.team1.id == "kkr"
        assert live.team2.id == "rcb"
        assert live.team1_score.runs == 187
        assert live.team2_score.overs == pytest.approx(16 + 2 / 6)
        assert live.required_run_rate == pytest.approx(8.727, abs=1e-3)
        assert live.time == "19:30"

    def test_no_live_match(self):
        info = {"status": "success", "data": {"matchList": [SERIES_INFO["data"]["matchList"][2]]}}
        result = _source(_route(series_info=info)).fetch_snapshot()
        assert result.partial.has(Section.LIVE_MATCH)
        assert result.partial.get(Section.LIVE_MATCH) is None

    def test_live_detail_failure_keeps_schedule(self):
        bad = {"status": "failure", "reason": "hits today exceeded"}
        result = _source(_route(match_info=bad)).fetch_snapshot()
        assert result.partial.has(Section.SCHEDULE)
        assert not result.partial.has(Section.LIVE_MATCH)
        assert "hits today exceeded" in str(result.error)

    def test_api_failure(self):
        bad = {"status": "failure", "reason": "invalid api key"}
        result = _source(_route(series=bad)).fetch_snapshot()
        assert result.partial.is_empty()
        assert "invalid api key" in str(result.error)
