"""Tests for the community live-score source."""

from __future__ import annotations

import pytest

from conftest import TODAY, FakeHttp
from ipl_snapshot.errors import FetchFailed
from ipl_snapshot.live_score_api import LiveScoreApiSource, is_ipl_title
from ipl_snapshot.sources import Section

BASE = "https://cricket-api-production.up.railway.app"

IPL_PAYLOAD = {
    "title": "Kolkata Knight Riders vs Royal Challengers Bengaluru, 19th Match - Live Cricket Score, IPL 2025",
    "teams": "Kolkata Knight Riders vs Royal Challengers Bengaluru",
    "score": "187/6 (20 ov)\n156/4 (16.2 ov)",
    "update": "Royal Challengers Bengaluru need 32 runs in 22 balls",
    "venue": "Eden Gardens, Kolkata",
}


def _source(payload) -> LiveScoreApiSource:
    http = FakeHttp(json={f"{BASE}/score": payload})
    return LiveScoreApiSource(BASE, http=http, today=lambda: TODAY, clock=lambda: "20:15")


class TestIsIplTitle:
    """Tests for is_ipl_title."""

    def test_markers(self):
        assert is_ipl_title("MI vs CSK, IPL 2025")
        assert is_ipl_title("Indian Premier League, 2025")
        assert not is_ipl_title("England vs India, 2nd Test")
        assert not is_ipl_title(None)


class TestFetchSnapshot:
    """Tests for LiveScoreApiSource.fetch_snapshot."""

    def test_ipl_live_match(self):
        result = _source(IPL_PAYLOAD).fetch_snapshot()
        assert list(result.partial.sections) == [Section.LIVE_MATCH]

        live = result.partial.get(Section.LIVE_MATCH)
        assert live.id == "2025-04-10-kkr-rcb"
        assert (live.team1.id, live.team2.id) == ("kkr", "rcb")
        assert live.time == "20:15"
        assert live.venue == "Eden Gardens, Kolkata"
        assert live.team2_score.overs == pytest.approx(16 + 2 / 6)
        assert live.required_run_rate == pytest.approx(8.727, abs=1e-3)
        assert [(c.time, c.text) for c in live.commentary] == [("20:15", IPL_PAYLOAD["update"])]

    def test_non_ipl_match_leaves_section_unknown(self):
        payload = dict(IPL_PAYLOAD, title="England vs India, 2nd Test")
        result = _source(payload).fetch_snapshot()
        assert not result.partial.has(Section.LIVE_MATCH)
        assert result.errors == []

    def test_first_innings_only(self):
        payload = dict(IPL_PAYLOAD, score="45/1 (5.3 ov)", update="")
        live = _source(payload).fetch_snapshot().partial.get(Section.LIVE_MATCH)
        assert live.team2_score is None
        assert live.current_run_rate == pytest.approx(45 / 5.5)
        assert live.commentary is None

    def test_bad_teams(self):
        result = _source(dict(IPL_PAYLOAD, teams="Kolkata Knight Riders")).fetch_snapshot()
        assert result.partial.is_empty()
        assert result.error is not None

    def test_error_payload(self):
        result = _source({"error": "No live match"}).fetch_snapshot()
        assert result.partial.is_empty()
        assert result.error is not None

    def test_network_failure(self):
        http = FakeHttp(json={f"{BASE}/score": FetchFailed("Network error", source="live_score_api")})
        result = LiveScoreApiSource(BASE, http=http).fetch_snapshot()
        assert isinstance(result.error, FetchFailed)
