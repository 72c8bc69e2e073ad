"""Tests for the official-site scraper against fixture HTML."""

from __future__ import annotations

import threading

import pytest

from conftest import TODAY, FakeHttp
from ipl_snapshot.errors import FetchFailed
from ipl_snapshot.iplt20_scraper import (
    Iplt20Source,
    parse_live_match,
    parse_match_cards,
)
from ipl_snapshot.models import WICKET, WIDE, MatchStatus
from ipl_snapshot.orchestrator import SnapshotOrchestrator
from ipl_snapshot.sources import Section
from test_points_table import POINTS_HTML

BASE = "https://www.iplt20.com"

FIXTURES_HTML = """
<div class="fixtures">
  <div class="match-card" data-match-id="ipl-2025-21">
    <div class="match-card__date">Saturday, April 12, 2025</div>
    <div class="match-card__time">7:30 PM IST</div>
    <div class="match-card__venue">Wankhede Stadium, Mumbai</div>
    <div class="match-card__team-1"><span class="match-card__team-name">Mumbai Indians</span></div>
    <div class="match-card__team-2"><span class="match-card__team-name">Chennai Super Kings</span></div>
  </div>
  <div class="match-card" data-match-id="ipl-2025-20">
    <div class="match-card__date">Friday, April 11, 2025</div>
    <div class="match-card__time">3:30 PM IST</div>
    <div class="match-card__venue">Eden Gardens, Kolkata</div>
    <div class="match-card__team-1"><span class="match-card__team-name">Kolkata Knight Riders</span></div>
    <div class="match-card__team-2"><span class="match-card__team-name">Test XI</span></div>
  </div>
  <div class="match-card">
    <div class="match-card__date">TBC</div>
    <div class="match-card__team-1"><span class="match-card__team-name">Punjab Kings</span></div>
  </div>
</div>
"""

RESULTS_HTML = """
<div class="results">
  <div class="match-card match-card--complete" data-match-id="ipl-2025-01">
    <div class="match-card__date">March 22, 2025</div>
    <div class="match-card__time">7:30 PM</div>
    <div class="match-card__venue">Eden Gardens, Kolkata</div>
    <div class="match-card__team-1"><span class="match-card__team-name">KKR</span></div>
    <div class="match-card__team-2"><span class="match-card__team-name">Royal Challengers Bengaluru</span></div>
    <div class="match-card__result">RCB won by 7 wickets</div>
  </div>
</div>
"""

LIVE_HTML = """
<html><body>
  <div class="match-card match-card--live" data-match-id="ipl-2025-19">
    <div class="match-card__date">April 10, 2025</div>
    <div class="match-card__time">7:30 PM IST</div>
    <div class="match-card__venue">Eden Gardens, Kolkata</div>
    <div class="match-card__team-1">
      <span class="match-card__team-name">Kolkata Knight Riders</span>
      <span class="match-card__score">187/6 (20 ov)</span>
    </div>
    <div class="match-card__team-2">
      <span class="match-card__team-name">Royal Challengers Bengaluru</span>
      <span class="match-card__score">156/4 (16.2 ov)</span>
    </div>
  </div>
  <div class="batter-card">
    <span class="player-name">Virat Kohli</span><span class="runs">73</span><span class="balls-faced">42</span>
    <span class="fours">8</span><span class="sixes">3</span>
  </div>
  <div class="batter-card">
    <span class="player-name">Glenn Maxwell</span><span class="runs">24</span><span class="balls-faced">14</span>
    <span class="fours">2</span><span class="sixes">2</span>
  </div>
  <div class="batter-card">
    <span class="player-name">Extra Row</span><span class="runs">0</span><span class="balls-faced">0</span>
  </div>
  <div class="bowler-card">
    <span class="player-name">Andre Russell</span><span class="overs">3.2</span><span class="maidens">0</span>
    <span class="runs-conceded">36</span><span class="wickets">2</span>
  </div>
  <div class="recent-overs">
    <div class="over"><span class="over-number">16</span><span class="ball">4</span><span class="ball">1</span>
      <span class="ball">W</span><span class="ball">1wd</span></div>
    <div class="over"><span class="over-number">15</span><span class="ball">1</span><span class="ball">6</span></div>
    <div class="over"><span class="over-number">14</span><span class="ball">0</span></div>
    <div class="over"><span class="over-number">13</span><span class="ball">2</span></div>
  </div>
  <ul class="commentary-list">
    <li class="commentary-item"><span class="commentary-time">19:45</span><span class="commentary-text">Kohli smashes a six!</span></li>
    <li class="commentary-item"><span class="commentary-time">19:43</span><span class="commentary-text">Wicket!</span></li>
  </ul>
  <div class="last-wicket">Aaron Finch b Andre Russell 34(21)</div>
</body></html>
"""

HOME_NO_LIVE_HTML = "<html><body><div class='match-card'>nothing live</div></body></html>"


def _site(**overrides) -> FakeHttp:
    pages = {
        f"{BASE}/points-table/men/2025": POINTS_HTML,
        f"{BASE}/matches/fixtures": FIXTURES_HTML,
        f"{BASE}/matches/results": RESULTS_HTML,
        f"{BASE}/": LIVE_HTML,
    }
    pages.update(overrides)
    return FakeHttp(text=pages)


def _source(http: FakeHttp) -> Iplt20Source:
    return Iplt20Source(BASE, 2025, http=http, today=lambda: TODAY)


class TestMatchCards:
    """Tests for parse_match_cards."""

    def test_fixtures(self):
        matches = parse_match_cards(FIXTURES_HTML, today=TODAY)
        assert len(matches) == 2
        mi_csk = matches[0]
        assert mi_csk.id == "ipl-2025-21"
        assert (mi_csk.team1.id, mi_csk.team2.id) == ("mi", "csk")
        assert mi_csk.date == "2025-04-12"
        assert mi_csk.time == "19:30"
        assert mi_csk.venue == "Wankhede Stadium, Mumbai"
        assert mi_csk.status == MatchStatus.UPCOMING
        assert matches[1].team2.id == "test-xi"

    def test_results(self):
        (match,) = parse_match_cards(RESULTS_HTML, ".match-card--complete", today=TODAY)
        assert match.status == MatchStatus.COMPLETED
        assert match.result == "RCB won by 7 wickets"
        assert match.team1.id == "kkr"

    def test_generated_id_without_attribute(self):
        html = FIXTURES_HTML.replace(' data-match-id="ipl-2025-21"', "")
        assert parse_match_cards(html, today=TODAY)[0].id == "2025-04-12-mi-csk"


class TestLiveMatch:
    """Tests for parse_live_match."""

    def test_live_card(self):
        live = parse_live_match(LIVE_HTML, today=TODAY)
        assert live.id == "ipl-2025-19"
        assert live.status == MatchStatus.LIVE
        assert live.team1_score.runs == 187
        assert live.team2_score.overs == pytest.approx(16 + 2 / 6)
        assert [b.name for b in live.current_batsmen] == ["Virat Kohli", "Glenn Maxwell"]
        assert live.current_bowler.overs == pytest.approx(3 + 2 / 6)
        assert [o.over_number for o in live.recent_overs] == [16, 15, 14]
        assert live.recent_overs[0].balls == (4, 1, WICKET, WIDE)
        assert live.commentary[0].text == "Kohli smashes a six!"
        assert live.last_wicket == "Aaron Finch b Andre Russell 34(21)"
        assert live.required_run_rate == pytest.approx(8.727, abs=1e-3)

    def test_no_live_card(self):
        assert parse_live_match(HOME_NO_LIVE_HTML, today=TODAY) is None


class TestIplt20Source:
    """Tests for Iplt20Source.fetch_snapshot."""

    def test_all_sections(self):
        result = _source(_site()).fetch_snapshot()
        assert result.partial.is_complete()
        assert result.errors == []

        schedule = result.partial.get(Section.SCHEDULE)
        assert [m.id for m in schedule] == ["ipl-2025-19", "ipl-2025-21", "ipl-2025-20", "ipl-2025-01"]

        upcoming = result.partial.get(Section.UPCOMING)
        assert [m.id for m in upcoming] == ["ipl-2025-20", "ipl-2025-21"]

    def test_points_page_down_keeps_other_sections(self):
        http = _site(**{f"{BASE}/points-table/men/2025": FetchFailed("HTTP 503", source="iplt20")})
        result = _source(http).fetch_snapshot()
        assert not result.partial.has(Section.POINTS_TABLE)
        assert result.partial.has(Section.SCHEDULE)
        assert result.partial.has(Section.LIVE_MATCH)
        assert isinstance(result.error, FetchFailed)

    def test_no_live_match_is_confirmed(self):
        result = _source(_site(**{f"{BASE}/": HOME_NO_LIVE_HTML})).fetch_snapshot()
        assert result.partial.has(Section.LIVE_MATCH)
        assert result.partial.get(Section.LIVE_MATCH) is None

    def test_everything_down(self):
        result = _source(FakeHttp()).fetch_snapshot()
        assert result.partial.is_empty()
        assert len(result.errors) == 4


class TestSlowPage:
    """Tests for the per-source page deadline."""

    def test_slow_home_page_keeps_other_sections(self):
        gate = threading.Event()

        def slow_home(params):
            gate.wait(timeout=5)
            return LIVE_HTML

        http = _site(**{f"{BASE}/": slow_home})
        source = Iplt20Source(BASE, 2025, http=http, budget_seconds=0.2, today=lambda: TODAY)
        try:
            result = source.fetch_snapshot()
        finally:
            gate.set()

        assert result.partial.has(Section.POINTS_TABLE)
        assert result.partial.has(Section.SCHEDULE)
        assert result.partial.has(Section.UPCOMING)
        assert not result.partial.has(Section.LIVE_MATCH)
        assert len(result.errors) == 1
        assert isinstance(result.error, FetchFailed)
        assert result.error.url == f"{BASE}/"

    def test_slow_home_page_within_orchestration_pass(self):
        gate = threading.Event()

        def slow_home(params):
            gate.wait(timeout=5)
            return LIVE_HTML

        http = _site(**{f"{BASE}/": slow_home})
        source = Iplt20Source(BASE, 2025, http=http, budget_seconds=0.2, today=lambda: TODAY)
        try:
            result = SnapshotOrchestrator([source], budget_seconds=2.0).build()
        finally:
            gate.set()

        assert result.provenance[Section.POINTS_TABLE.value] == "iplt20"
        assert result.provenance[Section.SCHEDULE.value] == "iplt20"
        assert result.provenance[Section.LIVE_MATCH.value] == "reference"
        assert any(e.startswith("iplt20: No answer within") for e in result.errors)
