# ipl_snapshot/iplt20_scraper.py
from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import date
from io import StringIO
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from ipl_snapshot.config import (
    INNINGS_OVERS,
    IPLT20_BASE_URL,
    IPLT20_BUDGET_SECONDS,
    IPLT20_SEASON,
    IPLT20_TIMEOUT_SECONDS,
)
from ipl_snapshot.documents import DocumentNode, parse_document
from ipl_snapshot.errors import FetchFailed, ParseFailed
from ipl_snapshot.http_client import HttpClient
from ipl_snapshot.logging import logger
from ipl_snapshot.models import (
    Batsman,
    Bowler,
    CommentaryItem,
    LiveMatch,
    Match,
    MatchStatus,
    Over,
    PointsTableEntry,
)
from ipl_snapshot.normalizer import (
    derive_run_rates,
    parse_ball,
    parse_float,
    parse_int,
    parse_match_date,
    parse_match_time,
    parse_overs,
    parse_score,
)
from ipl_snapshot.points_table import ScoringRules, build_entry
from ipl_snapshot.sources import Section, SnapshotSource, SourceResult
from ipl_snapshot.teams import DEFAULT_DIRECTORY, TeamDirectory

SOURCE_NAME = "iplt20"

# Match card selectors (fixtures, results and home page share the card markup)
CARD = ".match-card"
LIVE_CARD = ".match-card--live"
COMPLETE_CARD = ".match-card--complete"
CARD_DATE = ".match-card__date"
CARD_TIME = ".match-card__time"
CARD_VENUE = ".match-card__venue"
CARD_RESULT = ".match-card__result"
TEAM_NAME = ".match-card__team-{n} .match-card__team-name"
TEAM_SCORE = ".match-card__team-{n} .match-card__score"

MAX_BATSMEN = 2
MAX_RECENT_OVERS = 3
MAX_COMMENTARY = 6


# -----------------------------
# Points table (pandas.read_html)
# -----------------------------
def _flatten_columns(df: pd.DataFrame) -> pd.DataFrame:
    cols: List[str] = []
    for c in df.columns:
        if isinstance(c, tuple):
            c = " ".join([str(x) for x in c if x and str(x) != "nan"]).strip()
        cols.append(str(c).strip())
    df.columns = cols
    return df


def _pick_points_table(tables: List[pd.DataFrame]) -> pd.DataFrame:
    """
    Pages sometimes contain multiple HTML tables.
    We pick the best match by scoring expected points-table columns.
    """
    best = None
    best_score = -1

    for t in tables:
        t = _flatten_columns(t.copy())
        cols = [str(c).strip().lower() for c in t.columns]

        score = 0
        if any("team" in c for c in cols):
            score += 3
        if any("pts" in c or "points" in c for c in cols):
            score += 3
        if any("nrr" in c for c in cols):
            score += 3
        if any(c in ("p", "m", "mat", "matches", "played") for c in cols):
            score += 1
        if any(c in ("w", "won") for c in cols):
            score += 1
        if any(c in ("l", "lost") for c in cols):
            score += 1
        if any(c in ("t", "tie", "tied") for c in cols):
            score += 1

        if score > best_score:
            best_score = score
            best = t

    return best if best is not None else _flatten_columns(tables[0].copy())


def _column_target(lc: str) -> Optional[str]:
    if "team" in lc:
        return "team"
    if lc in ("pt", "pts", "points") or "pts" in lc or "points" in lc:
        return "points"
    if "nrr" in lc or "net run rate" in lc:
        return "nrr"
    if lc in ("p", "m", "mat", "matches", "played", "pld") or lc.startswith("mat"):
        return "matches"
    if lc in ("w", "won"):
        return "won"
    if lc in ("l", "lost"):
        return "lost"
    if lc in ("t", "tie", "tied"):
        return "tied"
    return None


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    colmap: Dict[str, str] = {}
    taken = set()
    for c in df.columns:
        target = _column_target(str(c).strip().lower())
        if target and target not in taken:
            colmap[c] = target
            taken.add(target)
    return df.rename(columns=colmap)


def _clean_team_cell(raw: Any) -> str:
    """
    Team cell examples:
      "1Chennai Super Kings CSK"
      "1 Image Mumbai Indians MI"
      "Delhi Capitals"

    Returns the team name without rank prefix, image alt text or trailing code.
    """
    if raw is None:
        return ""

    s = str(raw).strip()
    if not s or s.lower() == "nan":
        return ""

    s = s.replace("Image", " ").strip()

    # Insert spaces where the page concatenates tokens
    s = re.sub(r"(?<=\d)(?=[A-Za-z])", " ", s)
    s = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", s)

    s = re.sub(r"\s+", " ", s).strip()
    s = re.sub(r"^\d+\s*", "", s).strip()

    tokens = s.split()
    if len(tokens) > 2 and re.fullmatch(r"[A-Z]{2,5}", tokens[-1]):
        s = " ".join(tokens[:-1])

    return s.strip()


def _maybe_split_points_nrr(points_raw: Any, nrr_raw: Any) -> Tuple[Optional[int], Optional[float]]:
    """
    Sometimes HTML renders like '4-0.483' inside points column.
    If points looks like '<int><sign><float>' and NRR is missing, split it.
    """
    pts_str = "" if points_raw is None else str(points_raw).strip().replace("−", "-")
    nrr_val = parse_float(nrr_raw)

    m = re.match(r"^(\d+)([-+]\d+(?:\.\d+)?)$", pts_str)
    if m and nrr_val is None:
        return int(m.group(1)), float(m.group(2))

    return parse_int(points_raw), nrr_val


def parse_points_table(
    html: str,
    *,
    directory: TeamDirectory = DEFAULT_DIRECTORY,
    rules: ScoringRules = ScoringRules(),
) -> List[PointsTableEntry]:
    try:
        tables = pd.read_html(StringIO(html))
    except ValueError as e:
        raise ParseFailed("points_table", str(e)) from e

    if not tables:
        raise ParseFailed("points_table", "no tables")

    df = _normalize_columns(_pick_points_table(tables))

    required = {"team", "matches", "won", "lost", "nrr"}
    if not required.issubset(set(df.columns)):
        raise ParseFailed("points_table", f"columns={list(df.columns)}")

    entries: List[PointsTableEntry] = []
    for _, row in df.iterrows():
        team_name = _clean_team_cell(row.get("team"))
        if not team_name:
            continue

        points, nrr = _maybe_split_points_nrr(row.get("points"), row.get("nrr"))
        matches = parse_int(row.get("matches"))
        won = parse_int(row.get("won"))
        lost = parse_int(row.get("lost"))

        if matches is None or won is None or lost is None or nrr is None:
            logger.debug("points_row_skipped", source=SOURCE_NAME, team=team_name)
            continue

        entries.append(
            build_entry(
                directory.canonicalize(team_name),
                matches=matches,
                won=won,
                lost=lost,
                tied=parse_int(row.get("tied")) if "tied" in df.columns else None,
                points=points,
                net_run_rate=nrr,
                rules=rules,
                source=SOURCE_NAME,
            )
        )

    return entries


# -----------------------------
# Match cards
# -----------------------------
def _card_status(card: DocumentNode) -> MatchStatus:
    if card.has_class("match-card--live"):
        return MatchStatus.LIVE
    if card.has_class("match-card--complete"):
        return MatchStatus.COMPLETED
    return MatchStatus.UPCOMING


def parse_match_card(
    card: DocumentNode,
    *,
    directory: TeamDirectory = DEFAULT_DIRECTORY,
    today: Optional[date] = None,
) -> Optional[Match]:
    team1_name = card.text(TEAM_NAME.format(n=1))
    team2_name = card.text(TEAM_NAME.format(n=2))
    if not team1_name or not team2_name:
        return None

    team1 = directory.canonicalize(team1_name)
    team2 = directory.canonicalize(team2_name)
    match_date = parse_match_date(card.text(CARD_DATE), today)
    status = _card_status(card)
    result = card.text(CARD_RESULT) if status == MatchStatus.COMPLETED else ""

    return Match(
        id=card.attr("data-match-id") or f"{match_date}-{team1.id}-{team2.id}",
        team1=team1,
        team2=team2,
        date=match_date,
        time=parse_match_time(card.text(CARD_TIME)),
        venue=card.text(CARD_VENUE),
        status=status,
        result=result or None,
    )


def parse_match_cards(
    html: str,
    selector: str = CARD,
    *,
    directory: TeamDirectory = DEFAULT_DIRECTORY,
    today: Optional[date] = None,
) -> List[Match]:
    doc = parse_document(html)
    matches: List[Match] = []
    for card in doc.select(selector):
        try:
            m = parse_match_card(card, directory=directory, today=today)
        except ParseFailed as e:
            logger.debug("match_card_skipped", source=SOURCE_NAME, error=str(e))
            continue
        if m is not None:
            matches.append(m)
    return matches


# -----------------------------
# Live match (home page)
# -----------------------------
def _parse_batsmen(doc: DocumentNode) -> List[Batsman]:
    out: List[Batsman] = []
    for el in doc.select(".batter-card")[:MAX_BATSMEN]:
        name = el.text(".player-name")
        runs = parse_int(el.text(".runs"))
        balls = parse_int(el.text(".balls-faced"))
        if not name or runs is None or balls is None:
            continue
        out.append(
            Batsman(
                name=name,
                runs=runs,
                balls=balls,
                fours=parse_int(el.text(".fours")) or 0,
                sixes=parse_int(el.text(".sixes")) or 0,
            )
        )
    return out


def _parse_bowler(doc: DocumentNode) -> Optional[Bowler]:
    el = doc.select_one(".bowler-card")
    if el is None:
        return None
    name = el.text(".player-name")
    overs = parse_overs(el.text(".overs"))
    maidens = parse_int(el.text(".maidens"))
    runs = parse_int(el.text(".runs-conceded"))
    wickets = parse_int(el.text(".wickets"))
    if not name or None in (overs, maidens, runs, wickets):
        return None
    return Bowler(name=name, overs=overs, maidens=maidens, runs=runs, wickets=wickets)


def _parse_recent_overs(doc: DocumentNode) -> List[Over]:
    out: List[Over] = []
    for el in doc.select(".recent-overs .over")[:MAX_RECENT_OVERS]:
        number = parse_int(el.text(".over-number"))
        if number is None:
            continue
        balls = [parse_ball(b.text()) for b in el.select(".ball")]
        out.append(Over(over_number=number, balls=tuple(b for b in balls if b is not None)))
    return out


def _parse_commentary(doc: DocumentNode) -> List[CommentaryItem]:
    out: List[CommentaryItem] = []
    for el in doc.select(".commentary-list .commentary-item")[:MAX_COMMENTARY]:
        text = el.text(".commentary-text")
        if text:
            out.append(CommentaryItem(time=el.text(".commentary-time"), text=text))
    return out


def parse_live_match(
    html: str,
    *,
    directory: TeamDirectory = DEFAULT_DIRECTORY,
    innings_overs: int = INNINGS_OVERS,
    today: Optional[date] = None,
) -> Optional[LiveMatch]:
    """None when the page has no live card."""
    doc = parse_document(html)
    card = doc.select_one(LIVE_CARD)
    if card is None:
        return None

    base = parse_match_card(card, directory=directory, today=today)
    if base is None:
        raise ParseFailed("live_match", card.text())

    batsmen = _parse_batsmen(doc)
    overs = _parse_recent_overs(doc)
    commentary = _parse_commentary(doc)

    live = LiveMatch(
        id=base.id,
        team1=base.team1,
        team2=base.team2,
        date=base.date,
        time=base.time,
        venue=base.venue,
        status=MatchStatus.LIVE,
        team1_score=parse_score(card.text(TEAM_SCORE.format(n=1))),
        team2_score=parse_score(card.text(TEAM_SCORE.format(n=2))),
        current_batsmen=tuple(batsmen) or None,
        current_bowler=_parse_bowler(doc),
        recent_overs=tuple(overs) or None,
        commentary=tuple(commentary) or None,
        last_wicket=doc.text(".last-wicket") or None,
    )
    return derive_run_rates(live, innings_overs)


# -----------------------------
# Source
# -----------------------------
class Iplt20Source(SnapshotSource):
    """
    Official site scrape: points table, fixtures, results and the live card.

    The four pages are fetched concurrently under one deadline
    (`budget_seconds`). A page that has not answered by then is recorded as
    a failed section, and whatever the other pages produced is still returned.
    """

    def __init__(
        self,
        base_url: str = IPLT20_BASE_URL,
        season: int = IPLT20_SEASON,
        *,
        http: Optional[HttpClient] = None,
        timeout: float = IPLT20_TIMEOUT_SECONDS,
        budget_seconds: float = IPLT20_BUDGET_SECONDS,
        directory: TeamDirectory = DEFAULT_DIRECTORY,
        rules: Optional[ScoringRules] = None,
        innings_overs: int = INNINGS_OVERS,
        today: Optional[Callable[[], date]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.season = season
        self.http = http or HttpClient(SOURCE_NAME, timeout)
        self.budget_seconds = budget_seconds
        self.directory = directory
        self.rules = rules or ScoringRules.from_config()
        self.innings_overs = innings_overs
        self._today = today or date.today

    @property
    def name(self) -> str:
        return SOURCE_NAME

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _fetch_pages(self, result: SourceResult, pages: Dict[str, str]) -> Dict[str, str]:
        """GET every page in parallel; returns section label -> HTML for the ones that answered in time."""
        fetched: Dict[str, str] = {}
        executor = ThreadPoolExecutor(max_workers=len(pages), thread_name_prefix="iplt20-page")
        try:
            futures = {label: executor.submit(self.http.get_text, url) for label, url in pages.items()}
            wait(futures.values(), timeout=self.budget_seconds)

            for label, future in futures.items():

                def take(label=label, future=future) -> None:
                    if not future.done():
                        raise FetchFailed(
                            f"No answer within {self.budget_seconds}s",
                            source=self.name,
                            url=pages[label],
                        )
                    fetched[label] = future.result()

                self._run_section(result, label, take)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return fetched

    def fetch_snapshot(self) -> SourceResult:
        result = SourceResult(source=self.name)
        partial = result.partial
        today = self._today()

        pages = self._fetch_pages(
            result,
            {
                Section.POINTS_TABLE.value: self.url(f"points-table/men/{self.season}"),
                "fixtures": self.url("matches/fixtures"),
                "results": self.url("matches/results"),
                Section.LIVE_MATCH.value: self.url("/"),
            },
        )

        fixtures: List[Match] = []
        results: List[Match] = []
        live_holder: List[LiveMatch] = []
        schedule_pages_ok: List[str] = []

        def points(html: str) -> None:
            partial.put(
                Section.POINTS_TABLE,
                parse_points_table(html, directory=self.directory, rules=self.rules),
            )

        def fixtures_page(html: str) -> None:
            fixtures.extend(parse_match_cards(html, directory=self.directory, today=today))
            schedule_pages_ok.append("fixtures")

        def results_page(html: str) -> None:
            results.extend(parse_match_cards(html, COMPLETE_CARD, directory=self.directory, today=today))
            schedule_pages_ok.append("results")

        def live(html: str) -> None:
            lm = parse_live_match(html, directory=self.directory, innings_overs=self.innings_overs, today=today)
            if lm is None:
                partial.confirm_no_live_match()
            else:
                live_holder.append(lm)
                partial.put(Section.LIVE_MATCH, lm)

        for label, parse in (
            (Section.POINTS_TABLE.value, points),
            ("fixtures", fixtures_page),
            ("results", results_page),
            (Section.LIVE_MATCH.value, live),
        ):
            if label in pages:
                self._run_section(result, label, lambda parse=parse, html=pages[label]: parse(html))

        if schedule_pages_ok:
            schedule: Dict[str, Match] = {}
            for m in [*live_holder, *fixtures, *results]:
                schedule.setdefault(m.id, m)
            partial.put(Section.SCHEDULE, list(schedule.values()))

            upcoming = sorted(
                (m for m in fixtures if m.status == MatchStatus.UPCOMING),
                key=lambda m: m.sort_key(),
            )
            partial.put(Section.UPCOMING, upcoming)

        logger.info(
            "source_fetched",
            source=self.name,
            sections=[s.value for s in partial.sections],
            errors=len(result.errors),
        )
        return result
