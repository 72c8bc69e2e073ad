# ipl_snapshot/teams.py
from __future__ import annotations

import re
from typing import Dict, Iterable, Literal, Mapping, Optional, Tuple

from ipl_snapshot.errors import ParseFailed
from ipl_snapshot.models import Team, slugify

LookupTier = Literal["exact", "contains", "synthesized"]

SYNTHESIZED_TEAM_COLOR = "#888888"


def _team(team_id: str, name: str, short_name: str, color: str) -> Team:
    return Team(id=team_id, name=name, short_name=short_name, logo=f"/teams/{team_id}.png", color=color)


# Fixed league roster
CANONICAL_TEAMS: Tuple[Team, ...] = (
    _team("csk", "Chennai Super Kings", "CSK", "#FFFF3C"),
    _team("mi", "Mumbai Indians", "MI", "#004BA0"),
    _team("rcb", "Royal Challengers Bengaluru", "RCB", "#FF0000"),
    _team("srh", "Sunrisers Hyderabad", "SRH", "#FF822A"),
    _team("dc", "Delhi Capitals", "DC", "#0078BC"),
    _team("kkr", "Kolkata Knight Riders", "KKR", "#3A225D"),
    _team("rr", "Rajasthan Royals", "RR", "#EA1A85"),
    _team("pbks", "Punjab Kings", "PBKS", "#D11D9B"),
    _team("gt", "Gujarat Titans", "GT", "#1C1C1C"),
    _team("lsg", "Lucknow Super Giants", "LSG", "#A72056"),
)

# Tier 1: whole-name aliases (current names, former names, short codes)
EXACT_ALIASES: Dict[str, str] = {
    "Chennai Super Kings": "csk",
    "Mumbai Indians": "mi",
    "Royal Challengers Bengaluru": "rcb",
    "Royal Challengers Bangalore": "rcb",
    "Sunrisers Hyderabad": "srh",
    "Deccan Chargers": "srh",
    "Delhi Capitals": "dc",
    "Delhi Daredevils": "dc",
    "Kolkata Knight Riders": "kkr",
    "Rajasthan Royals": "rr",
    "Punjab Kings": "pbks",
    "Kings XI Punjab": "pbks",
    "Gujarat Titans": "gt",
    "Lucknow Super Giants": "lsg",
    "CSK": "csk",
    "MI": "mi",
    "RCB": "rcb",
    "SRH": "srh",
    "DC": "dc",
    "KKR": "kkr",
    "RR": "rr",
    "PBKS": "pbks",
    "KXIP": "pbks",
    "GT": "gt",
    "LSG": "lsg",
}

# Tier 2: fragments that identify a team when contained in a longer name
CONTAINS_ALIASES: Dict[str, str] = {
    "Royal Challengers": "rcb",
    "Super Kings": "csk",
    "Chennai": "csk",
    "Mumbai": "mi",
    "Sunrisers": "srh",
    "Hyderabad": "srh",
    "Delhi": "dc",
    "Knight Riders": "kkr",
    "Kolkata": "kkr",
    "Rajasthan": "rr",
    "Punjab": "pbks",
    "Gujarat": "gt",
    "Lucknow": "lsg",
    "Super Giants": "lsg",
}


def _key(name: str) -> str:
    return re.sub(r"\s+", " ", str(name or "")).strip().casefold()


def _initials(name: str) -> str:
    return "".join(word[0] for word in name.split() if word).upper()


class TeamDirectory:
    """
    Resolves free-text team names to Team objects.

    Lookup order: exact alias, then contained fragment (longest fragment wins),
    then a synthesized team with a slug id. Exact beats fuzzy so two teams whose
    names overlap are never merged by the fragment tier.
    """

    def __init__(
        self,
        teams: Iterable[Team],
        exact_aliases: Mapping[str, str],
        contains_aliases: Optional[Mapping[str, str]] = None,
    ):
        self._by_id: Dict[str, Team] = {t.id: t for t in teams}
        self._exact: Dict[str, str] = {_key(k): v for k, v in exact_aliases.items()}
        for t in self._by_id.values():
            self._exact.setdefault(_key(t.name), t.id)

        fragments = {_key(k): v for k, v in (contains_aliases or {}).items() if _key(k)}
        self._fragments = sorted(fragments.items(), key=lambda kv: (-len(kv[0]), kv[0]))

    @classmethod
    def default(cls) -> "TeamDirectory":
        return cls(CANONICAL_TEAMS, EXACT_ALIASES, CONTAINS_ALIASES)

    @property
    def teams(self) -> Tuple[Team, ...]:
        return tuple(self._by_id.values())

    def get(self, team_id: str) -> Optional[Team]:
        return self._by_id.get(team_id)

    def resolve(self, name: str) -> Tuple[Team, LookupTier]:
        raw = re.sub(r"\s+", " ", str(name or "")).strip()
        key = raw.casefold()
        if not key:
            raise ParseFailed("team", name)

        team_id = self._exact.get(key)
        if team_id is not None:
            return self._team_for(team_id, raw), "exact"

        for fragment, fragment_id in self._fragments:
            if fragment in key:
                return self._team_for(fragment_id, raw), "contains"

        return self._synthesize(raw), "synthesized"

    def canonicalize(self, name: str) -> Team:
        team, _ = self.resolve(name)
        return team

    def _team_for(self, team_id: str, raw: str) -> Team:
        known = self._by_id.get(team_id)
        if known is not None:
            return known
        # Alias points at an id outside the roster
        return Team(id=team_id, name=raw, short_name=_initials(raw), logo=f"/teams/{team_id}.png", color=SYNTHESIZED_TEAM_COLOR)

    def _synthesize(self, raw: str) -> Team:
        team_id = slugify(raw)
        if not team_id:
            raise ParseFailed("team", raw)
        return Team(
            id=team_id,
            name=raw,
            short_name=_initials(raw),
            logo=f"/teams/{team_id}.png",
            color=SYNTHESIZED_TEAM_COLOR,
        )


DEFAULT_DIRECTORY = TeamDirectory.default()
