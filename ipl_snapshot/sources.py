"""
Source interface shared by every upstream adapter.

A source fetches from exactly one upstream and returns whatever sections it
managed to build. Missing sections are simply absent; they are never filled
with placeholder values here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ipl_snapshot.errors import FetchFailed, ParseFailed
from ipl_snapshot.logging import logger


class Section(str, Enum):
    LIVE_MATCH = "liveMatch"
    POINTS_TABLE = "pointsTable"
    SCHEDULE = "completeSchedule"
    UPCOMING = "upcomingMatches"


ALL_SECTIONS = tuple(Section)


class PartialSnapshot:
    """Section -> value map. Empty lists and None are treated as "not produced"."""

    def __init__(self) -> None:
        self._sections: Dict[Section, Any] = {}

    def put(self, section: Section, value: Any) -> None:
        if value is None:
            return
        if isinstance(value, (list, tuple)):
            if not value:
                return
            value = tuple(value)
        self._sections[section] = value

    def confirm_no_live_match(self) -> None:
        """The upstream answered and there is no live match right now."""
        self._sections[Section.LIVE_MATCH] = None

    def has(self, section: Section) -> bool:
        return section in self._sections

    def get(self, section: Section) -> Any:
        return self._sections.get(section)

    @property
    def sections(self) -> Dict[Section, Any]:
        return dict(self._sections)

    def is_complete(self) -> bool:
        return all(s in self._sections for s in ALL_SECTIONS)

    def is_empty(self) -> bool:
        return not self._sections


@dataclass
class SourceResult:
    source: str
    partial: PartialSnapshot = field(default_factory=PartialSnapshot)
    error: Optional[Exception] = None
    errors: List[Exception] = field(default_factory=list)


class SnapshotSource(ABC):
    """Base for the official site, CricAPI and live-score fetchers."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def fetch_snapshot(self) -> SourceResult:
        """
        Fetch whatever sections this upstream can provide.

        Implementations must not raise for upstream/parse failures: they are
        recorded on the result (`error` is the first one) and logged.
        """
        pass

    def _run_section(self, result: SourceResult, section: str, fn: Callable[[], None]) -> None:
        """Run one section builder, recording FetchFailed/ParseFailed instead of raising."""
        try:
            fn()
        except (FetchFailed, ParseFailed) as e:
            logger.warning(
                "source_section_failed",
                source=self.name,
                section=section,
                error=str(e),
                error_type=type(e).__name__,
            )
            result.errors.append(e)
            if result.error is None:
                result.error = e
