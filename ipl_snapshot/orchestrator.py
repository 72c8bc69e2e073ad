# ipl_snapshot/orchestrator.py
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence, Tuple

from ipl_snapshot.config import (
    ORCHESTRATION_BUDGET_SECONDS,
    SOURCE_PRIORITY,
    UPCOMING_MATCHES_LIMIT,
)
from ipl_snapshot.cricapi_source import CricApiSource
from ipl_snapshot.errors import AllSourcesExhausted
from ipl_snapshot.iplt20_scraper import Iplt20Source
from ipl_snapshot.live_score_api import LiveScoreApiSource
from ipl_snapshot.logging import logger
from ipl_snapshot.models import TournamentSnapshot
from ipl_snapshot.reference_data import REFERENCE_SNAPSHOT, REFERENCE_SOURCE
from ipl_snapshot.snapshot import assemble_snapshot, derive_upcoming
from ipl_snapshot.sources import ALL_SECTIONS, PartialSnapshot, Section, SnapshotSource, SourceResult
from ipl_snapshot.teams import DEFAULT_DIRECTORY, TeamDirectory

DERIVED = "derived"


@dataclass(frozen=True)
class OrchestrationResult:
    snapshot: TournamentSnapshot
    # section wire name -> source name, "derived" or "reference"
    provenance: Dict[str, str] = field(default_factory=dict)
    errors: Tuple[str, ...] = ()

    @property
    def fully_fallback(self) -> bool:
        return bool(self.provenance) and all(v == REFERENCE_SOURCE for v in self.provenance.values())


def build_sources(names: Sequence[str] = SOURCE_PRIORITY) -> List[SnapshotSource]:
    """Instantiate adapters in priority order from their config names."""
    factories: Dict[str, Callable[[], SnapshotSource]] = {
        "iplt20": Iplt20Source,
        "cricapi": CricApiSource,
        "live_score_api": LiveScoreApiSource,
    }

    sources: List[SnapshotSource] = []
    for name in names:
        factory = factories.get(name)
        if factory is None:
            raise ValueError(f"Unknown snapshot source: {name}")
        sources.append(factory())
    return sources


class SnapshotOrchestrator:
    """
    One pass over every adapter, merged by priority.

    Adapters run concurrently; results are taken in priority order, so a
    lower-priority source that answers first never shadows a higher one.
    Sections nobody produced come from the bundled reference snapshot, and
    build() never raises.
    """

    def __init__(
        self,
        sources: Sequence[SnapshotSource],
        *,
        reference: TournamentSnapshot = REFERENCE_SNAPSHOT,
        budget_seconds: float = ORCHESTRATION_BUDGET_SECONDS,
        upcoming_limit: int = UPCOMING_MATCHES_LIMIT,
        directory: TeamDirectory = DEFAULT_DIRECTORY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sources = list(sources)
        self.reference = reference
        self.budget_seconds = budget_seconds
        self.upcoming_limit = upcoming_limit
        self.directory = directory
        self._clock = clock

    def build(self) -> OrchestrationResult:
        started = self._clock()
        try:
            result = self._build()
        except AllSourcesExhausted as e:
            logger.warning("all_sources_exhausted", error=str(e), source_errors=list(e.errors))
            result = self._reference_result(errors=(*e.errors, str(e)))
        except Exception as e:
            logger.exception("orchestration_failed", error=str(e))
            result = self._reference_result(errors=(f"{type(e).__name__}: {e}",))

        logger.info(
            "snapshot_built",
            provenance=result.provenance,
            errors=len(result.errors),
            duration_ms=round((self._clock() - started) * 1000.0, 1),
        )
        return result

    # -----------------------
    # Internals
    # -----------------------
    def _reference_result(self, errors: Tuple[str, ...] = ()) -> OrchestrationResult:
        return OrchestrationResult(
            snapshot=self.reference,
            provenance={s.value: REFERENCE_SOURCE for s in ALL_SECTIONS},
            errors=errors,
        )

    def _collect(self) -> Tuple[PartialSnapshot, Dict[Section, str], List[str]]:
        merged = PartialSnapshot()
        provenance: Dict[Section, str] = {}
        errors: List[str] = []

        if not self.sources:
            return merged, provenance, errors

        executor = ThreadPoolExecutor(max_workers=len(self.sources), thread_name_prefix="snapshot-source")
        try:
            futures = [(s, executor.submit(s.fetch_snapshot)) for s in self.sources]
            deadline = self._clock() + self.budget_seconds

            for source, future in futures:
                if merged.is_complete():
                    logger.debug("snapshot_complete_early", skipped_from=source.name)
                    break

                remaining = max(0.0, deadline - self._clock())
                try:
                    result: SourceResult = future.result(timeout=remaining)
                except FutureTimeout:
                    logger.warning("source_timed_out", source=source.name, budget_seconds=self.budget_seconds)
                    errors.append(f"{source.name}: timed out")
                    continue
                except Exception as e:
                    logger.exception("source_crashed", source=source.name, error=str(e))
                    errors.append(f"{source.name}: {type(e).__name__}: {e}")
                    continue

                errors.extend(f"{source.name}: {err}" for err in result.errors)
                self._merge(merged, provenance, result)
        finally:
            # Stragglers keep running until their own HTTP timeout; nobody waits on them
            executor.shutdown(wait=False, cancel_futures=True)

        return merged, provenance, errors

    @staticmethod
    def _merge(merged: PartialSnapshot, provenance: Dict[Section, str], result: SourceResult) -> None:
        """First writer wins per section."""
        for section, value in result.partial.sections.items():
            if merged.has(section):
                continue
            if section == Section.LIVE_MATCH and value is None:
                merged.confirm_no_live_match()
            else:
                merged.put(section, value)
            provenance[section] = result.source

    def _build(self) -> OrchestrationResult:
        merged, provenance, errors = self._collect()
        if merged.is_empty():
            raise AllSourcesExhausted(f"No section produced by {[s.name for s in self.sources]}", errors)

        if not merged.has(Section.UPCOMING) and merged.has(Section.SCHEDULE):
            merged.put(Section.UPCOMING, derive_upcoming(merged.get(Section.SCHEDULE), self.upcoming_limit))
            if merged.has(Section.UPCOMING):
                provenance[Section.UPCOMING] = DERIVED

        ref = self.reference
        fallback = {
            Section.UPCOMING: ref.upcoming_matches,
            Section.LIVE_MATCH: ref.live_match,
            Section.POINTS_TABLE: ref.points_table,
            Section.SCHEDULE: ref.complete_schedule,
        }
        for section in ALL_SECTIONS:
            if merged.has(section):
                continue
            logger.info("section_from_reference", section=section.value)
            if fallback[section] is None:
                merged.confirm_no_live_match()
            else:
                merged.put(section, fallback[section])
            provenance[section] = REFERENCE_SOURCE

        snapshot = assemble_snapshot(
            upcoming=merged.get(Section.UPCOMING) or (),
            live_match=merged.get(Section.LIVE_MATCH),
            points_table=merged.get(Section.POINTS_TABLE) or (),
            schedule=merged.get(Section.SCHEDULE) or (),
            roster=self.directory.teams,
            upcoming_limit=self.upcoming_limit,
        )
        return OrchestrationResult(
            snapshot=snapshot,
            provenance={s.value: provenance[s] for s in ALL_SECTIONS},
            errors=tuple(errors),
        )
