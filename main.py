# main.py
from __future__ import annotations

import time
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, Field

from ipl_snapshot.cache import CacheLookup, CacheStatus, SnapshotCache
from ipl_snapshot.config import SNAPSHOT_CACHE_TTL_SECONDS, SOURCE_PRIORITY, validate_config
from ipl_snapshot.errors import CacheUnavailable
from ipl_snapshot.logging import logger
from ipl_snapshot.orchestrator import OrchestrationResult, SnapshotOrchestrator, build_sources

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="IPL Tournament Snapshot API",
    version="0.1.0",
    description="Live match, points table and schedule for the IPL dashboard, stitched from several upstream sources",
)


def create_orchestrator() -> SnapshotOrchestrator:
    return SnapshotOrchestrator(build_sources(SOURCE_PRIORITY))


@app.on_event("startup")
def on_startup():
    validate_config()
    orchestrator = create_orchestrator()
    app.state.orchestrator = orchestrator
    app.state.snapshot_cache = SnapshotCache(orchestrator.build, ttl_seconds=SNAPSHOT_CACHE_TTL_SECONDS)
    logger.info("app_started", sources=SOURCE_PRIORITY, ttl_seconds=SNAPSHOT_CACHE_TTL_SECONDS)


@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "http_request",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000.0, 1),
    )
    return response


# -----------------------
# Dependencies
# -----------------------
def get_snapshot_cache(request: Request) -> SnapshotCache:
    return request.app.state.snapshot_cache


def get_orchestrator(request: Request) -> SnapshotOrchestrator:
    return request.app.state.orchestrator


# -----------------------
# Helpers
# -----------------------
def _set_snapshot_headers(response: Response, status: CacheStatus, result: OrchestrationResult, ttl_seconds: float) -> None:
    response.headers["X-Cache-Status"] = status.value
    response.headers["Cache-Control"] = f"max-age={int(ttl_seconds)}"
    response.headers["X-Snapshot-Sources"] = ",".join(f"{k}={v}" for k, v in result.provenance.items())


def _serve_snapshot(response: Response, cache: SnapshotCache, orchestrator: SnapshotOrchestrator) -> dict:
    try:
        lookup: CacheLookup = cache.get()
        result, status = lookup.entry.result, lookup.status
    except CacheUnavailable as e:
        logger.error("snapshot_cache_unavailable", error=str(e))
        result = orchestrator.build()
        status = CacheStatus.FALLBACK if result.fully_fallback else CacheStatus.MISS
    except Exception as e:
        logger.exception("snapshot_failed", error=str(e))
        raise HTTPException(status_code=500, detail={"error": "snapshot_unavailable", "message": str(e)})

    _set_snapshot_headers(response, status, result, cache.ttl_seconds)
    return result.snapshot.to_dict()


# -----------------------
# Endpoints
# -----------------------
@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


@app.get("/api/snapshot")
def get_snapshot(
    response: Response,
    cache: SnapshotCache = Depends(get_snapshot_cache),
    orchestrator: SnapshotOrchestrator = Depends(get_orchestrator),
):
    return _serve_snapshot(response, cache, orchestrator)


# Route the dashboard polls
@app.get("/api/scrape")
def scrape(
    response: Response,
    cache: SnapshotCache = Depends(get_snapshot_cache),
    orchestrator: SnapshotOrchestrator = Depends(get_orchestrator),
):
    return _serve_snapshot(response, cache, orchestrator)


class SnapshotStatus(BaseModel):
    cached: bool
    status: Optional[str] = Field(None, description="HIT or FALLBACK for the cached snapshot")
    age_seconds: Optional[float] = None
    ttl_seconds: float
    sources: List[str] = Field(default_factory=list, description="Adapter priority order")
    provenance: Dict[str, str] = Field(default_factory=dict, description="Section -> source that produced it")
    errors: List[str] = Field(default_factory=list)


@app.get("/api/snapshot/status", response_model=SnapshotStatus)
def snapshot_status(cache: SnapshotCache = Depends(get_snapshot_cache)):
    try:
        lookup = cache.peek()
    except CacheUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    if lookup is None:
        return SnapshotStatus(cached=False, ttl_seconds=cache.ttl_seconds, sources=list(SOURCE_PRIORITY))

    result = lookup.entry.result
    return SnapshotStatus(
        cached=True,
        status=lookup.status.value,
        age_seconds=round(lookup.age_seconds, 3),
        ttl_seconds=cache.ttl_seconds,
        sources=list(SOURCE_PRIORITY),
        provenance=result.provenance,
        errors=list(result.errors),
    )
