# ipl_snapshot/config.py
from __future__ import annotations

import os
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: str) -> List[str]:
    raw = _get_env(name, default)
    return [p.strip() for p in raw.split(",") if p.strip()]


ENVIRONMENT: str = _get_env("ENVIRONMENT", "development")
LOG_LEVEL: str = _get_env("LOG_LEVEL")


# -------------------------
# Primary source: official site (HTML scrape)
# -------------------------
IPLT20_BASE_URL: str = _get_env("IPLT20_BASE_URL", "https://www.iplt20.com")
IPLT20_SEASON: int = _get_env_int("IPLT20_SEASON", 2025)
IPLT20_TIMEOUT_SECONDS: float = _get_env_float("IPLT20_TIMEOUT_SECONDS", 8.0)
# Deadline for all four pages together; pages are fetched concurrently
IPLT20_BUDGET_SECONDS: float = _get_env_float("IPLT20_BUDGET_SECONDS", 10.0)


# -------------------------
# Secondary source: CricketData (CricAPI) config (OPTIONAL)
# -------------------------
CRICAPI_API_KEY: str = _get_env("CRICAPI_API_KEY")
CRICAPI_BASE_URL: str = _get_env("CRICAPI_BASE_URL", "https://api.cricapi.com/v1")
CRICAPI_SERIES_ID: str = _get_env("CRICAPI_SERIES_ID")
CRICAPI_SERIES_SEARCH: str = _get_env("CRICAPI_SERIES_SEARCH", "Indian Premier League")
CRICAPI_TIMEOUT_SECONDS: float = _get_env_float("CRICAPI_TIMEOUT_SECONDS", 4.0)

# If 0, the secondary source reports itself as unavailable without any network call
CRICAPI_ENABLED: bool = _get_env("CRICAPI_ENABLED", "0") == "1"


# -------------------------
# Tertiary source: community live-score API
# -------------------------
LIVE_SCORE_API_BASE_URL: str = _get_env(
    "LIVE_SCORE_API_BASE_URL",
    "https://cricket-api-production.up.railway.app",
)
LIVE_SCORE_API_TIMEOUT_SECONDS: float = _get_env_float("LIVE_SCORE_API_TIMEOUT_SECONDS", 5.0)


# -------------------------
# Orchestration + cache
# -------------------------
SOURCE_PRIORITY: List[str] = _get_env_list("SOURCE_PRIORITY", "iplt20,cricapi,live_score_api")
ORCHESTRATION_BUDGET_SECONDS: float = _get_env_float("ORCHESTRATION_BUDGET_SECONDS", 15.0)
SNAPSHOT_CACHE_TTL_SECONDS: int = _get_env_int("SNAPSHOT_CACHE_TTL_SECONDS", 300)


# -------------------------
# League rules
# -------------------------
POINTS_PER_WIN: int = _get_env_int("POINTS_PER_WIN", 2)
POINTS_PER_TIE: int = _get_env_int("POINTS_PER_TIE", 1)
INNINGS_OVERS: int = _get_env_int("INNINGS_OVERS", 20)
UPCOMING_MATCHES_LIMIT: int = _get_env_int("UPCOMING_MATCHES_LIMIT", 5)
MATCH_TIMEZONE: str = _get_env("MATCH_TIMEZONE", "Asia/Kolkata")


KNOWN_SOURCES = {"iplt20", "cricapi", "live_score_api"}


def validate_config() -> None:
    # Basic URL sanity
    for name, url in (
        ("IPLT20_BASE_URL", IPLT20_BASE_URL),
        ("CRICAPI_BASE_URL", CRICAPI_BASE_URL),
        ("LIVE_SCORE_API_BASE_URL", LIVE_SCORE_API_BASE_URL),
    ):
        if not url.startswith("http"):
            raise RuntimeError(f"{name} must start with http/https")

    # If enabled, enforce key
    if CRICAPI_ENABLED:
        if not CRICAPI_API_KEY or CRICAPI_API_KEY in {"DUMMY_KEY", "YOUR_CRICAPI_KEY"}:
            raise RuntimeError("CRICAPI_API_KEY missing/placeholder but CRICAPI_ENABLED=1")

    unknown = [s for s in SOURCE_PRIORITY if s not in KNOWN_SOURCES]
    if unknown:
        raise RuntimeError(f"SOURCE_PRIORITY has unknown sources: {unknown}")

    # Timeouts / TTL validation
    for name, value in (
        ("IPLT20_TIMEOUT_SECONDS", IPLT20_TIMEOUT_SECONDS),
        ("IPLT20_BUDGET_SECONDS", IPLT20_BUDGET_SECONDS),
        ("CRICAPI_TIMEOUT_SECONDS", CRICAPI_TIMEOUT_SECONDS),
        ("LIVE_SCORE_API_TIMEOUT_SECONDS", LIVE_SCORE_API_TIMEOUT_SECONDS),
        ("ORCHESTRATION_BUDGET_SECONDS", ORCHESTRATION_BUDGET_SECONDS),
    ):
        if value <= 0:
            raise RuntimeError(f"{name} must be positive")

    if SNAPSHOT_CACHE_TTL_SECONDS <= 0:
        raise RuntimeError("SNAPSHOT_CACHE_TTL_SECONDS must be positive")

    if INNINGS_OVERS <= 0:
        raise RuntimeError("INNINGS_OVERS must be positive")

    if UPCOMING_MATCHES_LIMIT <= 0:
        raise RuntimeError("UPCOMING_MATCHES_LIMIT must be positive")

    # Every source must be able to finish inside one orchestration pass
    if IPLT20_BUDGET_SECONDS >= ORCHESTRATION_BUDGET_SECONDS:
        raise RuntimeError("IPLT20_BUDGET_SECONDS must be below ORCHESTRATION_BUDGET_SECONDS")

    if CRICAPI_ENABLED:
        # series search (unless pinned), series_info, match_info; one after another
        calls = 2 if CRICAPI_SERIES_ID else 3
        if calls * CRICAPI_TIMEOUT_SECONDS >= ORCHESTRATION_BUDGET_SECONDS:
            raise RuntimeError(
                f"{calls} x CRICAPI_TIMEOUT_SECONDS must be below ORCHESTRATION_BUDGET_SECONDS"
            )

    if LIVE_SCORE_API_TIMEOUT_SECONDS >= ORCHESTRATION_BUDGET_SECONDS:
        raise RuntimeError("LIVE_SCORE_API_TIMEOUT_SECONDS must be below ORCHESTRATION_BUDGET_SECONDS")

    try:
        ZoneInfo(MATCH_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise RuntimeError(f"MATCH_TIMEZONE is not a known timezone: {MATCH_TIMEZONE!r}") from e
