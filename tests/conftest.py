"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import os
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Set environment before any ipl_snapshot import reads it
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("CRICAPI_ENABLED", "0")

from ipl_snapshot.errors import FetchFailed  # noqa: E402

TODAY = date(2025, 4, 10)


class FakeHttp:
    """
    Stands in for HttpClient. Responses are keyed by URL; a value that is an
    Exception is raised instead of returned.
    """

    def __init__(self, text: Optional[Dict[str, Any]] = None, json: Optional[Dict[str, Any]] = None):
        self.text = dict(text or {})
        self.json = dict(json or {})
        self.calls: List[Tuple[str, Optional[Dict[str, Any]]]] = []

    def _answer(self, table: Dict[str, Any], url: str, params: Optional[Dict[str, Any]]) -> Any:
        self.calls.append((url, params))
        if url not in table:
            raise FetchFailed("HTTP 404", source="fake", url=url)
        value = table[url]
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(params)
        return value

    def get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        return self._answer(self.text, url, params)

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._answer(self.json, url, params)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def fake_http():
    return FakeHttp()
