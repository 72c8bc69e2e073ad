# ipl_snapshot/http_client.py
from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from ipl_snapshot.errors import FetchFailed

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; IPL-Snapshot/1.0)",
    "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-IN,en;q=0.9",
}


class HttpClient:
    """
    Thin GET wrapper used by every source.

    One attempt per call: network errors, timeouts, non-2xx and undecodable
    bodies all surface as FetchFailed. Retrying is left to the next cache cycle.
    """

    def __init__(self, source: str, timeout: float, session: Optional[requests.Session] = None):
        self.source = source
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise FetchFailed(f"Network error: {e}", source=self.source, url=url) from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise FetchFailed(f"HTTP {resp.status_code}", source=self.source, url=url)

        return resp

    def get_text(self, url: str, params: Optional[Dict[str, Any]] = None) -> str:
        return self._get(url, params).text

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        resp = self._get(url, params)
        try:
            return resp.json()
        except ValueError as e:
            raise FetchFailed(f"Invalid JSON response: {e}", source=self.source, url=url) from e
