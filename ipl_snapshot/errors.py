# ipl_snapshot/errors.py
from __future__ import annotations

from typing import Optional, Sequence, Tuple


class SnapshotError(Exception):
    """Base class for snapshot pipeline errors."""
    pass


class FetchFailed(SnapshotError):
    """Raised when an upstream call fails (network, timeout, non-2xx, bad body)."""

    def __init__(self, message: str, *, source: str = "", url: Optional[str] = None):
        super().__init__(message)
        self.source = source
        self.url = url


class ParseFailed(SnapshotError):
    """Raised when a text field does not match the expected pattern."""

    def __init__(self, field: str, raw: object):
        super().__init__(f"Could not parse {field}: {raw!r}")
        self.field = field
        self.raw = raw


class AllSourcesExhausted(SnapshotError):
    """No source produced any section; the reference snapshot is served as-is."""

    def __init__(self, message: str, errors: Sequence[str] = ()):
        super().__init__(message)
        # per-source failures collected during the pass
        self.errors: Tuple[str, ...] = tuple(errors)


class CacheUnavailable(SnapshotError):
    """The shared cache slot could not be accessed."""
    pass
