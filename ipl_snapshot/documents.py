"""
Structured-document query over fetched HTML.

Sources only ever talk to `DocumentNode` (CSS selectors + text), so they can be
exercised against fixture HTML without a network.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from bs4 import BeautifulSoup, Tag


class DocumentNode(Protocol):
    def select(self, selector: str) -> List["DocumentNode"]: ...

    def select_one(self, selector: str) -> Optional["DocumentNode"]: ...

    def text(self, selector: Optional[str] = None) -> str: ...

    def has_class(self, name: str) -> bool: ...

    def attr(self, name: str) -> Optional[str]: ...


class SoupNode:
    """DocumentNode backed by a BeautifulSoup tag."""

    def __init__(self, tag: Tag):
        self._tag = tag

    def select(self, selector: str) -> List["SoupNode"]:
        return [SoupNode(t) for t in self._tag.select(selector)]

    def select_one(self, selector: str) -> Optional["SoupNode"]:
        found = self._tag.select_one(selector)
        return SoupNode(found) if found is not None else None

    def text(self, selector: Optional[str] = None) -> str:
        """Stripped text of this node, or of the first match of `selector` ("" if none)."""
        if selector is None:
            return " ".join(self._tag.get_text(" ").split())
        node = self.select_one(selector)
        return node.text() if node is not None else ""

    def has_class(self, name: str) -> bool:
        return name in (self._tag.get("class") or [])

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value


def parse_document(html: str) -> SoupNode:
    return SoupNode(BeautifulSoup(html, "html.parser"))
