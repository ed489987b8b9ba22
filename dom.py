"""Thin node wrapper over BeautifulSoup used by every field resolver.

Resolvers only ever need five things from the parsed page: CSS queries
returning many or one element, cleaned text, attributes and the parent
element. Keeping that surface small means extractors.py never touches bs4
directly.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from utils import clean

EMPTY_HTML = "<html><head></head><body></body></html>"


class Node:
    """One element (or the whole document) of a parsed HTML page."""

    __slots__ = ("_element",)

    def __init__(self, element: Tag):
        self._element = element

    @property
    def name(self) -> str:
        return self._element.name

    def find(self, selector: str) -> list[Node]:
        """All descendants matching a CSS selector, in document order."""
        return [Node(el) for el in self._element.select(selector)]

    def find_one(self, selector: str) -> Node | None:
        """First descendant matching a CSS selector, or None."""
        el = self._element.select_one(selector)
        return Node(el) if el is not None else None

    def text(self) -> str:
        """Visible text with entities decoded and whitespace collapsed.

        Strings are joined without a separator: IMDb splits values like
        "2<!-- -->h" with React comments, which must not turn into "2 h".
        """
        return clean(self._element.get_text())

    def raw_text(self) -> str:
        """Unmodified text content (used for <script> bodies)."""
        if self._element.string is not None:
            return str(self._element.string)
        return self._element.get_text()

    def attribute(self, name: str) -> str | None:
        value = self._element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return value

    def has_attribute(self, name: str) -> bool:
        return self._element.has_attr(name)

    def parent(self) -> Node | None:
        parent = self._element.parent
        return Node(parent) if parent is not None else None

    def html(self) -> str:
        return str(self._element)

    def __repr__(self) -> str:
        return f"<Node {self.name}>"


def parse_html(markup: str | bytes) -> Node:
    """Parse an HTML page into a document Node."""
    return Node(BeautifulSoup(markup or EMPTY_HTML, "lxml"))


def empty_document() -> Node:
    """Well-defined empty page, used when a response carries no usable body."""
    return parse_html(EMPTY_HTML)
