"""HTML access for SiteKB.

The extractor never touches BeautifulSoup directly. It talks to the narrow
:class:`HtmlDocument` protocol instead:

* ``select(role)`` : elements playing a :class:`ContentRole` (links, title,
  main region, headings…), in document order;
* ``remove(role)`` : drop every subtree playing that role;
* ``text()`` : raw text of the whole document.

:func:`parse_html` returns the BeautifulSoup-backed implementation. Another
parser only has to provide the two small protocols below.
"""
from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import List, Optional, Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("ContentRole", "HtmlElement", "HtmlDocument", "SoupDocument", "parse_html")


class ContentRole(str, Enum):
    """Parts of a page the extractor cares about, keyed by CSS selector."""

    LINK = "a[href]"
    NON_CONTENT = "script, style, nav, header, footer, iframe, noscript"
    TITLE = "title"
    TOP_HEADING = "h1"
    HEADING = "h1, h2, h3"
    MAIN = "main"
    BODY = "body"
    HEAD = "head, title"


class HtmlElement(Protocol):
    def text(self) -> str: ...

    def attr(self, name: str) -> Optional[str]: ...


class HtmlDocument(Protocol):
    def select(self, role: ContentRole) -> List[HtmlElement]: ...

    def remove(self, role: ContentRole) -> None: ...

    def text(self) -> str: ...


class _SoupElement:
    __slots__ = ("_tag",)

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    def text(self) -> str:
        return self._tag.get_text()

    def attr(self, name: str) -> Optional[str]:
        value = self._tag.get(name)
        if isinstance(value, list):  # multi-valued attributes such as class
            return " ".join(value)
        return value


class SoupDocument:
    """:class:`HtmlDocument` backed by BeautifulSoup with the stdlib parser."""

    def __init__(self, markup: str) -> None:
        self._soup = BeautifulSoup(markup, "html.parser")

    def select(self, role: ContentRole) -> List[HtmlElement]:
        return [_SoupElement(tag) for tag in self._soup.select(role.value)]

    def remove(self, role: ContentRole) -> None:
        for tag in self._soup.select(role.value):
            # nested matches die with their ancestor
            if not tag.decomposed:
                tag.decompose()

    def text(self) -> str:
        return self._soup.get_text()


def parse_html(markup: str) -> HtmlDocument:
    """Parse *markup* into an :class:`HtmlDocument`."""
    return SoupDocument(markup)
