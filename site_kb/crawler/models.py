"""
Data models for the SiteKB crawler.

Field names are snake_case in Python; :meth:`to_dict` emits the camelCase
keys of the persisted knowledge-base document.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Set, Tuple


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One successfully crawled page."""

    url: str
    title: str
    content: str
    headings: Tuple[str, ...]
    scraped_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "headings": list(self.headings),
            "scrapedAt": self.scraped_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PageRecord:
        return cls(
            url=str(data["url"]),
            title=str(data.get("title", "")),
            content=str(data.get("content", "")),
            headings=tuple(str(h) for h in data.get("headings", ())),
            scraped_at=str(data.get("scrapedAt", "")),
        )


@dataclass(frozen=True, slots=True)
class KnowledgeBase:
    """The persisted document: every page of one crawl run, in discovery order."""

    last_updated: str
    base_url: str
    pages: Tuple[PageRecord, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdated": self.last_updated,
            "baseUrl": self.base_url,
            "pageCount": self.page_count,
            "pages": [p.to_dict() for p in self.pages],
        }


@dataclass(slots=True)
class CrawlState:
    """Frontier of a single crawl run.

    ``pending`` is a dict used as an insertion-ordered set so that the oldest
    discovered path is fetched first. ``visited`` and ``pending`` never share
    a path.
    """

    visited: Set[str] = field(default_factory=set)
    pending: Dict[str, None] = field(default_factory=dict)
    pages: List[PageRecord] = field(default_factory=list)

    def seen(self, path: str) -> bool:
        return path in self.visited or path in self.pending

    def enqueue(self, path: str) -> bool:
        """Queue *path* unless already visited or pending; True if it was added."""
        if self.seen(path):
            return False
        self.pending[path] = None
        return True

    def pop_next(self) -> str:
        path = next(iter(self.pending))
        del self.pending[path]
        return path
