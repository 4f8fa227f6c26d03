"""
Link normalization and filtering for the SiteKB crawler.

Discovered hrefs are reduced to a path key (query and fragment dropped,
trailing slash stripped except for the root) and only kept when
:class:`LinkFilter` accepts them.
"""
from __future__ import annotations

import re
from typing import Iterable, List, NamedTuple, Optional
from urllib.parse import quote, urljoin, urlsplit

from site_kb.config import CrawlerConfig
from site_kb.parser.html_parser import ContentRole, HtmlDocument

__all__ = ("ResolvedLink", "resolve_link", "normalize_path", "LinkFilter", "extract_links")

_HTTP_SCHEMES = frozenset({"http", "https"})
# existing %XX escapes and reserved path characters stay as written
_PATH_SAFE = "/%:@!$&'()*+,;="


class ResolvedLink(NamedTuple):
    scheme: str
    host: str
    path: str


def _canonical_path(path: str) -> str:
    if not path:
        return "/"
    path = quote(path, safe=_PATH_SAFE)
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    return path


def resolve_link(href: str, page_url: str) -> Optional[ResolvedLink]:
    """
    Resolve *href* against *page_url* and reduce it to a comparable key.

    Returns None for hrefs that are not valid URLs.
    """
    try:
        parts = urlsplit(urljoin(page_url, href.strip()))
        host = parts.hostname or ""
    except ValueError:
        # e.g. unbalanced IPv6 brackets or a bad port
        return None
    return ResolvedLink(parts.scheme.lower(), host, _canonical_path(parts.path))


def normalize_path(href: str, page_url: str) -> Optional[str]:
    """Path component of *href* resolved against *page_url*, or None if malformed."""
    link = resolve_link(href, page_url)
    return None if link is None else link.path


class LinkFilter:
    """Decides which same-origin paths are worth crawling."""

    def __init__(
        self,
        origin: str,
        excluded_extensions: Iterable[str] = (),
        excluded_prefixes: Iterable[str] = (),
        excluded_suffixes: Iterable[str] = (),
        deep_content_patterns: Iterable[str] = (),
    ) -> None:
        self.host = (urlsplit(origin).hostname or "").lower()
        self.excluded_extensions = tuple(e.lower() for e in excluded_extensions)
        self.excluded_prefixes = tuple(p.lower() for p in excluded_prefixes)
        self.excluded_suffixes = tuple(s.lower() for s in excluded_suffixes)
        self._deep: List[re.Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in deep_content_patterns]

    @classmethod
    def from_config(cls, config: CrawlerConfig) -> LinkFilter:
        return cls(
            config.origin,
            excluded_extensions=config.excluded_extensions,
            excluded_prefixes=config.excluded_prefixes,
            excluded_suffixes=config.excluded_suffixes,
            deep_content_patterns=config.deep_content_patterns,
        )

    def accepts(self, link: ResolvedLink) -> bool:
        if link.scheme not in _HTTP_SCHEMES or link.host != self.host:
            return False
        return self.accepts_path(link.path)

    def accepts_path(self, path: str) -> bool:
        """Category rules only; the origin check is done by :meth:`accepts`."""
        lowered = path.lower()
        if lowered.endswith(self.excluded_extensions):
            return False
        trimmed = lowered.rstrip("/") or "/"
        for prefix in self.excluded_prefixes:
            if trimmed == prefix or trimmed.startswith(prefix + "/"):
                return False
        if trimmed.endswith(self.excluded_suffixes):
            return False
        return not any(p.search(path) for p in self._deep)


def extract_links(document: HtmlDocument, page_url: str, link_filter: LinkFilter) -> List[str]:
    """
    Accepted paths linked from *document*, deduplicated, in document order.

    Must run on the unstripped document so navigation links are seen.
    """
    seen: dict[str, None] = {}
    for anchor in document.select(ContentRole.LINK):
        href = anchor.attr("href")
        if not href:
            continue
        link = resolve_link(href, page_url)
        if link is None or not link_filter.accepts(link):
            continue
        seen.setdefault(link.path, None)
    return list(seen)
