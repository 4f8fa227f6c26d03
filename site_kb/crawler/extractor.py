"""
Content extraction: turns one fetched HTML page into a :class:`PageRecord`.

Extraction is a pure function of the URL and markup apart from the
``scrapedAt`` timestamp.
"""
from __future__ import annotations

import re
from typing import List, NamedTuple

from site_kb.config import CrawlerConfig
from site_kb.crawler.link_extractor import LinkFilter, extract_links
from site_kb.crawler.models import PageRecord, utc_timestamp
from site_kb.parser.html_parser import ContentRole, HtmlDocument, parse_html

__all__ = ("ExtractedPage", "extract_page", "clean_text")

_WHITESPACE_RE = re.compile(r"\s+")


class ExtractedPage(NamedTuple):
    record: PageRecord
    links: List[str]


def clean_text(text: str) -> str:
    """Collapse every whitespace run into a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def _title(document: HtmlDocument) -> str:
    titles = document.select(ContentRole.TITLE)
    title = titles[0].text().strip() if titles else ""
    if title:
        return title
    h1 = document.select(ContentRole.TOP_HEADING)
    return h1[0].text().strip() if h1 else ""


def _body_text(document: HtmlDocument) -> str:
    regions = document.select(ContentRole.MAIN) or document.select(ContentRole.BODY)
    if not regions:
        # html.parser builds no <body> when the tag is omitted
        document.remove(ContentRole.HEAD)
        return document.text()
    return "".join(region.text() for region in regions)


def _headings(document: HtmlDocument, limit: int) -> List[str]:
    headings: List[str] = []
    for element in document.select(ContentRole.HEADING):
        if len(headings) >= limit:
            break
        text = element.text().strip()
        if text:
            headings.append(text)
    return headings


def extract_page(
    url: str,
    html: str,
    link_filter: LinkFilter,
    *,
    content_char_limit: int = 5000,
    max_headings: int = 10,
) -> ExtractedPage:
    """
    Build the record for *url* and collect its crawlable outbound paths.

    Links are harvested before non-content markup is stripped, so menus in
    ``<nav>``/``<header>``/``<footer>`` still feed the frontier. The body
    text is cut at *content_char_limit* characters without regard for word
    boundaries.
    """
    document = parse_html(html)
    links = extract_links(document, url, link_filter)

    document.remove(ContentRole.NON_CONTENT)

    title = _title(document)
    headings = tuple(_headings(document, max_headings))
    # last: may drop <head> from a document without <body>
    content = clean_text(_body_text(document))[:content_char_limit]

    record = PageRecord(
        url=url,
        title=title,
        content=content,
        headings=headings,
        scraped_at=utc_timestamp(),
    )
    return ExtractedPage(record, links)


def extract_with_config(url: str, html: str, link_filter: LinkFilter, config: CrawlerConfig) -> ExtractedPage:
    return extract_page(
        url,
        html,
        link_filter,
        content_char_limit=config.content_char_limit,
        max_headings=config.max_headings,
    )
