from __future__ import annotations

import asyncio
import time
from typing import List, Optional

from aiohttp import ClientSession, ClientTimeout

from site_kb.config import CrawlerConfig
from site_kb.crawler.extractor import ExtractedPage, extract_with_config
from site_kb.crawler.fetcher import Fetcher
from site_kb.crawler.link_extractor import LinkFilter
from site_kb.crawler.models import CrawlState, PageRecord
from site_kb.logger import get_logger

__all__ = ("KnowledgeBaseCrawler", "ROOT_PATH")

ROOT_PATH = "/"


class KnowledgeBaseCrawler:
    """Serial breadth-first crawler for a single origin.

    One request is in flight at a time and every request is followed by the
    configured politeness delay. Pages that fail are skipped, never retried.
    """

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config
        self.origin = config.origin
        self.link_filter = LinkFilter.from_config(config)
        self.state = CrawlState()
        self.session: Optional[ClientSession] = None
        self.logger = get_logger("crawler")

    async def __aenter__(self) -> KnowledgeBaseCrawler:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            headers={"User-Agent": self.config.user_agent},
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    async def crawl(self) -> List[PageRecord]:
        """Run the crawl from the root path and return pages in discovery order."""
        if not self.session:
            raise RuntimeError("Session not initialized")
        fetcher = Fetcher(self.session)
        state = self.state = CrawlState()
        state.enqueue(ROOT_PATH)
        delay = self.config.request_delay_ms / 1000
        budget = self.config.max_pages

        self.logger.info("Starting crawl: %s (max pages: %d)", self.origin, budget)
        start = time.monotonic()

        while state.pending and len(state.visited) < budget:
            path = state.pop_next()
            # enqueue() already keeps visited paths out of pending
            if path in state.visited:
                continue
            state.visited.add(path)

            url = f"{self.origin}{path}"
            self.logger.info("Scraping (%d/%d): %s", len(state.visited), budget, url)
            page = await self._process(fetcher, url)
            if page is not None:
                state.pages.append(page.record)
                queued = sum(state.enqueue(link) for link in page.links)
                self.logger.debug("%s: %d links, %d new", url, len(page.links), queued)

            await asyncio.sleep(delay)

        duration = time.monotonic() - start
        if state.pending:
            self.logger.info("Page budget reached with %d paths still pending", len(state.pending))
        self.logger.info(
            "Finished: %d pages from %d visited paths in %.2f s",
            len(state.pages), len(state.visited), duration,
        )
        return list(state.pages)

    async def _process(self, fetcher: Fetcher, url: str) -> Optional[ExtractedPage]:
        html = await fetcher.fetch(url)
        if html is None:
            return None
        try:
            page = extract_with_config(url, html, self.link_filter, self.config)
        except Exception as exc:
            self.logger.warning("Error extracting %s: %s", url, exc)
            return None
        self.logger.info("Scraped: %s", page.record.title or url)
        return page
