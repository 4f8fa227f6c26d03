"""site_kb.crawler: frontier management, fetching and page extraction."""

from site_kb.crawler.crawler import KnowledgeBaseCrawler
from site_kb.crawler.models import CrawlState, KnowledgeBase, PageRecord

__all__ = ["KnowledgeBaseCrawler", "CrawlState", "KnowledgeBase", "PageRecord"]
