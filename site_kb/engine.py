# File: site_kb/engine.py
"""site_kb.engine: orchestration of one crawl run, from seed URL to saved knowledge base."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from site_kb.config import CrawlerConfig
from site_kb.crawler.crawler import KnowledgeBaseCrawler
from site_kb.crawler.models import KnowledgeBase, PageRecord
from site_kb.logger import logger
from site_kb.report.json_report import build_knowledge_base, write_knowledge_base

__all__ = ["start_crawl", "save_pages"]


async def start_crawl(config: CrawlerConfig) -> List[PageRecord]:
    """Crawl ``config.origin`` and return the extracted pages in discovery order."""
    async with KnowledgeBaseCrawler(config) as crawler:
        return await crawler.crawl()


def save_pages(
    pages: List[PageRecord], config: CrawlerConfig, output_path: Optional[Path] = None
) -> Tuple[KnowledgeBase, Path]:
    """Build the knowledge base for *pages* and write it; write errors propagate."""
    kb = build_knowledge_base(pages, config.origin)
    target = output_path or config.output_path
    try:
        return kb, write_knowledge_base(kb, target)
    except OSError as exc:
        logger.error("Saving the knowledge base failed: %s", exc)
        raise

