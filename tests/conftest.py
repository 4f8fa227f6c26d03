# File: tests/conftest.py
from pathlib import Path

import pytest

from site_kb.config import CrawlerConfig
from site_kb.crawler.link_extractor import LinkFilter
from site_kb.crawler.models import KnowledgeBase, PageRecord
from site_kb.logger import configure


@pytest.fixture(autouse=True)
def fresh_logging():
    """
    Re-attach the project logger to the current stdout for every test
    (CliRunner swaps sys.stdout and closes it afterwards).
    """
    configure(level="DEBUG")
    yield


@pytest.fixture()
def example_filter() -> LinkFilter:
    """LinkFilter for http://example.com with the default exclusion rules."""
    return LinkFilter.from_config(CrawlerConfig(base_url="http://example.com"))


@pytest.fixture()
def sample_kb() -> KnowledgeBase:
    """
    Two-page knowledge base used by writer and CLI tests.
    """
    pages = (
        PageRecord(
            url="http://example.com/",
            title="Home",
            content="Welcome to the example site.",
            headings=("Welcome", "Services"),
            scraped_at="2024-05-01T10:00:00.000Z",
        ),
        PageRecord(
            url="http://example.com/about",
            title="About us",
            content="We have been around since 1999.",
            headings=(),
            scraped_at="2024-05-01T10:00:01.000Z",
        ),
    )
    return KnowledgeBase(last_updated="2024-05-01T10:00:02.000Z", base_url="http://example.com", pages=pages)


@pytest.fixture()
def kb_file(tmp_path, sample_kb) -> Path:
    from site_kb.report.json_report import write_knowledge_base

    return write_knowledge_base(sample_kb, tmp_path / "kb.json")
