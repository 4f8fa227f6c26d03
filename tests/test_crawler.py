# File: tests/test_crawler.py
# Test-suite for the SiteKB serial crawler, run against real aiohttp servers
from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from typing import Dict, Union
from urllib.parse import urlsplit

import pytest
from aiohttp import web

from site_kb.config import CrawlerConfig
from site_kb.crawler.crawler import KnowledgeBaseCrawler
from site_kb.engine import save_pages, start_crawl
from site_kb.report.json_report import load_knowledge_base

# --------------------------------------------------------------------------- #
#                               Helper utilities                              #
# --------------------------------------------------------------------------- #

#: a page is either HTML text or an HTTP error status
Page = Union[str, int]

THREE_PAGE_SITE: Dict[str, Page] = {
    "/": '<title>Home</title><body><h1>Welcome</h1><a href="/about">About</a><a href="/contact">Contact</a></body>',
    "/about": '<title>About</title><body><p>Our story</p><a href="/">Home</a><a href="/about/team/">Team</a></body>',
    "/contact": "<title>Contact</title><body><p>Call us</p></body>",
    "/about/team": "<title>Team</title><body><p>People</p></body>",
}


def build_site(pages: Dict[str, Page], hits: Dict[str, int] | None = None) -> web.Application:
    """aiohttp app serving *pages*; request counts per path go into *hits*."""
    app = web.Application()

    def make_handler(path: str, page: Page):
        async def handler(_):
            if hits is not None:
                hits[path] = hits.get(path, 0) + 1
            if isinstance(page, int):
                return web.Response(status=page, text="error")
            return web.Response(text=page, content_type="text/html")

        return handler

    for path, page in pages.items():
        app.router.add_get(path, make_handler(path, page))
    return app


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


def make_config(base: str, **overrides) -> CrawlerConfig:
    options = dict(base_url=base, request_delay_ms=0, timeout=2.0, user_agent="TestAgent/1.0")
    options.update(overrides)
    return CrawlerConfig(**options)


def paths(pages) -> list[str]:
    return [urlsplit(p.url).path for p in pages]


async def crawl(config: CrawlerConfig) -> KnowledgeBaseCrawler:
    async with KnowledgeBaseCrawler(config) as crawler:
        await asyncio.wait_for(crawler.crawl(), timeout=15)
    return crawler


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_discovery_order_with_filtered_subpage(unused_tcp_port: int):
    async for base in serve_app(build_site(THREE_PAGE_SITE), unused_tcp_port):
        config = make_config(base, deep_content_patterns=[r"^/about/.+"])
        pages = await start_crawl(config)

    assert paths(pages) == ["/", "/about", "/contact"]
    assert pages[0].url == f"{base}/"
    assert pages[0].title == "Home"
    assert pages[0].headings == ("Welcome",)


@pytest.mark.asyncio()
async def test_discovery_order_with_subpage_allowed(unused_tcp_port: int):
    async for base in serve_app(build_site(THREE_PAGE_SITE), unused_tcp_port):
        pages = await start_crawl(make_config(base))

    assert paths(pages) == ["/", "/about", "/contact", "/about/team"]


@pytest.mark.asyncio()
async def test_failed_page_is_skipped(unused_tcp_port: int, tmp_path):
    site = {**THREE_PAGE_SITE, "/contact": 500}
    async for base in serve_app(build_site(site), unused_tcp_port):
        config = make_config(base, deep_content_patterns=[r"^/about/.+"])
        pages = await start_crawl(config)

    assert paths(pages) == ["/", "/about"]
    kb, saved = save_pages(pages, config, tmp_path / "kb.json")
    loaded = load_knowledge_base(saved)
    assert loaded.page_count == kb.page_count == 2
    assert loaded.base_url == base


@pytest.mark.asyncio()
async def test_each_path_fetched_once(unused_tcp_port: int):
    hits: Dict[str, int] = {}
    site = {
        "/": '<a href="/about/">A</a><a href="/about#x">B</a><a href="/about?utm_source=y">C</a><a href="/">Self</a>',
        "/about": '<a href="/">Home</a><a href="/about">Self</a>',
    }
    async for base in serve_app(build_site(site, hits), unused_tcp_port):
        crawler = await crawl(make_config(base))

    assert hits == {"/": 1, "/about": 1}
    assert paths(crawler.state.pages) == ["/", "/about"]
    assert crawler.state.visited == {"/", "/about"}
    assert not crawler.state.pending


@pytest.mark.asyncio()
async def test_page_budget(unused_tcp_port: int):
    links = "".join(f'<a href="/page{i}">P{i}</a>' for i in range(1, 20))
    site: Dict[str, Page] = {"/": links}
    site.update({f"/page{i}": f"<p>Page {i}</p>" for i in range(1, 20)})
    async for base in serve_app(build_site(site), unused_tcp_port):
        crawler = await crawl(make_config(base, max_pages=5))

    assert len(crawler.state.visited) == 5
    assert paths(crawler.state.pages) == ["/", "/page1", "/page2", "/page3", "/page4"]
    assert len(crawler.state.pending) == 15


@pytest.mark.asyncio()
async def test_budget_counts_failed_pages(unused_tcp_port: int):
    site: Dict[str, Page] = {"/": '<a href="/gone">G</a><a href="/ok">O</a>', "/gone": 404, "/ok": "<p>ok</p>"}
    async for base in serve_app(build_site(site), unused_tcp_port):
        crawler = await crawl(make_config(base, max_pages=2))

    assert crawler.state.visited == {"/", "/gone"}
    assert paths(crawler.state.pages) == ["/"]


@pytest.mark.asyncio()
async def test_missing_root_produces_empty_crawl(unused_tcp_port: int):
    async for base in serve_app(build_site({"/other": "<p>x</p>"}), unused_tcp_port):
        pages = await start_crawl(make_config(base))

    assert pages == []


@pytest.mark.asyncio()
async def test_text_responses_are_recorded_and_binary_skipped(unused_tcp_port: int):
    app = build_site({"/": '<a href="/notes">Notes</a><a href="/logo">Logo</a><a href="/info">Info</a>', "/info": "<p>Info</p>"})

    async def notes(_):
        return web.Response(text="Opening hours: 9-5", content_type="text/plain")

    async def logo(_):
        return web.Response(body=b"\x89PNG\r\n\x1a\n", content_type="image/png")

    app.router.add_get("/notes", notes)
    app.router.add_get("/logo", logo)
    async for base in serve_app(app, unused_tcp_port):
        pages = await start_crawl(make_config(base))

    assert paths(pages) == ["/", "/notes", "/info"]
    assert pages[1].content == "Opening hours: 9-5"


@pytest.mark.asyncio()
async def test_timeout_is_isolated(unused_tcp_port: int):
    app = build_site({"/": '<a href="/slow">Slow</a><a href="/fast">Fast</a>', "/fast": "<p>Fast</p>"})

    async def slow(_):
        await asyncio.sleep(2)
        return web.Response(text="<p>Slow</p>", content_type="text/html")

    app.router.add_get("/slow", slow)
    async for base in serve_app(app, unused_tcp_port):
        pages = await start_crawl(make_config(base, timeout=0.5))

    assert paths(pages) == ["/", "/fast"]


@pytest.mark.asyncio()
async def test_requests_are_serial_and_delayed(unused_tcp_port: int):
    in_flight = {"now": 0, "max": 0}
    app = web.Application()

    async def handler(request):
        in_flight["now"] += 1
        in_flight["max"] = max(in_flight["max"], in_flight["now"])
        await asyncio.sleep(0.05)
        in_flight["now"] -= 1
        body = '<a href="/a">A</a><a href="/b">B</a>' if request.path == "/" else "<p>leaf</p>"
        return web.Response(text=body, content_type="text/html")

    for path in ("/", "/a", "/b"):
        app.router.add_get(path, handler)

    async for base in serve_app(app, unused_tcp_port):
        start = time.perf_counter()
        pages = await start_crawl(make_config(base, request_delay_ms=150))
        elapsed = time.perf_counter() - start

    assert len(pages) == 3
    assert in_flight["max"] == 1
    # three fetches, each followed by the politeness delay
    assert elapsed >= 3 * (0.05 + 0.15) - 0.05


@pytest.mark.asyncio()
async def test_user_agent_header(unused_tcp_port: int):
    seen = []
    app = web.Application()

    async def root(request):
        seen.append(request.headers.get("User-Agent"))
        return web.Response(text="<p>hi</p>", content_type="text/html")

    app.router.add_get("/", root)
    async for base in serve_app(app, unused_tcp_port):
        await start_crawl(make_config(base))

    assert seen == ["TestAgent/1.0"]


@pytest.mark.asyncio()
async def test_recrawl_is_stable(unused_tcp_port: int, tmp_path):
    async for base in serve_app(build_site(THREE_PAGE_SITE), unused_tcp_port):
        config = make_config(base, request_delay_ms=5)
        first, _ = save_pages(await start_crawl(config), config, tmp_path / "kb.json")
        second, _ = save_pages(await start_crawl(config), config, tmp_path / "kb.json")

    def strip(kb):
        return [{k: v for k, v in p.to_dict().items() if k != "scrapedAt"} for p in kb.pages]

    assert strip(first) == strip(second)
    assert first.last_updated != second.last_updated
    assert load_knowledge_base(tmp_path / "kb.json").last_updated == second.last_updated


@pytest.mark.asyncio()
async def test_crawl_requires_context_manager():
    crawler = KnowledgeBaseCrawler(make_config("http://example.com"))
    with pytest.raises(RuntimeError):
        await crawler.crawl()
