# site_kb/crawler/fetcher.py
"""
Fetcher module: one GET per URL, no retries.

Every 2xx body that can be read as text is handed to the HTML parser,
whatever its declared type. Network errors, timeouts, non-2xx statuses and
binary media are logged and reported as ``None`` so the crawl can move on.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession

from site_kb.logger import get_logger

log = get_logger("fetcher")

_BINARY_MAJOR_TYPES = frozenset({"image", "audio", "video", "font"})
_BINARY_TYPES = frozenset({
    "application/octet-stream",
    "application/pdf",
    "application/zip",
    "application/gzip",
    "application/x-tar",
    "application/x-7z-compressed",
    "application/vnd.rar",
    "application/msword",
})


def is_binary_type(content_type: str) -> bool:
    """True for media types whose body cannot be read as markup."""
    mime = content_type.split(";", 1)[0].strip().lower()
    if not mime:
        return False
    return mime.split("/", 1)[0] in _BINARY_MAJOR_TYPES or mime in _BINARY_TYPES


class Fetcher:
    """Retrieves page bodies through a shared aiohttp session."""

    def __init__(self, session: ClientSession) -> None:
        self.session = session

    async def fetch(self, url: str) -> Optional[str]:
        """
        Return the decoded body of *url*, or None if it cannot be used.
        """
        try:
            async with self.session.get(url, raise_for_status=False) as resp:
                if not 200 <= resp.status < 300:
                    log.warning("Failed to fetch %s: HTTP %d", url, resp.status)
                    return None
                ctype = resp.headers.get("Content-Type", "")
                if is_binary_type(ctype):
                    log.warning("Skipping %s: binary content (%s)", url, ctype)
                    return None
                return await resp.text(errors="replace")
        except asyncio.TimeoutError:
            log.warning("Failed to fetch %s: timed out", url)
        except ClientError as exc:
            log.warning("Failed to fetch %s: %s", url, exc)
        return None
