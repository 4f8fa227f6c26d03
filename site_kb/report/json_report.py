# site_kb/report/json_report.py

"""
Knowledge-base persistence for SiteKB.

The document is always written whole: JSON goes to a temporary file next to
the target which then replaces it, so readers never see a partial file.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping

from site_kb.crawler.models import KnowledgeBase, PageRecord, utc_timestamp
from site_kb.logger import get_logger

log = get_logger("report")

__all__ = [
    "KnowledgeBaseWriteError",
    "build_knowledge_base",
    "write_knowledge_base",
    "load_knowledge_base",
]


class KnowledgeBaseWriteError(OSError):
    """The knowledge base could not be persisted."""


def build_knowledge_base(pages: Iterable[PageRecord], base_url: str) -> KnowledgeBase:
    """Wrap the crawled *pages* into a fresh document stamped with the current time."""
    return KnowledgeBase(last_updated=utc_timestamp(), base_url=base_url, pages=tuple(pages))


def write_knowledge_base(kb: KnowledgeBase, output_path: Path | str) -> Path:
    """
    Save *kb* as JSON at *output_path*, replacing any previous document.

    :raises KnowledgeBaseWriteError: if the directory or the file cannot be written
    :return: Path of the saved file

    Example:
    ```python
    kb = build_knowledge_base(pages, "https://example.com")
    path = write_knowledge_base(kb, "public/knowledge-base.json")
    ```
    """
    output = Path(output_path)
    tmp_name = None
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{output.name}.", suffix=".tmp", dir=output.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(kb.to_dict(), f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, output)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise KnowledgeBaseWriteError(f"Cannot write knowledge base to {output}: {exc}") from exc

    log.info("Knowledge base saved: %s (%d pages)", output, kb.page_count)
    return output


def _parse(data: Any) -> KnowledgeBase:
    if not isinstance(data, Mapping):
        raise ValueError(f"Knowledge base must be a JSON object, got {type(data).__name__}")
    pages = data.get("pages")
    if not isinstance(pages, list):
        raise ValueError("Knowledge base has no 'pages' array")
    try:
        records = tuple(PageRecord.from_dict(p) for p in pages)
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Malformed page entry: {exc}") from exc
    kb = KnowledgeBase(
        last_updated=str(data.get("lastUpdated", "")),
        base_url=str(data.get("baseUrl", "")),
        pages=records,
    )
    declared = data.get("pageCount")
    if declared is not None and declared != kb.page_count:
        log.warning("pageCount says %s but %d pages are present", declared, kb.page_count)
    return kb


def load_knowledge_base(path: Path | str) -> KnowledgeBase:
    """Read a document written by :func:`write_knowledge_base`."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {p}: {exc}") from exc
    return _parse(data)
