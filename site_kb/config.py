"""
Crawl configuration for SiteKB.

A run needs no configuration file: :class:`CrawlerConfig` carries the
built-in defaults. A YAML or JSON file may override any of them; values are
validated with Pydantic.
"""
from __future__ import annotations

import errno
import json
import os
import re
from pathlib import Path
from typing import Any, Tuple, Union
from urllib.parse import urlsplit

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

DEFAULT_BASE_URL = "https://cflar.dream.press"
DEFAULT_OUTPUT = Path("public/knowledge-base.json")

# documents, images, archives, media, stylesheets, scripts, feeds, data
DEFAULT_EXCLUDED_EXTENSIONS: Tuple[str, ...] = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp",
    ".zip", ".rar", ".7z", ".gz", ".tar",
    ".mp3", ".mp4", ".webm", ".wav",
    ".css", ".js", ".mjs", ".map",
    ".xml", ".rss", ".atom",
    ".json", ".csv", ".txt",
)
DEFAULT_EXCLUDED_PREFIXES: Tuple[str, ...] = (
    "/wp-admin",
    "/wp-content",
    "/wp-includes",
    "/wp-json",
    "/wp-login.php",
    "/feed",
    "/assets",
)
DEFAULT_EXCLUDED_SUFFIXES: Tuple[str, ...] = ("/feed",)
# individual posts below a listing section, and date archives
DEFAULT_DEEP_CONTENT_PATTERNS: Tuple[str, ...] = (
    r"/blog/.+",
    r"/\d{4}/\d{2}(?:/|$)",
)


class CrawlerConfig(BaseModel):
    """Settings for one crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True, validate_default=True)

    base_url: HttpUrl = Field(DEFAULT_BASE_URL, description="Origin to crawl; the seed is its root path.")
    max_pages: int = Field(100, ge=1, description="Page budget: maximum number of paths visited.")
    request_delay_ms: int = Field(500, ge=0, description="Politeness pause between requests (ms).")
    content_char_limit: int = Field(5000, ge=1, description="Hard cut for extracted body text.")
    max_headings: int = Field(10, ge=0, description="Headings kept per page.")
    timeout: float = Field(10.0, gt=0, description="Timeout for a single request (seconds).")
    user_agent: str = Field("SiteKBBot/1.0", min_length=1, description="User-Agent header.")
    output_path: Path = Field(DEFAULT_OUTPUT, description="Where the knowledge base is written.")

    excluded_extensions: Tuple[str, ...] = DEFAULT_EXCLUDED_EXTENSIONS
    excluded_prefixes: Tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES
    excluded_suffixes: Tuple[str, ...] = DEFAULT_EXCLUDED_SUFFIXES
    deep_content_patterns: Tuple[str, ...] = DEFAULT_DEEP_CONTENT_PATTERNS

    @field_validator("excluded_extensions", mode="after")
    @classmethod
    def _dotted_lowercase(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(e.lower() if e.startswith(".") else f".{e.lower()}" for e in v)

    @field_validator("excluded_prefixes", "excluded_suffixes", mode="after")
    @classmethod
    def _rooted(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(p if p.startswith("/") else f"/{p}" for p in (s.rstrip("/") for s in v) if p)

    @field_validator("deep_content_patterns", mode="after")
    @classmethod
    def _compilable(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid pattern {pattern!r}: {exc}") from exc
        return v

    @property
    def origin(self) -> str:
        """``scheme://host[:port]`` of :attr:`base_url`, without a trailing slash."""
        parts = urlsplit(str(self.base_url))
        return f"{parts.scheme}://{parts.netloc}"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> CrawlerConfig:
    """
    Read YAML or JSON and return a validated :class:`CrawlerConfig`.

    ``None`` returns the built-in defaults. A missing file raises
    FileNotFoundError; invalid values raise pydantic's ValidationError.
    """
    if path is None:
        return CrawlerConfig()

    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlerConfig(**data)


__all__ = ["CrawlerConfig", "load_config", "ValidationError"]
