"""Logging setup for **SiteKB**.

All modules log through children of one project logger, so a single call to
:func:`configure` controls the whole crawler::

    from site_kb.logger import get_logger
    log = get_logger("crawler")        # -> "SiteKB.crawler"
    log.info("Crawl started")

Console output always goes to stdout; an optional log file rotates at 5 MB.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SiteKB"

_LevelT = Union[int, str]


def _console_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(file: Path | str, fmt: str) -> logging.Handler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _close_handlers(project_logger: logging.Logger) -> None:
    for handler in list(project_logger.handlers):
        project_logger.removeHandler(handler)
        handler.close()


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Point every ``SiteKB.*`` logger at stdout and, if given, *log_file*.

    Handlers from an earlier call are closed first, so running several crawls
    in one process (or one test session) never duplicates lines or leaks
    open log files. Records stop at the ``SiteKB`` logger and do not reach
    the root logger.
    """
    project_logger = logging.getLogger(LOGGER_NAME)
    _close_handlers(project_logger)

    handlers = [_console_handler(log_format)]
    if log_file is not None:
        handlers.append(_rotating_handler(log_file, log_format))
    for handler in handlers:
        project_logger.addHandler(handler)

    project_logger.setLevel(level)
    project_logger.propagate = False
    return project_logger


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry point used by the CLI; always replaces existing handlers."""
    return configure(level=level, log_file=log_file, log_format=log_format)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the project logger or one of its children."""
    return logging.getLogger(LOGGER_NAME if not name else f"{LOGGER_NAME}.{name}")


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger", "LOGGER_NAME"]
