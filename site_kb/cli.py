#!/usr/bin/env python3
"""
Command line entry point for the SiteKB crawler.

Commands:
  crawl     Crawl the site and write the knowledge base (default command)
  config    Print the effective configuration
  show      Print a summary of an existing knowledge base

Common options:
  --config PATH       YAML/JSON config (built-in defaults if omitted)
  --limit INT         Maximum number of pages to visit (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Rotating log file (stdout only if omitted)
  --log-format FORMAT Logging format string

crawl options:
  --output PATH       Where to write the knowledge base (overrides output_path)

Additionally:
  --version, -v       Show the SiteKB version

Example:
  site-kb --limit 20 crawl --output public/knowledge-base.json
"""
import asyncio
import sys
from pathlib import Path

import click

from site_kb import __version__
from site_kb.config import load_config
from site_kb.engine import save_pages, start_crawl
from site_kb.logger import DEFAULT_FORMAT, init_logging
from site_kb.report.json_report import load_knowledge_base

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])
SAMPLE_PAGES = 3


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS, invoke_without_command=True)
@click.version_option(__version__, '--version', '-v', message='SiteKB, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='YAML or JSON configuration file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Maximum number of pages to visit (overrides max_pages).'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level.'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout only if omitted).'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Logging format string.'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file, log_format):
    """SiteKB: crawl a website into a knowledge base for the chat assistant."""
    init_logging(level=log_level, log_file=log_file, log_format=log_format)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg
    if ctx.invoked_subcommand is None:
        ctx.invoke(crawl)


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--output', '-o', 'output_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Where to write the knowledge base (overrides output_path).'
)
@click.pass_context
def crawl(ctx, output_path=None):
    """Crawl the configured site and write the knowledge base."""
    cfg = ctx.obj['config']
    click.echo(f'Crawling {cfg.origin} (max pages: {cfg.max_pages})')
    try:
        pages = asyncio.run(start_crawl(cfg))
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    try:
        kb, saved = save_pages(pages, cfg, output_path)
    except OSError as e:
        print_error(f'Failed to save knowledge base: {e}')

    click.echo(f'Scraped {kb.page_count} pages')
    click.echo(f'Saved to: {saved}')
    for i, page in enumerate(kb.pages, start=1):
        click.echo(f'  {i}. {page.title or page.url}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


@cli.command('show', context_settings=CONTEXT_SETTINGS)
@click.argument(
    'kb_path',
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.pass_context
def show(ctx, kb_path):
    """Summarize a knowledge base (defaults to the configured output path)."""
    path = kb_path or ctx.obj['config'].output_path
    try:
        kb = load_knowledge_base(path)
    except FileNotFoundError:
        print_error(f'Knowledge base not found: {path}')
    except (OSError, ValueError) as e:
        print_error(f'Cannot read knowledge base: {e}')

    click.echo(f'Pages indexed: {kb.page_count}')
    click.echo(f'Last updated: {kb.last_updated}')
    click.echo(f'Base URL: {kb.base_url}')
    if not kb.pages:
        return
    shown = kb.pages[:SAMPLE_PAGES]
    click.echo(f'Sample pages (first {len(shown)} of {kb.page_count}):')
    for page in shown:
        click.echo(f'  - {page.title or "(untitled)"}: {page.url}')
        if page.headings:
            click.echo(f'    headings: {", ".join(page.headings)}')
        click.echo(f'    {page.content[:150]}')


if __name__ == "__main__":
    cli()
