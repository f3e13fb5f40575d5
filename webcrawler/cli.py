#!/usr/bin/env python3
"""
Command-line entry point of the webcrawler.

Commands:
  crawl     Crawl a site down to a depth, caching every page on disk
  config    Show the effective configuration

Common options:
  --config PATH       YAML/JSON config file (defaults are used when omitted)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only when omitted)

crawl options:
  --url URL           Starting URL (required unless set in the config)
  --dir PATH          Destination directory for downloaded pages
  --depth INT         Maximum crawl depth
  --concurrency INT   Child branches in flight per page

Exit status is 0 on completion and 130 when the crawl was interrupted by
SIGINT/SIGTERM; running the same command again resumes from the cache.

Example:
  webcrawler crawl --url https://example.com --dir storage --depth 3
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from webcrawler import __version__
from webcrawler.config import CrawlerConfig, load_config
from webcrawler.crawler import CrawlerError
from webcrawler.engine import start_crawl
from webcrawler.logger import configure

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])

EXIT_INTERRUPTED = 130


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='webcrawler, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON config file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout only when omitted)'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file):
    """webcrawler command group."""
    configure(level=log_level, log_file=log_file)
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--url', '-u', 'url', default=None, help='Starting URL to crawl')
@click.option(
    '--dir', '-d', 'destination_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Destination directory for downloaded pages  [default: storage]'
)
@click.option('--depth', 'depth', type=click.IntRange(min=0), default=None,
              help='Maximum crawl depth  [default: 3]')
@click.option('--concurrency', 'concurrency', type=click.IntRange(min=1), default=None,
              help='Child branches in flight per page  [default: CPU count]')
@click.pass_context
def crawl(ctx, url, destination_dir, depth, concurrency):
    """Crawl a site and save every page under the destination directory."""
    overrides = {
        'start_url': url,
        'destination_dir': destination_dir,
        'max_depth': depth,
        'max_concurrency': concurrency,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    try:
        cfg = CrawlerConfig(**{**ctx.obj['config'].model_dump(), **overrides})
    except ValidationError as e:
        print_error(f'Invalid options: {e}')
    if cfg.start_url is None:
        print_error('Error: --url is required')

    click.echo(f'Starting crawl of {cfg.start_url}')
    click.echo(f'Destination directory: {cfg.destination_dir}')
    click.echo(f'Max depth: {cfg.max_depth}')
    click.echo('Press Ctrl-C to stop')
    click.echo()

    try:
        report = asyncio.run(start_crawl(cfg, handle_signals=True))
    except (CrawlerError, ValueError, OSError) as e:
        print_error(f'Crawl failed: {e}')

    click.echo()
    click.echo('=' * 60)
    click.echo(f'Crawl complete! Visited {len(report.visited)} page(s)')
    click.echo(f'Pages saved to: {report.destination_dir}')
    click.echo('=' * 60)

    if report.interrupted:
        click.echo('Crawl was interrupted. Resume by running the same command again.')
        ctx.exit(EXIT_INTERRUPTED)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(json.dumps(cfg.model_dump(mode='json'), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli()
