"""
Command line entry point
Fetches the configured feeds and writes the digest
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import load_config, resolve_feeds
from .core.content_filter import ContentFilter
from .core.extractor import EXTRACTOR_NAMES, build_extractor
from .core.pipeline import DigestPipeline, DigestResult
from .core.rss_fetcher import DEFAULT_USER_AGENT, RSSFetcher
from .exceptions import DigestError
from .formatters.output_formatter import OutputFormatter
from .utils import DedupCache

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('config') / 'config.yaml'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='news-digest',
        description='News Digest - fetch RSS/Atom feeds and render a headline digest'
    )
    parser.add_argument(
        '-c', '--config',
        default=None,
        help=f'YAML config file (default: {DEFAULT_CONFIG_PATH} if present)'
    )
    parser.add_argument(
        '-f', '--format',
        choices=OutputFormatter.FORMATS,
        default=None,
        help='output format (default: json)'
    )
    parser.add_argument(
        '--hours',
        type=int,
        default=None,
        help='only keep items from the last N hours (default: 24)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='fetch and report per-feed counts only, no digest output'
    )
    parser.add_argument(
        '--feeds',
        default=None,
        help='custom feed list (JSON, or YAML by extension)'
    )
    parser.add_argument(
        '-n', '--top',
        type=int,
        default=None,
        help='keep at most N items'
    )
    parser.add_argument(
        '--dedup',
        default=None,
        metavar='CACHE_FILE',
        help='skip items delivered by earlier runs, tracked in this JSON file'
    )
    parser.add_argument(
        '-o', '--output',
        default=None,
        help='write the digest to this file instead of stdout'
    )
    parser.add_argument(
        '--parser',
        choices=EXTRACTOR_NAMES,
        default=None,
        help='feed extraction backend (default: pattern)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=None,
        help='number of feeds fetched concurrently (default: 1)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='show debug logging'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def section(config: dict, name: str) -> dict:
    """Return a mutable config section, replacing a missing or null one."""
    if not isinstance(config.get(name), dict):
        config[name] = {}
    return config[name]


def apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Command line arguments override the config file."""
    if args.hours is not None:
        section(config, 'time_filter')['hours'] = args.hours
    if args.format:
        section(config, 'output')['format'] = args.format
    if args.top is not None:
        section(config, 'output')['top'] = args.top
    if args.output:
        section(config, 'output')['file_path'] = args.output
    if args.dedup:
        section(config, 'dedup')['cache_file'] = args.dedup
    if args.parser:
        config['extractor'] = args.parser
    if args.workers is not None:
        section(config, 'fetch')['max_workers'] = args.workers
    return config


def build_pipeline(config: dict, feed_file: Optional[str] = None) -> DigestPipeline:
    """Assemble the pipeline described by a config dict."""
    feeds = resolve_feeds(config, feed_file)

    fetch_config = config.get('fetch') or {}
    fetcher = RSSFetcher(
        timeout=fetch_config.get('timeout') or 10,
        max_redirects=3 if fetch_config.get('max_redirects') is None else fetch_config['max_redirects'],
        user_agent=fetch_config.get('user_agent') or DEFAULT_USER_AGENT,
    )

    cache_file = (config.get('dedup') or {}).get('cache_file')
    cache = DedupCache(str(cache_file)) if cache_file else None

    return DigestPipeline(
        feeds,
        fetcher=fetcher,
        extractor=build_extractor(config.get('extractor') or 'pattern'),
        content_filter=ContentFilter(config),
        cache=cache,
        max_workers=fetch_config.get('max_workers') or 1,
    )


def print_dry_run(result: DigestResult):
    for feed_result in result.feed_results:
        if feed_result.success:
            print(f"✅ {feed_result.feed.name}: {len(feed_result.items)}/{feed_result.total} items (last {result.hours}h)")
        else:
            print(f"❌ {feed_result.feed.name}: {feed_result.error}")
    print(f"\n📊 Total: {len(result.items)} items, {len(result.errors)} errors")


def run(args: argparse.Namespace) -> int:
    config_path = args.config
    if not config_path and DEFAULT_CONFIG_PATH.exists():
        config_path = str(DEFAULT_CONFIG_PATH)

    config = apply_overrides(load_config(config_path), args)
    pipeline = build_pipeline(config, args.feeds)

    logger.info(f"📡 Fetching {len(pipeline.feeds)} feeds (last {pipeline.content_filter.hours}h)")

    if args.dry_run:
        result = pipeline.run()
        print_dry_run(result)
        return 0

    output_config = config.get('output') or {}
    result = pipeline.run(top=output_config.get('top'))
    logger.info(f"📊 {len(result.items)} items, {len(result.errors)} errors")

    formatter = OutputFormatter(output_config.get('format') or 'json')
    output_path = output_config.get('file_path')
    if output_path:
        formatter.save(result, str(output_path))
    else:
        formatter.print_report(result)

    pipeline.commit(result)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )

    try:
        return run(args)
    except (DigestError, OSError, ValueError) as e:
        logger.error(f"Fatal: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
