"""
Core modules
Feed fetching, item extraction, filtering and the digest pipeline
"""

from .models import FeedSource, Item
from .normalizer import decode_entities, clean_text
from .extractor import PatternExtractor, FeedparserExtractor, build_extractor, extract_items, parse_published
from .rss_fetcher import RSSFetcher
from .content_filter import ContentFilter, filter_recent, dedupe_by_url, sort_by_recency
from .pipeline import DigestPipeline, DigestResult, FeedResult

__all__ = [
    'FeedSource',
    'Item',
    'decode_entities',
    'clean_text',
    'PatternExtractor',
    'FeedparserExtractor',
    'build_extractor',
    'extract_items',
    'parse_published',
    'RSSFetcher',
    'ContentFilter',
    'filter_recent',
    'dedupe_by_url',
    'sort_by_recency',
    'DigestPipeline',
    'DigestResult',
    'FeedResult',
]
