"""
news_digest
Fetches RSS/Atom feeds and renders a deduplicated headline digest
"""

__version__ = "0.1.0"

from .utils import DedupCache, create_http_session, truncate_text, format_iso_timestamp
from .core import (
    FeedSource,
    Item,
    RSSFetcher,
    ContentFilter,
    DigestPipeline,
    DigestResult,
    extract_items,
    decode_entities,
)
from .formatters import OutputFormatter

__all__ = [
    # Utils
    'DedupCache',
    'create_http_session',
    'truncate_text',
    'format_iso_timestamp',
    # Core
    'FeedSource',
    'Item',
    'RSSFetcher',
    'ContentFilter',
    'DigestPipeline',
    'DigestResult',
    'extract_items',
    'decode_entities',
    # Formatters
    'OutputFormatter',
]
