"""
Digest pipeline
fetch -> extract -> time filter per feed, then dedup -> cache -> sort -> top-N
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..utils import DedupCache, utc_now_iso
from .content_filter import ContentFilter, dedupe_by_url, sort_by_recency
from .models import FeedSource, Item

logger = logging.getLogger(__name__)


@dataclass
class FeedResult:
    """Outcome of processing a single feed"""
    feed: FeedSource
    items: List[Item] = field(default_factory=list)
    total: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class DigestResult:
    """Final output of a run, handed to the formatters"""
    items: List[Item]
    errors: List[Dict[str, str]]
    feed_results: List[FeedResult]
    hours: int
    generated: str = field(default_factory=utc_now_iso)

    @property
    def feed_count(self) -> int:
        return len(self.feed_results)

    @property
    def candidate_count(self) -> int:
        """Items that passed the time filter, before dedup."""
        return sum(len(r.items) for r in self.feed_results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated": self.generated,
            "hours": self.hours,
            "count": len(self.items),
            "errors": self.errors,
            "items": [item.to_dict() for item in self.items],
        }


class DigestPipeline:
    """Runs every configured feed through the extraction pipeline"""

    def __init__(self, feeds: Sequence[FeedSource], fetcher, extractor,
                 content_filter: ContentFilter,
                 cache: Optional[DedupCache] = None,
                 max_workers: int = 1):
        """
        Initialize the pipeline

        Args:
            feeds: feed sources, in priority order for dedup
            fetcher: object with ``fetch(url) -> str``
            extractor: object with ``extract(document, feed_name, category)``
            content_filter: time window filter
            cache: persisted dedup cache, or None to disable cross-run dedup
            max_workers: concurrent fetches, 1 for sequential
        """
        self.feeds = tuple(feeds)
        self.fetcher = fetcher
        self.extractor = extractor
        self.content_filter = content_filter
        self.cache = cache
        self.max_workers = max(1, int(max_workers or 1))

    def process_feed(self, feed: FeedSource) -> FeedResult:
        """
        Fetch, extract and time-filter one feed

        Any failure is captured in the result instead of raised.
        """
        try:
            document = self.fetcher.fetch(feed.url)
            items = self.extractor.extract(document, feed.name, feed.category)
            recent = self.content_filter.filter_by_time(items)
        except Exception as e:
            logger.error(f"❌ {feed.name}: {e}")
            return FeedResult(feed=feed, error=str(e) or e.__class__.__name__)

        logger.info(f"✅ {feed.name}: {len(recent)}/{len(items)} items (last {self.content_filter.hours}h)")
        return FeedResult(feed=feed, items=recent, total=len(items))

    def fetch_all(self) -> List[FeedResult]:
        """
        Process every feed

        Results come back in configured feed order whatever order the fetches
        complete in.
        """
        if self.max_workers == 1 or len(self.feeds) <= 1:
            return [self.process_feed(feed) for feed in self.feeds]

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(self.process_feed, self.feeds))

    def run(self, top: Optional[int] = None) -> DigestResult:
        """
        Run the full pipeline

        The dedup cache is only read here; call ``commit`` once the
        result has been delivered.

        Args:
            top: keep at most this many items after sorting

        Returns:
            DigestResult with the final items and per-feed errors
        """
        feed_results = self.fetch_all()

        all_items: List[Item] = []
        errors: List[Dict[str, str]] = []
        for result in feed_results:
            if result.success:
                all_items.extend(result.items)
            else:
                errors.append({"feed": result.feed.name, "error": result.error})

        items = dedupe_by_url(all_items)
        logger.debug(f"URL dedup: {len(all_items)} -> {len(items)} items")

        if self.cache is not None:
            items = self.cache.filter_new(items)

        items = sort_by_recency(items)

        if top is not None and top > 0:
            items = items[:top]

        return DigestResult(
            items=items,
            errors=errors,
            feed_results=feed_results,
            hours=self.content_filter.hours,
        )

    def commit(self, result: DigestResult) -> None:
        """Record the delivered URLs in the dedup cache, if one is configured"""
        if self.cache is None:
            return
        self.cache.mark_batch_processed(item.url for item in result.items)
