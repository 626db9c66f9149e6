"""
Content filtering
Time window filter, in-run URL dedup and recency ordering
"""

from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Iterable, List, Optional
import logging

from .models import Item

logger = logging.getLogger(__name__)

DEFAULT_HOURS = 24


def filter_recent(items: Iterable[Item], cutoff: datetime) -> List[Item]:
    """
    Keep items published at or after the cutoff

    Items without a publish time are always kept.

    Args:
        items: item list
        cutoff: earliest eligible publish time

    Returns:
        filtered item list
    """
    if cutoff.tzinfo is None:
        cutoff = cutoff.replace(tzinfo=timezone.utc)

    filtered = []
    for item in items:
        if item.published is None:
            filtered.append(item)
            continue

        pub_time = item.published
        if pub_time.tzinfo is None:
            pub_time = pub_time.replace(tzinfo=timezone.utc)
        if pub_time >= cutoff:
            filtered.append(item)
    return filtered


def dedupe_by_url(items: Iterable[Item]) -> List[Item]:
    """
    Drop items with an empty or already seen URL, keeping first occurrences

    Args:
        items: item list in pre-sort order

    Returns:
        item list with unique, non-empty URLs
    """
    seen = set()
    out = []
    for item in items:
        if not item.url or item.url in seen:
            continue
        seen.add(item.url)
        out.append(item)
    return out


def sort_by_recency(items: Iterable[Item]) -> List[Item]:
    """
    Sort newest first; undated items go last in their original order

    Both passes rely on ``sorted`` being stable, including with
    ``reverse=True``.
    """
    items = list(items)
    dated = [item for item in items if item.published is not None]
    undated = [item for item in items if item.published is None]
    return sorted(dated, key=lambda item: item.published, reverse=True) + undated


class ContentFilter:
    """Applies the time window configured for a run"""

    def __init__(self, config: Optional[Dict[str, Any]] = None, now: Optional[datetime] = None):
        """
        Initialize the filter

        Args:
            config: configuration dict, ``time_filter.hours`` is read
            now: reference time, defaults to the current UTC time
        """
        config = config or {}
        hours = (config.get('time_filter') or {}).get('hours')
        self.hours = DEFAULT_HOURS if hours is None else hours
        self.now = now

    @property
    def cutoff(self) -> datetime:
        now = self.now or datetime.now(timezone.utc)
        return now - timedelta(hours=self.hours)

    def filter_by_time(self, items: List[Item]) -> List[Item]:
        """
        Filter items by the configured time window

        Args:
            items: item list

        Returns:
            items published within the last ``hours`` hours, plus undated ones
        """
        filtered = filter_recent(items, self.cutoff)
        logger.debug(f"Time filter: {len(items)} -> {len(filtered)} items")
        return filtered
