"""
Utility functions
Persisted URL dedup cache, HTTP session setup and small text helpers
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Optional, Set

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import CacheWriteError

if TYPE_CHECKING:
    from .core.models import Item

logger = logging.getLogger(__name__)


class DedupCache:
    """URL dedup cache persisted as a local JSON file across runs"""

    def __init__(self, cache_file: str):
        """
        Initialize the cache and load any previously stored URLs

        Args:
            cache_file: path of the JSON cache file
        """
        self.cache_file = cache_file
        self.urls: Set[str] = set()
        self.updated: Optional[str] = None
        self._load_cache()

    def _load_cache(self):
        """Load the cache from disk. A missing or corrupt file means an empty cache."""
        if not os.path.exists(self.cache_file):
            logger.debug(f"No dedup cache at {self.cache_file}, starting empty")
            return

        try:
            with open(self.cache_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Dedup cache unreadable, treating as empty: {self.cache_file} ({e})")
            return

        urls = data.get('urls') if isinstance(data, dict) else None
        if not isinstance(urls, list):
            logger.warning(f"Dedup cache has unexpected shape, treating as empty: {self.cache_file}")
            return

        self.urls = {url for url in urls if isinstance(url, str) and url}
        self.updated = data.get('updated')
        logger.info(f"Loaded {len(self.urls)} cached URLs from {self.cache_file}")

    def _save_cache(self):
        """Write the cache atomically (temp file in the same directory, then rename)."""
        path = Path(self.cache_file)
        payload = {
            'urls': sorted(self.urls),
            'updated': self.updated,
        }
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                'w', encoding='utf-8', dir=str(path.parent),
                prefix=f".{path.name}.", suffix='.tmp', delete=False
            ) as f:
                tmp_name = f.name
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheWriteError(f"Cannot write dedup cache {self.cache_file}: {e}") from e

    def is_duplicate(self, url: str) -> bool:
        """
        Check whether a URL was delivered by an earlier run

        Args:
            url: URL to check

        Returns:
            True if the URL is in the cache
        """
        return url in self.urls

    def filter_new(self, items: Iterable["Item"]) -> List["Item"]:
        """
        Drop items whose URL is already cached

        Args:
            items: candidate items

        Returns:
            items not delivered before, in their original order
        """
        items = list(items)
        fresh = [item for item in items if not self.is_duplicate(item.url)]
        logger.info(f"Dedup cache: {len(items)} -> {len(fresh)} items")
        return fresh

    def mark_batch_processed(self, urls: Iterable[str]):
        """
        Add URLs to the cache and persist it

        Args:
            urls: URLs delivered by this run
        """
        self.urls.update(url for url in urls if url)
        self.updated = utc_now_iso()
        self._save_cache()
        logger.info(f"Dedup cache saved: {len(self.urls)} URLs -> {self.cache_file}")

    def get_processed_count(self) -> int:
        """Number of cached URLs."""
        return len(self.urls)


def create_http_session(
    max_redirects: int = 3,
    total_retries: int = 0,
    user_agent: Optional[str] = None,
) -> requests.Session:
    """
    Create a requests Session with bounded redirects

    Args:
        max_redirects: redirect hops allowed before the request fails
        total_retries: automatic retries on the mounted adapter
        user_agent: value for the User-Agent header

    Returns:
        requests.Session
    """
    retry = Retry(
        total=total_retries,
        connect=total_retries,
        read=total_retries,
        status=total_retries,
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry)
    session = requests.Session()
    session.max_redirects = max_redirects
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if user_agent:
        session.headers.update({'User-Agent': user_agent})
    return session


def truncate_text(text: str, max_length: int = 300, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length

    Args:
        text: original text
        max_length: maximum number of characters kept
        suffix: appended when the text was cut

    Returns:
        truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def utc_now_iso() -> str:
    """Return the current UTC time in the digest's ISO format."""
    return format_iso_timestamp(datetime.now(timezone.utc))


def format_iso_timestamp(dt: datetime) -> str:
    """
    Format a datetime as an ISO-8601 UTC instant with millisecond precision

    Args:
        dt: datetime object, naive values are taken as UTC

    Returns:
        string like ``2024-01-01T00:00:00.000Z``
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%S') + f".{dt.microsecond // 1000:03d}Z"
