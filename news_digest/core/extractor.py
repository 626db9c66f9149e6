"""
Feed item extraction
Turns a raw RSS 2.0 / Atom document into normalized Item records
"""

import io
import logging
from datetime import datetime, timezone
from typing import List, Optional

import feedparser
from dateutil import parser as date_parser

from ..exceptions import ConfigError
from ..utils import truncate_text
from .markup import find_blocks, first_attribute, first_region, strip_tags, unwrap_cdata
from .models import DEFAULT_CATEGORY, Item
from .normalizer import clean_text, decode_entities

logger = logging.getLogger(__name__)

SUMMARY_MAX_LENGTH = 300

# zone abbreviations dateutil does not resolve on its own
_TZINFOS = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}


def parse_published(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a feed date string into a UTC datetime

    Args:
        value: RFC 822 or ISO 8601 date text

    Returns:
        timezone-aware UTC datetime, or None if the text is not a date
    """
    if not value or not value.strip():
        return None
    try:
        dt = date_parser.parse(value.strip(), tzinfos=_TZINFOS)
        # naive dates are taken as UTC
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError, TypeError):
        logger.debug(f"Unparseable date: {value!r}")
        return None


def _clean_url(raw: Optional[str]) -> str:
    if not raw:
        return ""
    return decode_entities(unwrap_cdata(raw).strip())


def _clean_summary(raw: Optional[str]) -> str:
    return truncate_text(clean_text(raw or ""), SUMMARY_MAX_LENGTH, suffix="")


def _first_filled(block: str, *tags: str) -> Optional[str]:
    """Like ``first_region``, but skips tags whose text is empty once cleaned."""
    for tag in tags:
        raw = first_region(block, tag)
        if raw is not None and clean_text(raw):
            return raw
    return None


def _plain_text(raw: Optional[str]) -> str:
    # feedparser has already decoded entities
    return strip_tags(raw or "").strip()


class PatternExtractor:
    """Extractor built on tag-bounded pattern matching"""

    name = "pattern"

    def _build_item(self, title_raw: Optional[str], url_raw: Optional[str],
                    date_raw: Optional[str], summary_raw: Optional[str],
                    feed_name: str, category: str) -> Optional[Item]:
        title = clean_text(title_raw or "")
        if not title:
            return None
        return Item(
            title=title,
            url=_clean_url(url_raw),
            source=feed_name,
            category=category,
            published=parse_published(clean_text(date_raw or "")),
            summary=_clean_summary(summary_raw),
        )

    def _extract_rss(self, blocks: List[str], feed_name: str, category: str) -> List[Item]:
        items = []
        for block in blocks:
            item = self._build_item(
                first_region(block, "title"),
                first_region(block, "link"),
                first_region(block, "pubDate"),
                first_region(block, "description"),
                feed_name,
                category,
            )
            if item:
                items.append(item)
        return items

    def _extract_atom(self, blocks: List[str], feed_name: str, category: str) -> List[Item]:
        items = []
        for block in blocks:
            item = self._build_item(
                first_region(block, "title"),
                first_attribute(block, "link", "href"),
                _first_filled(block, "updated", "published"),
                _first_filled(block, "summary", "content"),
                feed_name,
                category,
            )
            if item:
                items.append(item)
        return items

    def extract(self, document: str, feed_name: str, category: str = DEFAULT_CATEGORY) -> List[Item]:
        """
        Extract items from a feed document

        RSS ``item`` framing is tried first; Atom ``entry`` framing is used
        only when the document has no ``item`` blocks at all.

        Args:
            document: raw feed text
            feed_name: name recorded as each item's source
            category: category recorded on each item

        Returns:
            items in document order
        """
        category = category or DEFAULT_CATEGORY

        rss_blocks = find_blocks(document, "item")
        if rss_blocks:
            return self._extract_rss(rss_blocks, feed_name, category)

        atom_blocks = find_blocks(document, "entry")
        return self._extract_atom(atom_blocks, feed_name, category)


class FeedparserExtractor:
    """Extractor backed by feedparser, producing the same Item contract"""

    name = "feedparser"

    def extract(self, document: str, feed_name: str, category: str = DEFAULT_CATEGORY) -> List[Item]:
        category = category or DEFAULT_CATEGORY
        # a stream, so feedparser never treats the document as a URL or file path
        parsed = feedparser.parse(
            io.BytesIO(document.encode("utf-8")),
            response_headers={"content-type": "application/xml; charset=utf-8"},
        )

        if parsed.bozo and parsed.bozo_exception:
            logger.warning(f"Problem parsing feed: {feed_name}, error: {parsed.bozo_exception}")

        items = []
        for entry in parsed.entries:
            title = _plain_text(entry.get("title"))
            if not title:
                continue

            body = entry.get("summary", "")
            if not body and entry.get("content"):
                body = entry.content[0].get("value", "")

            items.append(Item(
                title=title,
                url=(entry.get("link") or "").strip(),
                source=feed_name,
                category=category,
                published=parse_published(entry.get("updated") or entry.get("published")),
                summary=truncate_text(_plain_text(body), SUMMARY_MAX_LENGTH, suffix=""),
            ))
        return items


_EXTRACTORS = {
    PatternExtractor.name: PatternExtractor,
    FeedparserExtractor.name: FeedparserExtractor,
}

EXTRACTOR_NAMES = tuple(_EXTRACTORS)


def build_extractor(name: str = PatternExtractor.name):
    """Instantiate an extractor backend by name."""
    try:
        return _EXTRACTORS[name]()
    except KeyError:
        raise ConfigError(f"Unknown extractor: {name} (expected one of {', '.join(EXTRACTOR_NAMES)})") from None


def extract_items(document: str, feed_name: str, category: str = DEFAULT_CATEGORY) -> List[Item]:
    """Extract items with the default pattern extractor."""
    return PatternExtractor().extract(document, feed_name, category)
