"""
Configuration loading
Built-in defaults, the optional YAML config file and custom feed lists
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from .core.models import FeedSource
from .exceptions import ConfigError, FeedFileError

logger = logging.getLogger(__name__)

DEFAULT_FEEDS: Tuple[FeedSource, ...] = (
    FeedSource(name="Hacker News (Top)", url="https://hnrss.org/newest?points=100", category="tech"),
    FeedSource(name="The Verge - AI", url="https://www.theverge.com/rss/ai-artificial-intelligence/index.xml", category="ai"),
    FeedSource(name="MIT Tech Review - AI", url="https://www.technologyreview.com/feed/", category="ai"),
    FeedSource(name="Base Blog", url="https://base.mirror.xyz/feed/atom", category="base"),
    FeedSource(name="Simon Willison", url="https://simonwillison.net/atom/everything/", category="ai"),
)

DEFAULT_CONFIG: Dict[str, Any] = {
    "time_filter": {
        "hours": 24,
    },
    "fetch": {
        "timeout": 10,
        "max_redirects": 3,
        "max_workers": 1,
        "user_agent": None,
    },
    "extractor": "pattern",
    "output": {
        "format": "json",
        "top": None,
        "file_path": None,
    },
    "dedup": {
        "cache_file": None,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the configuration

    Args:
        config_path: YAML config file, or None for built-in defaults only

    Returns:
        configuration dict with defaults filled in

    Raises:
        ConfigError: the file is missing, unreadable or not a YAML mapping
    """
    if not config_path:
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot load config file {config_path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    logger.info(f"Config loaded: {config_path}")
    return _deep_merge(DEFAULT_CONFIG, loaded)


def parse_feed_records(records: Any, origin: str = "config") -> Tuple[FeedSource, ...]:
    """
    Validate raw feed records

    Args:
        records: list of dicts, or a dict with a ``feeds`` list
        origin: description of where the records came from, for messages

    Returns:
        tuple of FeedSource

    Raises:
        FeedFileError: the records are not a list of valid feed objects
    """
    if isinstance(records, dict):
        records = records.get('feeds')
    if not isinstance(records, list):
        raise FeedFileError(f"{origin}: expected a list of feeds")

    feeds: List[FeedSource] = []
    for index, record in enumerate(records):
        try:
            feeds.append(FeedSource.model_validate(record))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}" for err in e.errors()
            )
            raise FeedFileError(f"{origin}: invalid feed #{index}: {errors}") from e
    return tuple(feeds)


def load_feed_file(path: str) -> Tuple[FeedSource, ...]:
    """
    Load a custom feed list

    JSON by default; ``.yaml`` and ``.yml`` files are read as YAML.

    Args:
        path: feed file path

    Returns:
        tuple of FeedSource

    Raises:
        FeedFileError: the file is missing, unparseable or malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if Path(path).suffix.lower() in ('.yaml', '.yml'):
                records = yaml.safe_load(f)
            else:
                records = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise FeedFileError(f"Cannot read feed file {path}: {e}") from e

    feeds = parse_feed_records(records, origin=path)
    logger.info(f"Loaded {len(feeds)} feeds from {path}")
    return feeds


def resolve_feeds(config: Dict[str, Any], feed_file: Optional[str] = None) -> Sequence[FeedSource]:
    """
    Pick the feed list for a run: custom file, then config file, then defaults
    """
    if feed_file:
        return load_feed_file(feed_file)
    if config.get('feeds'):
        return parse_feed_records(config['feeds'])
    return DEFAULT_FEEDS
