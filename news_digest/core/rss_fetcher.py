"""
Feed fetching
Downloads feed documents over HTTP
"""

import logging
import re
from typing import Optional

import requests

from .. import __version__
from ..exceptions import FeedFetchError
from ..utils import create_http_session

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"news-digest/{__version__}"

_XML_ENCODING_PATTERN = re.compile(rb"""^\s*<\?xml[^>]*\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")
_CHARSET_PATTERN = re.compile(r"charset\s*=\s*[\"']?([^\s;\"']+)", re.IGNORECASE)


def _declared_charset(content_type: str) -> Optional[str]:
    match = _CHARSET_PATTERN.search(content_type or "")
    return match.group(1) if match else None


def decode_document(content: bytes, content_type: str = "") -> str:
    """
    Decode a feed response body

    The charset from the Content-Type header wins, then the XML prolog's
    encoding attribute, then UTF-8. Undecodable bytes are replaced.

    Args:
        content: raw response body
        content_type: Content-Type header value

    Returns:
        document text without a leading BOM
    """
    encoding = _declared_charset(content_type)
    if not encoding:
        match = _XML_ENCODING_PATTERN.match(content.lstrip(b"\xef\xbb\xbf"))
        encoding = match.group(1).decode("ascii") if match else "utf-8"

    try:
        text = content.decode(encoding, errors="replace")
    except LookupError:
        logger.debug(f"Unknown encoding {encoding!r}, falling back to utf-8")
        text = content.decode("utf-8", errors="replace")

    return text.lstrip("\ufeff")


class RSSFetcher:
    """Feed fetcher with a bounded timeout and redirect limit"""

    def __init__(self, timeout: float = 10, max_redirects: int = 3,
                 user_agent: str = DEFAULT_USER_AGENT,
                 session: Optional[requests.Session] = None):
        """
        Initialize the fetcher

        Args:
            timeout: per-request timeout in seconds
            max_redirects: redirect hops allowed per fetch
            user_agent: User-Agent header value
            session: preconfigured session, mainly for tests
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.session = session or create_http_session(
            max_redirects=max_redirects,
            user_agent=user_agent,
        )

    def fetch(self, url: str) -> str:
        """
        Fetch a feed document

        Args:
            url: feed URL

        Returns:
            decoded response body

        Raises:
            FeedFetchError: on non-200 status, timeout, redirect overflow or
                transport failure
        """
        logger.debug(f"Fetching {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.TooManyRedirects as e:
            raise FeedFetchError(f"Exceeded {self.max_redirects} redirects: {url}") from e
        except requests.exceptions.Timeout as e:
            raise FeedFetchError(f"Timeout: {url}") from e
        except requests.exceptions.RequestException as e:
            raise FeedFetchError(f"{e.__class__.__name__}: {e}") from e

        try:
            if response.status_code != 200:
                raise FeedFetchError(f"HTTP {response.status_code} for {url}")
            return decode_document(response.content, response.headers.get("Content-Type", ""))
        finally:
            response.close()
