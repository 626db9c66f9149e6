"""
Tag-bounded region matching for loosely structured feed markup

This is deliberately not an XML parser. It finds ``<tag ...>...</tag>``
regions by pattern, case-insensitively, and tolerates markup a strict parser
would reject.
"""

import re
from functools import lru_cache
from typing import List, Optional

_CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_TAG_PATTERN = re.compile(r"<[^>]+>")


@lru_cache(maxsize=64)
def _region_pattern(tag: str) -> "re.Pattern[str]":
    name = re.escape(tag)
    # an opening tag with optional attributes, never self-closing
    return re.compile(
        rf"<{name}(?:\s[^>]*?)?(?<!/)>(.*?)</{name}\s*>",
        re.IGNORECASE | re.DOTALL,
    )


@lru_cache(maxsize=64)
def _attribute_pattern(tag: str, attribute: str) -> "re.Pattern[str]":
    # the tag name ends at whitespace, "/" or ">"; the attribute follows whitespace
    return re.compile(
        rf"<{re.escape(tag)}(?=[\s/>])[^>]*?\s{re.escape(attribute)}\s*=\s*([\"'])(.*?)\1",
        re.IGNORECASE | re.DOTALL,
    )


def find_blocks(text: str, tag: str) -> List[str]:
    """
    Find all non-overlapping regions enclosed by ``tag``

    Args:
        text: document text
        tag: element name, e.g. ``item``

    Returns:
        inner text of every region, in document order
    """
    if not text:
        return []
    return [match.group(1) for match in _region_pattern(tag).finditer(text)]


def first_region(block: str, *tags: str) -> Optional[str]:
    """
    Return the inner text of the first region for the first tag that matches

    Tags are tried in the given order, so ``first_region(b, "updated",
    "published")`` prefers ``updated`` wherever it appears in the block.
    """
    for tag in tags:
        match = _region_pattern(tag).search(block)
        if match:
            return match.group(1)
    return None


def first_attribute(block: str, tag: str, attribute: str) -> Optional[str]:
    """Return the value of ``attribute`` on the first ``tag`` element that carries it."""
    match = _attribute_pattern(tag, attribute).search(block)
    if match:
        return match.group(2)
    return None


def unwrap_cdata(text: str) -> str:
    """Replace every ``<![CDATA[...]]>`` section with its content."""
    return _CDATA_PATTERN.sub(r"\1", text)


def strip_tags(text: str) -> str:
    """Remove anything that looks like a markup tag."""
    return _TAG_PATTERN.sub("", text)
