"""
Text normalization for extracted feed fields

Only the five XML entities (plus the numeric apostrophe forms) and decimal
character references are decoded. Everything else passes through unchanged.
"""

import re

from .markup import strip_tags, unwrap_cdata

_NAMED_ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "#39": "'",
    "#x27": "'",
}

_ENTITY_PATTERN = re.compile(r"&(amp|lt|gt|quot|apos|#39|#x27|#(\d+));")

_MAX_CODE_POINT = 0x10FFFF


def _replace_entity(match: re.Match) -> str:
    named = _NAMED_ENTITIES.get(match.group(1))
    if named is not None:
        return named

    code_point = int(match.group(2))
    # NUL, surrogates and out-of-range values stay literal
    if code_point == 0 or code_point > _MAX_CODE_POINT or 0xD800 <= code_point <= 0xDFFF:
        return match.group(0)
    return chr(code_point)


def decode_entities(text: str) -> str:
    """
    Decode character references in a single pass

    Args:
        text: text that may contain entity references

    Returns:
        text with known references replaced by literal characters
    """
    if not text or "&" not in text:
        return text
    return _ENTITY_PATTERN.sub(_replace_entity, text)


def clean_text(raw: str) -> str:
    """
    Turn a raw tagged region into display text

    CDATA is unwrapped, remaining markup stripped, whitespace trimmed and
    entities decoded, in that order.
    """
    if not raw:
        return ""
    return decode_entities(strip_tags(unwrap_cdata(raw)).strip())
