"""Text and number normalization for values scraped from seller pages."""

import re
from typing import Any, Optional


# Comments, doctype and element tags; a bare "<" or ">" in text is left alone
TAG_PATTERN = re.compile(r"<!--.*?-->|<![^<>]*>|</?[a-zA-Z][^<>]*>", re.DOTALL)
WHITESPACE_PATTERN = re.compile(r"\s+")

# The only entities decoded; anything else passes through untouched
ENTITY_MAP = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
    "\\u002F": "/",
    "\\u002f": "/",
}
ENTITY_PATTERN = re.compile("|".join(re.escape(entity) for entity in ENTITY_MAP))

PLACEHOLDER_VALUES = frozenset({"undefined", "null"})


def clean_text(raw: Optional[str]) -> str:
    """Strip markup, decode the known entities and collapse whitespace.

    Entities are decoded in a single pass so "&amp;lt;" becomes "&lt;",
    not "<". Tags are stripped again after decoding, so entity-encoded
    markup ("&lt;b&gt;") never comes out as a live tag.

    Args:
        raw: HTML fragment or plain text, may be None

    Returns:
        Plain single-line text, "" for empty input

    Examples:
        >>> clean_text("<b>A&amp;B</b>  C")
        'A&B C'
    """
    if not raw:
        return ""
    text = TAG_PATTERN.sub("", raw)
    text = ENTITY_PATTERN.sub(lambda m: ENTITY_MAP[m.group(0)], text)
    text = TAG_PATTERN.sub("", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def is_placeholder(value: Optional[str]) -> bool:
    """True for empty values and the "undefined"/"null" sentinels."""
    if value is None:
        return True
    stripped = value.strip()
    return not stripped or stripped.lower() in PLACEHOLDER_VALUES


def parse_number(raw: Any) -> Optional[float]:
    """Parse a decimal number, accepting a decimal comma.

    Handles:
    - 4.5 -> 4.5
    - "4.5" -> 4.5
    - "4,5" -> 4.5

    Returns:
        float value, or None if parsing fails
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    cleaned = str(raw).strip()
    if "," in cleaned and "." not in cleaned:
        cleaned = cleaned.replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_count(raw: Any) -> Optional[int]:
    """Parse a non-negative whole number, ignoring thousand separators.

    Handles:
    - 123 -> 123
    - "1.234" -> 1234
    - "1,234" -> 1234

    Returns:
        int value, or None if parsing fails or the value is negative
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if isinstance(raw, float):
        return int(raw) if raw >= 0 and raw.is_integer() else None
    cleaned = re.sub(r"[.,\s]", "", str(raw))
    if not cleaned.isdigit():
        return None
    return int(cleaned)
