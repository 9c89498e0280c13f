"""Extract the seller object embedded in the page's script payload.

The page framework serializes its own copy of the seller into a script
tag as part of a larger state blob. A regex can find where the seller
object starts but cannot tell where it ends once inner objects nest, so
extraction runs in two steps: anchor the start, then walk the text
counting brace depth until the object closes, and hand exactly that
slice to the JSON parser.
"""

import json
import re
from typing import Any, Dict, List, Optional

import structlog

from sellerscraper.core.exceptions import MalformedEmbeddedDataError


logger = structlog.get_logger(__name__)

SELLER_TYPENAMES = ("Seller", "MarketplaceSeller")

# Start of the seller object: discriminator, then id and name early in the
# object. The candidate runs until the end of the script element.
SELLER_ANCHOR = re.compile(
    r'\{\s*"__typename"\s*:\s*"(?:' + "|".join(SELLER_TYPENAMES) + r')"\s*,'
    r'\s*"id"\s*:\s*"?[^",}]+"?\s*,'
    r'\s*"name"\s*:\s*"(?:[^"\\]|\\.)*"'
    r".*?(?=</script>|\Z)",
    re.DOTALL,
)


def find_object_end(candidate: str) -> Optional[int]:
    """Return the index just past the brace that closes the leading object.

    Braces inside JSON string literals are skipped, including escaped
    quotes within those strings.

    Args:
        candidate: Text starting with "{"

    Returns:
        End index (exclusive), or None when the braces never balance
    """
    depth = 0
    in_string = False
    escaped = False
    for index, char in enumerate(candidate):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
            if depth < 0:
                return None
    return None


def _bound_and_parse(candidate: str) -> Dict[str, Any]:
    end = find_object_end(candidate)
    if end is None:
        raise MalformedEmbeddedDataError("unbalanced braces in embedded seller object")
    try:
        data = json.loads(candidate[:end])
    except json.JSONDecodeError as e:
        raise MalformedEmbeddedDataError(f"invalid embedded seller JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedEmbeddedDataError("embedded seller data is not an object")
    return data


def extract_embedded_seller(html: str) -> Optional[Dict[str, Any]]:
    """Locate and parse the embedded seller object.

    Every occurrence of the anchor is tried in page order; the first one
    that bounds and parses wins.

    Args:
        html: Full page text

    Returns:
        Parsed seller object, or None when absent or malformed
    """
    if not html:
        return None

    for match in SELLER_ANCHOR.finditer(html):
        try:
            return _bound_and_parse(match.group(0))
        except MalformedEmbeddedDataError as e:
            logger.debug("embedded_data_unparseable", offset=match.start(), error=e.message)
    return None


class EmbeddedSeller:
    """Read-only accessors over the embedded seller object.

    Tolerates missing or mistyped sub-objects; every accessor falls back
    to an empty value instead of raising.
    """

    def __init__(self, data: Optional[Dict[str, Any]]):
        self.data = data if isinstance(data, dict) else {}

    def __bool__(self) -> bool:
        return bool(self.data)

    def _section(self, key: str) -> Dict[str, Any]:
        value = self.data.get(key)
        return value if isinstance(value, dict) else {}

    @property
    def name(self) -> Any:
        return self.data.get("name")

    @property
    def state(self) -> Any:
        return self.data.get("state")

    @property
    def contact(self) -> Dict[str, Any]:
        return self._section("contact")

    @property
    def legal(self) -> Dict[str, Any]:
        return self._section("legal")

    @property
    def rating(self) -> Dict[str, Any]:
        return self._section("rating")

    @property
    def shipping_terms(self) -> List[Dict[str, Any]]:
        terms = self.data.get("shippingTerms")
        if not isinstance(terms, list):
            return []
        return [term for term in terms if isinstance(term, dict)]
