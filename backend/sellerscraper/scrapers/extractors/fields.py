"""Field extraction strategies for seller profile pages.

Every output field has an ordered chain of sources. The chain is walked
until a source yields a non-empty, valid value; later sources are only
consulted when earlier ones come up empty. The orderings reflect how
reliable each source has proven on live pages:

- rating:        aria-label text -> embedded data
- business name: embedded name -> <h1>
- phone:         embedded contact -> tel: link
- email:         embedded contact -> labeled pair -> page-wide scan
- legal fields:  labeled pair (-> imprint text for KvK/VAT)
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import structlog
from bs4 import BeautifulSoup

from sellerscraper.config import DEFAULT_EMAIL_EXCLUDE_PATTERNS
from sellerscraper.scrapers.extractors.embedded import EmbeddedSeller, extract_embedded_seller
from sellerscraper.scrapers.extractors.imprint import ImprintInfo, parse_imprint
from sellerscraper.scrapers.utils.normalizer import (
    clean_text,
    is_placeholder,
    parse_count,
    parse_number,
)


logger = structlog.get_logger(__name__)


# Label variants per field, in lookup order (nl, en, de)
DEFAULT_LABEL_VARIANTS: Dict[str, List[str]] = {
    "company_name": [
        "Officiële bedrijfsnaam",
        "Official company name",
        "Offizieller Firmenname",
        "Firmenname",
    ],
    "address": ["Kantooradres", "Office address", "Geschäftsadresse", "Adresse"],
    "zip_code": ["Postcode", "ZIP code", "Postleitzahl", "PLZ"],
    "city": ["Plaats", "City", "Stadt", "Ort"],
    "kvk_number": [
        "Kamer van Koophandel nummer",
        "KvK-nummer",
        "Chamber of Commerce number",
        "Handelskammernummer",
        "Handelsregisternummer",
    ],
    "vat_number": [
        "BTW-nummer",
        "VAT number",
        "USt-IdNr",
        "USt-IdNr.",
        "Umsatzsteuer-Identifikationsnummer",
    ],
    "email": ["E-mailadres", "Email address", "E-Mail-Adresse", "Email", "E-mail"],
    "imprint": ["Impressum", "Imprint", "Juridische informatie", "Legal information"],
}

# Accessibility text of the star widget, one phrasing per locale
RATING_PATTERNS: List[re.Pattern] = [
    re.compile(
        r"Beoordeling:\s*([\d.,]+)\s*van de\s*([\d.,]+)\s*sterren"
        r"\s*op basis van\s*([\d.,]+)\s*recensies?",
        re.IGNORECASE,
    ),
    re.compile(
        r"Rating:\s*([\d.,]+)\s*out of\s*([\d.,]+)\s*stars?"
        r"\s*based on\s*([\d.,]+)\s*reviews?",
        re.IGNORECASE,
    ),
    re.compile(
        r"Bewertung:\s*([\d.,]+)\s*von\s*([\d.,]+)\s*Sternen?"
        r"\s*basierend auf\s*([\d.,]+)\s*Bewertungen",
        re.IGNORECASE,
    ),
]

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# "<info@shop.nl" leaves "u003cinfo@shop.nl" behind once the backslash
# falls outside the match
UNICODE_ESCAPE_RESIDUE = re.compile(r"^u[0-9a-fA-F]{4}")

# Retina asset names ("logo@2x.png") look like addresses to EMAIL_PATTERN
ASSET_SUFFIX = re.compile(r"\.(?:png|jpe?g|gif|svg|webp|avif|css|js)$", re.IGNORECASE)

SHIPPING_PART_SEPARATOR = " - "
SHIPPING_ENTRY_SEPARATOR = "; "


@dataclass
class RatingInfo:
    """Star rating with its scale and the number of reviews behind it."""

    rating: float
    out_of: Optional[float] = None
    review_count: Optional[int] = None

    def is_valid(self) -> bool:
        if self.rating < 0:
            return False
        if self.out_of is not None and self.rating > self.out_of:
            return False
        return self.review_count is None or self.review_count >= 0


@dataclass
class PageContext:
    """Everything harvested once per page and shared by all sources."""

    html: str
    soup: BeautifulSoup
    embedded: EmbeddedSeller
    pairs: Dict[str, str] = field(default_factory=dict)
    imprint: ImprintInfo = field(default_factory=ImprintInfo)


Source = Callable[[PageContext], Any]


def first_valid(
    sources: Iterable[Source],
    page: PageContext,
    is_valid: Callable[[Any], bool] = lambda value: True,
) -> Any:
    """Return the first non-empty value accepted by is_valid, else None."""
    for source in sources:
        value = source(page)
        if value is None or value == "":
            continue
        if is_valid(value):
            return value
    return None


def harvest_labeled_pairs(soup: BeautifulSoup) -> Dict[str, str]:
    """Collect <dt>label</dt><dd>value</dd> pairs.

    Labels and values are normalized; pairs with an empty side are
    dropped and the last occurrence of a label wins.
    Text is read through BeautifulSoup, which decodes every named entity
    ("&eacute;" -> "é") before clean_text sees it.
    """
    pairs: Dict[str, str] = {}
    for label_tag in soup.find_all("dt"):
        value_tag = label_tag.find_next_sibling()
        if value_tag is None or value_tag.name != "dd":
            continue
        label = clean_text(label_tag.decode_contents())
        value = clean_text(value_tag.decode_contents())
        if label and value:
            pairs[label] = value
    return pairs


def _label_key(label: str) -> str:
    return label.strip().rstrip(":").strip().lower()


def _as_text(value: Any) -> str:
    """Stringify an embedded JSON scalar the way it is stored in extras."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return clean_text(value)
    return ""


def summarize_shipping(terms: Sequence[Dict[str, Any]]) -> str:
    """Join per-country shipping terms into one line.

    Each entry becomes "country - shippingType - free from 50 EUR" with
    empty parts left out; entries are joined with "; ".
    """
    entries = []
    for term in terms:
        parts = [_as_text(term.get("country")), _as_text(term.get("shippingType"))]
        threshold = term.get("freeShippingThreshold")
        if isinstance(threshold, dict):
            amount = _as_text(threshold.get("amount"))
            currency = _as_text(threshold.get("currency"))
            if amount:
                parts.append(f"free from {amount} {currency}".strip())
        parts = [part for part in parts if part]
        if parts:
            entries.append(SHIPPING_PART_SEPARATOR.join(parts))
    return SHIPPING_ENTRY_SEPARATOR.join(entries)


class SellerFieldExtractor:
    """Extracts every SellerRecord field from raw page text.

    Label variants and the email exclusion list are passed in at
    construction so callers (and tests) can vary them per instance.

    Markup-derived values (headings, labeled pairs) are decoded by
    BeautifulSoup first, so any HTML entity resolves to its character;
    values from the embedded JSON only get clean_text's fixed entity set.
    """

    def __init__(
        self,
        label_variants: Optional[Dict[str, List[str]]] = None,
        excluded_email_patterns: Optional[List[str]] = None,
        rating_patterns: Optional[List[re.Pattern]] = None,
    ):
        self.label_variants = {**DEFAULT_LABEL_VARIANTS, **(label_variants or {})}
        patterns = (
            DEFAULT_EMAIL_EXCLUDE_PATTERNS
            if excluded_email_patterns is None
            else excluded_email_patterns
        )
        self.excluded_email_patterns = [p.lower() for p in patterns]
        self.rating_patterns = rating_patterns or RATING_PATTERNS

        self.rating_sources: List[Source] = [self._aria_rating, self._embedded_rating]
        self.chains: Dict[str, List[Source]] = {
            "business_name": [self._embedded_name, self._heading_text],
            "phone": [self._embedded_phone, self._tel_link],
            "email": [self._embedded_email, self._labeled_email, self._scanned_email],
            "company_name": [self._labeled("company_name")],
            "address": [self._labeled("address")],
            "zip_code": [self._labeled("zip_code")],
            "city": [self._labeled("city")],
            "kvk_number": [self._labeled("kvk_number"), lambda page: page.imprint.kvk_number],
            "vat_number": [self._labeled("vat_number"), lambda page: page.imprint.vat_number],
        }
        self.validators: Dict[str, Callable[[Any], bool]] = {
            "phone": lambda value: not is_placeholder(value),
            "email": lambda value: "@" in value and not is_placeholder(value),
        }

    # ------------------------------------------------------------------
    # Page context
    # ------------------------------------------------------------------

    def build_context(self, html: str) -> PageContext:
        """Parse the page once and harvest the shared sources."""
        html = html or ""
        soup = BeautifulSoup(html, "html.parser")
        page = PageContext(
            html=html,
            soup=soup,
            embedded=EmbeddedSeller(extract_embedded_seller(html)),
            pairs=harvest_labeled_pairs(soup),
        )
        page.imprint = parse_imprint(self._imprint_source(page))
        return page

    def _imprint_source(self, page: PageContext) -> str:
        embedded_imprint = page.embedded.legal.get("imprint")
        if isinstance(embedded_imprint, str) and clean_text(embedded_imprint):
            return embedded_imprint
        return self._labeled("imprint")(page)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract(self, html: str) -> Dict[str, Any]:
        """Run every chain over the page.

        Returns:
            Dict keyed by SellerRecord field names (seller_id excluded)
        """
        page = self.build_context(html)
        fields: Dict[str, Any] = {}

        rating = first_valid(self.rating_sources, page, lambda info: info.is_valid())
        fields["rating"] = rating.rating if rating else None
        fields["rating_out_of"] = rating.out_of if rating else None
        fields["review_count"] = rating.review_count if rating else None

        for name, chain in self.chains.items():
            value = first_valid(chain, page, self.validators.get(name, lambda value: True))
            fields[name] = value or ""

        fields["extras"] = self.build_extras(page)
        return fields

    def build_extras(self, page: PageContext) -> Dict[str, str]:
        """Every labeled pair plus the embedded-only details."""
        extras = dict(page.pairs)
        if not page.embedded:
            return extras

        contact = page.embedded.contact
        legal = page.embedded.legal
        candidates = {
            "state": page.embedded.state,
            "fax": contact.get("fax"),
            "serviceHours": contact.get("serviceHours"),
            "generalTermsUrl": legal.get("generalTermsUrl"),
            # Already decoded with its line breaks kept apart
            "imprint": page.imprint.text if _as_text(legal.get("imprint")) else None,
            "consent": legal.get("hasConsent"),
            "dataProtection": legal.get("hasDataProtection"),
        }
        for key, value in candidates.items():
            text = _as_text(value)
            if text:
                extras[key] = text

        shipping = summarize_shipping(page.embedded.shipping_terms)
        if shipping:
            extras["shipping"] = shipping
        return extras

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def _labeled(self, field_name: str) -> Source:
        variants = [_label_key(v) for v in self.label_variants.get(field_name, [])]

        def source(page: PageContext) -> str:
            index = {_label_key(label): value for label, value in page.pairs.items()}
            for variant in variants:
                if index.get(variant):
                    return index[variant]
            return ""

        return source

    def _aria_rating(self, page: PageContext) -> Optional[RatingInfo]:
        for tag in page.soup.find_all(attrs={"aria-label": True}):
            label = clean_text(tag.get("aria-label"))
            for pattern in self.rating_patterns:
                match = pattern.search(label)
                if not match:
                    continue
                rating = parse_number(match.group(1))
                if rating is None:
                    continue
                return RatingInfo(
                    rating=rating,
                    out_of=parse_number(match.group(2)),
                    review_count=parse_count(match.group(3)),
                )
        return None

    def _embedded_rating(self, page: PageContext) -> Optional[RatingInfo]:
        block = page.embedded.rating
        rating = parse_number(block.get("average"))
        if rating is None:
            return None
        return RatingInfo(
            rating=rating,
            out_of=parse_number(block.get("outOf")),
            review_count=parse_count(block.get("count")),
        )

    def _embedded_name(self, page: PageContext) -> str:
        name = page.embedded.name
        return clean_text(name) if isinstance(name, str) else ""

    def _heading_text(self, page: PageContext) -> str:
        heading = page.soup.find("h1")
        return clean_text(heading.decode_contents()) if heading else ""

    def _embedded_phone(self, page: PageContext) -> str:
        return _as_text(page.embedded.contact.get("phone"))

    def _tel_link(self, page: PageContext) -> str:
        for tag in page.soup.select('[href^="tel:"]'):
            number = clean_text(tag["href"][len("tel:"):])
            if not is_placeholder(number):
                return number
        return ""

    def _embedded_email(self, page: PageContext) -> str:
        return _as_text(page.embedded.contact.get("email"))

    def _labeled_email(self, page: PageContext) -> str:
        value = self._labeled("email")(page)
        return value if "@" in value else ""

    def _scanned_email(self, page: PageContext) -> str:
        for match in EMAIL_PATTERN.finditer(page.html):
            candidate = match.group(0)
            if self._is_excluded_email(candidate):
                continue
            preceding = page.html[match.start() - 1 : match.start()]
            if preceding == "\\" and UNICODE_ESCAPE_RESIDUE.match(candidate):
                continue
            return candidate
        return ""

    def _is_excluded_email(self, email: str) -> bool:
        lowered = email.lower()
        if ASSET_SUFFIX.search(lowered):
            return True
        return any(pattern in lowered for pattern in self.excluded_email_patterns)
