"""Registration numbers from free-text imprint (legal notice) blocks."""

import re
from dataclasses import dataclass

from sellerscraper.scrapers.utils.normalizer import clean_text


# Line breaks separate imprint lines; plain tag stripping would glue them
LINE_BREAK_PATTERN = re.compile(r"<br\s*/?>|</(?:p|div|li)>", re.IGNORECASE)

# Chamber of commerce labels: nl, en, de, fr
KVK_PATTERN = re.compile(
    r"\b(?:Kamer\s+van\s+Koophandel|KvK|Chamber\s+of\s+Commerce|CoC"
    r"|Handelsregister|Handelskammer|Registre\s+du\s+commerce|RCS)"
    r"(?:[\s-]*(?:nummer|number|nr\.?|no\.?|n°|num[ée]ro))?"
    r"\s*[:#.]?\s*"
    r"(?:HR[AB]\s*)?"
    r"([A-Z0-9]*\d[A-Z0-9]*)",
    re.IGNORECASE,
)

# VAT labels: nl, en, de, fr; the number is an upper-case country code
# followed by a token holding at least one digit
VAT_PATTERN = re.compile(
    r"\b(?:BTW|VAT|USt-?Id(?:Nr)?\.?|Umsatzsteuer-Identifikationsnummer|TVA)"
    r"(?:[\s-]*(?:nummer|number|nr\.?|no\.?|ID|n°|intracommunautaire))?"
    r"\s*[:#.]?\s*"
    r"((?-i:[A-Z]{2})\s?(?=[A-Z0-9]*\d)[A-Z0-9]{2,13})\b",
    re.IGNORECASE,
)


@dataclass
class ImprintInfo:
    """What could be read from an imprint block."""

    text: str = ""
    kvk_number: str = ""
    vat_number: str = ""


def parse_imprint(raw: str) -> ImprintInfo:
    """Search an imprint block for a chamber of commerce and a VAT number.

    Both searches are independent; a missing match leaves that field empty.

    Args:
        raw: Imprint text, markup allowed

    Returns:
        ImprintInfo with the decoded text always set
    """
    text = clean_text(LINE_BREAK_PATTERN.sub(" ", raw or ""))
    info = ImprintInfo(text=text)
    if not text:
        return info

    kvk_match = KVK_PATTERN.search(text)
    if kvk_match:
        info.kvk_number = kvk_match.group(1)

    vat_match = VAT_PATTERN.search(text)
    if vat_match:
        info.vat_number = vat_match.group(1).replace(" ", "")

    return info
