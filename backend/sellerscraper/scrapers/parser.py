"""Seller page parser: raw page text in, one SellerRecord out.

Pure and deterministic; no network or storage access.
"""

from typing import Optional

import structlog

from sellerscraper.scrapers.base import SellerRecord
from sellerscraper.scrapers.extractors.fields import SellerFieldExtractor


logger = structlog.get_logger(__name__)


class SellerPageParser:
    """Assembles a SellerRecord from the field extractor's output."""

    def __init__(self, extractor: Optional[SellerFieldExtractor] = None):
        self.extractor = extractor or SellerFieldExtractor()

    def parse(self, html: str, seller_id: int) -> SellerRecord:
        """Parse a seller page.

        Args:
            html: Raw page text
            seller_id: The ID the page was requested for

        Returns:
            SellerRecord; business_name is empty when the page has no seller
        """
        fields = self.extractor.extract(html)
        record = SellerRecord(seller_id=seller_id, **fields)
        logger.debug(
            "seller_page_parsed",
            seller_id=seller_id,
            business_name=record.business_name,
            extras_count=len(record.extras),
        )
        return record


_default_parser: Optional[SellerPageParser] = None


def parse_seller_page(html: str, seller_id: int) -> SellerRecord:
    """Parse with a shared default parser."""
    global _default_parser
    if _default_parser is None:
        _default_parser = SellerPageParser()
    return _default_parser.parse(html, seller_id)
