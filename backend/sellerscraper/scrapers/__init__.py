"""Seller page fetching and parsing.

This package provides:
- SellerRecord / FetchResponse data structures
- The HTTP transport for seller pages
- The extraction pipeline that turns page text into a SellerRecord
"""

from .base import RECORD_COLUMNS, FetchResponse, SellerRecord
from .fetcher import SellerPageFetcher, build_headers
from .parser import SellerPageParser, parse_seller_page

__all__ = [
    # Data structures
    "RECORD_COLUMNS",
    "FetchResponse",
    "SellerRecord",
    # Transport
    "SellerPageFetcher",
    "build_headers",
    # Parsing
    "SellerPageParser",
    "parse_seller_page",
]
