"""Scraper utilities for text normalization, retries and request pacing."""

from .normalizer import clean_text, is_placeholder, parse_count, parse_number
from .rate_limiter import RequestPacer
from .retry import fetch_retrying


__all__ = [
    # Normalization
    "clean_text",
    "is_placeholder",
    "parse_count",
    "parse_number",
    # Pacing
    "RequestPacer",
    # Retry
    "fetch_retrying",
]
