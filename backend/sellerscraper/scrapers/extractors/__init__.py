"""Extraction strategies for seller profile pages."""

from .embedded import EmbeddedSeller, extract_embedded_seller, find_object_end
from .fields import SellerFieldExtractor, first_valid, harvest_labeled_pairs, summarize_shipping
from .imprint import ImprintInfo, parse_imprint

__all__ = [
    "EmbeddedSeller",
    "extract_embedded_seller",
    "find_object_end",
    "SellerFieldExtractor",
    "first_valid",
    "harvest_labeled_pairs",
    "summarize_shipping",
    "ImprintInfo",
    "parse_imprint",
]
