"""Pydantic schemas for the seller lookup API.

All request/response models are defined here for easy import.
"""

from sellerscraper.schemas.common import ErrorResponse
from sellerscraper.schemas.health import HealthCheckResponse
from sellerscraper.schemas.seller import (
    BatchLookupRequest,
    BatchLookupResponse,
    SellerErrorResponse,
    SellerResponse,
)

__all__ = [
    # Common
    "ErrorResponse",
    # Health
    "HealthCheckResponse",
    # Seller
    "BatchLookupRequest",
    "BatchLookupResponse",
    "SellerErrorResponse",
    "SellerResponse",
]
