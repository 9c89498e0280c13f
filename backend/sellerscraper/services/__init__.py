"""Service layer for the HTTP API."""

from .lookup_service import LookupResult, SellerLookupService

__all__ = ["LookupResult", "SellerLookupService"]
