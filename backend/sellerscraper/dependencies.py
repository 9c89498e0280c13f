"""FastAPI dependency injection providers."""

from typing import AsyncGenerator

from sellerscraper.config import settings
from sellerscraper.scrapers.extractors.fields import SellerFieldExtractor
from sellerscraper.scrapers.fetcher import SellerPageFetcher
from sellerscraper.scrapers.parser import SellerPageParser
from sellerscraper.services.lookup_service import SellerLookupService


def get_parser() -> SellerPageParser:
    """Parser configured with the settings' email exclusion list."""
    extractor = SellerFieldExtractor(
        excluded_email_patterns=settings.get_email_exclude_patterns(),
    )
    return SellerPageParser(extractor)


async def _lookup_service(timeout: float) -> AsyncGenerator[SellerLookupService, None]:
    async with SellerPageFetcher(
        settings.MARKETPLACE_BASE_URL,
        timeout=timeout,
        proxy_url=settings.get_proxy_url(),
    ) as fetcher:
        yield SellerLookupService(
            fetcher.fetch,
            get_parser(),
            batch_delay=settings.BATCH_DELAY_SECONDS,
            max_batch_size=settings.BATCH_MAX_SIZE,
        )


async def get_lookup_service() -> AsyncGenerator[SellerLookupService, None]:
    """Lookup service for single-seller requests.

    The underlying HTTP client lives for the duration of the request.
    """
    async for service in _lookup_service(settings.REQUEST_TIMEOUT_SECONDS):
        yield service


async def get_batch_lookup_service() -> AsyncGenerator[SellerLookupService, None]:
    """Lookup service for batch requests, with the shorter batch timeout."""
    async for service in _lookup_service(settings.BATCH_REQUEST_TIMEOUT_SECONDS):
        yield service
