"""On-demand seller lookup used by the HTTP API.

Single lookups make one attempt with no retry; batches run the IDs one
after another with a pause in between and keep the request order.
Failures come back as classified results instead of exceptions.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import structlog

from sellerscraper.core.exceptions import FetchTimeoutError, TransientFetchError
from sellerscraper.scrapers.base import FetchResponse, SellerRecord
from sellerscraper.scrapers.parser import SellerPageParser
from sellerscraper.scrapers.utils.rate_limiter import RequestPacer


logger = structlog.get_logger(__name__)

RESULT_OK = "ok"
RESULT_HTTP_ERROR = "http_error"
RESULT_TIMEOUT = "timeout"
RESULT_ERROR = "error"

LookupFetch = Callable[[int, str, str], Awaitable[FetchResponse]]


@dataclass
class LookupResult:
    """Outcome of looking up one seller."""

    seller_id: int
    kind: str
    record: Optional[SellerRecord] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == RESULT_OK

    def to_dict(self) -> Dict[str, Any]:
        """Record dict on success, {"sellerId", "error"} otherwise."""
        if self.ok and self.record is not None:
            return self.record.to_dict()
        return {"sellerId": self.seller_id, "error": self.error}


class SellerLookupService:
    """Fetch-and-parse for the API's single and batch endpoints."""

    def __init__(
        self,
        fetch: LookupFetch,
        parser: Optional[SellerPageParser] = None,
        *,
        batch_delay: float = 2.0,
        max_batch_size: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize service.

        Args:
            fetch: Coroutine (seller_id, language, country) -> FetchResponse
            parser: Seller page parser
            batch_delay: Seconds between two batch items
            max_batch_size: Largest accepted batch
            sleep: Coroutine used for the batch pause (swapped out in tests)
        """
        self._fetch = fetch
        self.parser = parser or SellerPageParser()
        self.batch_delay = batch_delay
        self.max_batch_size = max_batch_size
        self._sleep = sleep

    async def lookup(
        self,
        seller_id: int,
        language: str = "nl-NL",
        country: str = "NL",
    ) -> LookupResult:
        """Fetch and parse one seller page.

        Returns:
            LookupResult; never raises for fetch or parse failures
        """
        try:
            response = await self._fetch(seller_id, language, country)
        except FetchTimeoutError:
            logger.warning("seller_lookup_timeout", seller_id=seller_id)
            return LookupResult(seller_id, RESULT_TIMEOUT, error="Timeout")
        except TransientFetchError as e:
            logger.warning("seller_lookup_failed", seller_id=seller_id, error=e.message)
            return LookupResult(seller_id, RESULT_ERROR, error=e.message)
        except Exception as e:
            logger.error("seller_lookup_unexpected_error", seller_id=seller_id, error=str(e))
            return LookupResult(seller_id, RESULT_ERROR, error=str(e) or type(e).__name__)

        if not response.ok:
            logger.info("seller_lookup_http_error", seller_id=seller_id, status_code=response.status_code)
            return LookupResult(
                seller_id,
                RESULT_HTTP_ERROR,
                status_code=response.status_code,
                error=f"HTTP {response.status_code}",
            )

        try:
            record = self.parser.parse(response.text, seller_id)
        except Exception as e:
            logger.error("seller_parse_failed", seller_id=seller_id, error=str(e))
            return LookupResult(seller_id, RESULT_ERROR, error=str(e) or type(e).__name__)

        return LookupResult(seller_id, RESULT_OK, record=record, status_code=response.status_code)

    async def lookup_many(
        self,
        seller_ids: Sequence[int],
        language: str = "nl-NL",
        country: str = "NL",
    ) -> List[LookupResult]:
        """Look up several sellers sequentially, preserving request order.

        Raises:
            ValueError: If the batch is empty or larger than max_batch_size
        """
        if not seller_ids:
            raise ValueError("seller_ids must not be empty")
        if len(seller_ids) > self.max_batch_size:
            raise ValueError(f"Maximum batch size is {self.max_batch_size}")

        pacer = RequestPacer(self.batch_delay, sleep=self._sleep)
        results = []
        for seller_id in seller_ids:
            await pacer.wait()
            results.append(await self.lookup(seller_id, language, country))
        return results
