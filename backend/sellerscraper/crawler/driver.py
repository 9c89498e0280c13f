"""Bulk crawl driver.

Walks a seller ID range one ID at a time. Each ID ends in exactly one
terminal state recorded in the progress ledger:

    pending -> ok     record parsed and written to the sink
            -> empty  404, or the page loaded without a seller
            -> error  retries exhausted; the last failure is kept

IDs already in the ledger are skipped without a request, whatever their
status, so re-running over a finished range performs no fetches.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol

import structlog

from sellerscraper.core.exceptions import TransientFetchError
from sellerscraper.crawler.ledger import (
    STATUS_EMPTY,
    STATUS_ERROR,
    STATUS_OK,
    ProgressLedger,
)
from sellerscraper.scrapers.base import FetchResponse, SellerRecord
from sellerscraper.scrapers.parser import SellerPageParser
from sellerscraper.scrapers.utils.rate_limiter import RequestPacer
from sellerscraper.scrapers.utils.retry import fetch_retrying


logger = structlog.get_logger(__name__)

FetchFunc = Callable[[int], Awaitable[FetchResponse]]
SleepFunc = Callable[[float], Awaitable[None]]


class RecordSink(Protocol):
    def append(self, record: SellerRecord) -> None: ...


@dataclass
class CrawlOutcome:
    """Terminal result of processing one seller ID."""

    seller_id: int
    status: str
    record: Optional[SellerRecord] = None
    error: Optional[str] = None
    attempts: int = 0


@dataclass
class CrawlStats:
    """Counters for one run over an ID range."""

    total: int = 0
    skipped: int = 0  # already in the ledger before the run
    processed: int = 0
    found: int = 0
    empty: int = 0
    errors: int = 0

    @property
    def done(self) -> int:
        return self.skipped + self.processed


class CrawlDriver:
    """Sequential, resumable crawl over a seller ID range."""

    def __init__(
        self,
        fetch: FetchFunc,
        parser: SellerPageParser,
        ledger: ProgressLedger,
        sink: RecordSink,
        *,
        max_attempts: int = 3,
        backoff_step: float = 5.0,
        delay: float = 2.0,
        flush_every: int = 10,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize driver.

        Args:
            fetch: Coroutine mapping a seller ID to a FetchResponse
            parser: Seller page parser
            ledger: Progress ledger, loaded by the caller
            sink: Receives every record that ends in "ok"
            max_attempts: Fetch attempts per ID
            backoff_step: Backoff after attempt n is n x backoff_step seconds
            delay: Seconds between two processed IDs
            flush_every: Flush the ledger after this many processed IDs
            sleep: Coroutine used for backoff and pacing (swapped out in tests)
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if flush_every < 1:
            raise ValueError("flush_every must be at least 1")

        self._fetch = fetch
        self.parser = parser
        self.ledger = ledger
        self.sink = sink
        self.max_attempts = max_attempts
        self.backoff_step = backoff_step
        self.flush_every = flush_every
        self._sleep = sleep
        self.pacer = RequestPacer(delay, sleep=sleep)

    async def _fetch_once(self, seller_id: int) -> FetchResponse:
        """One attempt; raises TransientFetchError for anything worth retrying."""
        try:
            response = await self._fetch(seller_id)
        except TransientFetchError:
            raise
        except Exception as e:
            # Any transport failure counts as transient
            raise TransientFetchError(str(e) or type(e).__name__) from e

        if response.ok or response.not_found:
            return response
        raise TransientFetchError.from_status(response.status_code)

    async def process_seller(self, seller_id: int) -> CrawlOutcome:
        """Fetch and parse one seller with retry.

        Never raises for fetch failures; they end in an "error" outcome.
        """
        attempts = 0
        try:
            async for attempt in fetch_retrying(self.max_attempts, self.backoff_step, self._sleep):
                with attempt:
                    attempts += 1
                    response = await self._fetch_once(seller_id)
        except TransientFetchError as e:
            return CrawlOutcome(seller_id, STATUS_ERROR, error=e.message, attempts=attempts)

        if response.not_found:
            return CrawlOutcome(seller_id, STATUS_EMPTY, attempts=attempts)

        record = self.parser.parse(response.text, seller_id)
        if record.is_empty:
            return CrawlOutcome(seller_id, STATUS_EMPTY, record=record, attempts=attempts)
        return CrawlOutcome(seller_id, STATUS_OK, record=record, attempts=attempts)

    def _record(self, outcome: CrawlOutcome, stats: CrawlStats) -> None:
        stats.processed += 1
        if outcome.status == STATUS_OK:
            self.sink.append(outcome.record)
            stats.found += 1
        elif outcome.status == STATUS_EMPTY:
            stats.empty += 1
        else:
            stats.errors += 1
        self.ledger.record(outcome.seller_id, outcome.status, outcome.error)

        logger.info(
            "seller_processed",
            seller_id=outcome.seller_id,
            status=outcome.status,
            business_name=outcome.record.business_name if outcome.record else None,
            error=outcome.error,
            progress=f"{stats.done}/{stats.total}",
            percent=round(stats.done / stats.total * 100, 1) if stats.total else 100.0,
            found=stats.found,
        )

    async def run(self, start_id: int, end_id: int) -> CrawlStats:
        """Crawl every not-yet-recorded ID in [start_id, end_id].

        The ledger is flushed every flush_every processed IDs and always
        on the way out, including when a fatal error aborts the run.
        """
        if start_id < 1 or end_id < start_id:
            raise ValueError("ID range must be positive and ascending")

        stats = CrawlStats(
            total=end_id - start_id + 1,
            skipped=self.ledger.count_in_range(start_id, end_id),
        )
        logger.info(
            "crawl_started",
            start_id=start_id,
            end_id=end_id,
            total=stats.total,
            already_done=stats.skipped,
            delay_seconds=self.pacer.delay,
        )

        self.pacer.reset()
        try:
            for seller_id in range(start_id, end_id + 1):
                if seller_id in self.ledger:
                    continue
                await self.pacer.wait()
                outcome = await self.process_seller(seller_id)
                self._record(outcome, stats)
                if stats.processed % self.flush_every == 0:
                    self.ledger.flush()
        finally:
            self.ledger.flush()

        logger.info(
            "crawl_finished",
            processed=stats.done,
            total=stats.total,
            found=stats.found,
            empty=stats.empty,
            errors=stats.errors,
        )
        return stats
