"""Resumable bulk crawl over a seller ID range."""

from .driver import CrawlDriver, CrawlOutcome, CrawlStats
from .ledger import (
    LEDGER_STATUSES,
    STATUS_EMPTY,
    STATUS_ERROR,
    STATUS_OK,
    JsonLedgerStore,
    LedgerEntry,
    ProgressLedger,
)
from .sink import CsvRecordSink

__all__ = [
    "CrawlDriver",
    "CrawlOutcome",
    "CrawlStats",
    "LEDGER_STATUSES",
    "STATUS_EMPTY",
    "STATUS_ERROR",
    "STATUS_OK",
    "JsonLedgerStore",
    "LedgerEntry",
    "ProgressLedger",
    "CsvRecordSink",
]
