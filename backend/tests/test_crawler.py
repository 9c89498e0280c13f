"""Tests for the bulk crawl driver, the progress ledger and the CSV sink."""

import csv
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import page
from sellerscraper.core.exceptions import FetchTimeoutError, TransientFetchError
from sellerscraper.crawler import (
    STATUS_EMPTY,
    STATUS_ERROR,
    STATUS_OK,
    CrawlDriver,
    CsvRecordSink,
    JsonLedgerStore,
    LedgerEntry,
    ProgressLedger,
)
from sellerscraper.scrapers.base import RECORD_COLUMNS, SellerRecord
from sellerscraper.scrapers.parser import SellerPageParser


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def store(tmp_path) -> JsonLedgerStore:
    return JsonLedgerStore(tmp_path / "progress.json")


@pytest.fixture
def ledger(store) -> ProgressLedger:
    return ProgressLedger.load(store)


@pytest.fixture
def sink():
    return MagicMock()


def make_driver(fetch, ledger, sink, sleeps, **kwargs) -> CrawlDriver:
    options = {"max_attempts": 3, "backoff_step": 5.0, "delay": 2.0, "flush_every": 10}
    options.update(kwargs)
    return CrawlDriver(fetch, SellerPageParser(), ledger, sink, sleep=sleeps, **options)


# ============================================================================
# TESTS: PROCESSING ONE SELLER
# ============================================================================

class TestProcessSeller:
    """Tests for CrawlDriver.process_seller."""

    async def test_found_seller_is_ok(self, ledger, sink, sleeps, seller_page_html):
        fetch = AsyncMock(return_value=page(seller_page_html))
        driver = make_driver(fetch, ledger, sink, sleeps)

        outcome = await driver.process_seller(1000)

        assert outcome.status == STATUS_OK
        assert outcome.record.business_name == "TechCo B.V."
        assert outcome.attempts == 1
        assert sleeps.calls == []

    async def test_fail_fail_succeed_backs_off_linearly(self, ledger, sink, sleeps, seller_page_html):
        fetch = AsyncMock(
            side_effect=[page("", 503), httpx.ConnectError("refused"), page(seller_page_html)]
        )
        driver = make_driver(fetch, ledger, sink, sleeps)

        outcome = await driver.process_seller(1000)

        assert outcome.status == STATUS_OK
        assert outcome.attempts == 3
        assert sleeps.calls == [5.0, 10.0]

    async def test_not_found_is_empty_without_retry(self, ledger, sink, sleeps):
        fetch = AsyncMock(return_value=page("Not Found", 404))
        driver = make_driver(fetch, ledger, sink, sleeps)

        outcome = await driver.process_seller(9)

        assert outcome.status == STATUS_EMPTY
        assert outcome.attempts == 1
        assert fetch.await_count == 1
        assert sleeps.calls == []

    async def test_page_without_seller_is_empty(self, ledger, sink, sleeps, empty_page_html):
        driver = make_driver(AsyncMock(return_value=page(empty_page_html)), ledger, sink, sleeps)

        outcome = await driver.process_seller(3)

        assert outcome.status == STATUS_EMPTY
        assert outcome.record.is_empty

    async def test_exhausted_retries_end_in_error(self, ledger, sink, sleeps):
        fetch = AsyncMock(side_effect=[page("", 500), FetchTimeoutError(), page("", 429)])
        driver = make_driver(fetch, ledger, sink, sleeps)

        outcome = await driver.process_seller(4)

        assert outcome.status == STATUS_ERROR
        assert outcome.error == "HTTP 429"
        assert outcome.attempts == 3
        assert fetch.await_count == 3
        assert sleeps.calls == [5.0, 10.0]

    async def test_unexpected_exception_is_retried(self, ledger, sink, sleeps):
        fetch = AsyncMock(side_effect=RuntimeError("socket closed"))
        driver = make_driver(fetch, ledger, sink, sleeps, max_attempts=2)

        outcome = await driver.process_seller(4)

        assert outcome.status == STATUS_ERROR
        assert outcome.error == "socket closed"
        assert fetch.await_count == 2

    def test_invalid_options(self, ledger, sink, sleeps):
        with pytest.raises(ValueError):
            make_driver(AsyncMock(), ledger, sink, sleeps, max_attempts=0)
        with pytest.raises(ValueError):
            make_driver(AsyncMock(), ledger, sink, sleeps, flush_every=0)
        with pytest.raises(ValueError):
            make_driver(AsyncMock(), ledger, sink, sleeps, delay=-1)


# ============================================================================
# TESTS: RUNNING A RANGE
# ============================================================================

class TestCrawlRun:
    """Tests for CrawlDriver.run."""

    async def test_prepopulated_ledger_makes_no_requests(self, store, sink, sleeps):
        store.save_all({seller_id: LedgerEntry(STATUS_EMPTY) for seller_id in range(1, 6)})
        ledger = ProgressLedger.load(store)
        fetch = AsyncMock()
        driver = make_driver(fetch, ledger, sink, sleeps)

        stats = await driver.run(1, 5)

        fetch.assert_not_awaited()
        sink.append.assert_not_called()
        assert stats.skipped == 5
        assert stats.processed == 0
        assert stats.done == stats.total == 5
        assert sleeps.calls == []

    async def test_resumes_where_previous_run_stopped(self, store, sink, sleeps, seller_page_html):
        store.save_all({1: LedgerEntry(STATUS_OK), 2: LedgerEntry(STATUS_ERROR, "Timeout")})
        ledger = ProgressLedger.load(store)
        fetch = AsyncMock(return_value=page(seller_page_html))
        driver = make_driver(fetch, ledger, sink, sleeps)

        stats = await driver.run(1, 4)

        assert [call.args[0] for call in fetch.await_args_list] == [3, 4]
        assert stats.skipped == 2
        assert stats.found == 2
        # One pause between the two processed IDs, none after the last
        assert sleeps.calls == [2.0]

    async def test_each_outcome_recorded_once(self, ledger, sink, sleeps, seller_page_html, empty_page_html):
        responses = {1: page(seller_page_html), 2: page("", 404), 3: page(empty_page_html)}
        fetch = AsyncMock(side_effect=lambda seller_id: responses[seller_id])
        driver = make_driver(fetch, ledger, sink, sleeps, delay=0)

        stats = await driver.run(1, 3)

        assert (stats.found, stats.empty, stats.errors) == (1, 2, 0)
        assert ledger.get(1).status == STATUS_OK
        assert ledger.get(2).status == STATUS_EMPTY
        assert ledger.get(3).status == STATUS_EMPTY
        sink.append.assert_called_once()
        assert sink.append.call_args.args[0].seller_id == 1

    async def test_error_is_recorded_with_message(self, ledger, sink, sleeps):
        fetch = AsyncMock(side_effect=TransientFetchError("HTTP 502", status_code=502))
        driver = make_driver(fetch, ledger, sink, sleeps, max_attempts=1, delay=0)

        stats = await driver.run(8, 8)

        assert stats.errors == 1
        assert ledger.get(8) == LedgerEntry(STATUS_ERROR, "HTTP 502")

    async def test_flushes_every_n_processed_and_at_the_end(self, sink, sleeps):
        store = MagicMock()
        store.path = "progress.json"
        ledger = ProgressLedger(store)
        fetch = AsyncMock(return_value=page("", 404))
        driver = make_driver(fetch, ledger, sink, sleeps, delay=0, flush_every=2)

        await driver.run(1, 5)

        # After IDs 2 and 4, then the final flush for ID 5
        assert store.save_all.call_count == 3
        assert len(store.save_all.call_args.args[0]) == 5

    async def test_flushes_when_run_aborts(self, store, sink, sleeps, seller_page_html):
        parser = MagicMock()
        parser.parse.side_effect = [SellerRecord(seller_id=1, business_name="A"), KeyError("boom")]
        ledger = ProgressLedger.load(store)
        fetch = AsyncMock(return_value=page(seller_page_html))
        driver = CrawlDriver(fetch, parser, ledger, sink, delay=0, sleep=sleeps)

        with pytest.raises(KeyError):
            await driver.run(1, 3)

        assert set(store.load_all()) == {1}

    async def test_invalid_range(self, ledger, sink, sleeps):
        driver = make_driver(AsyncMock(), ledger, sink, sleeps)

        with pytest.raises(ValueError):
            await driver.run(5, 4)
        with pytest.raises(ValueError):
            await driver.run(0, 4)


# ============================================================================
# TESTS: LEDGER
# ============================================================================

class TestProgressLedger:
    """Tests for ProgressLedger and JsonLedgerStore."""

    def test_missing_file_is_empty(self, store):
        assert store.load_all() == {}
        assert len(ProgressLedger.load(store)) == 0

    def test_save_and_load(self, store):
        store.save_all({2: LedgerEntry(STATUS_OK), 1: LedgerEntry(STATUS_ERROR, "Timeout")})

        raw = json.loads(store.path.read_text(encoding="utf-8"))
        assert raw == {"1": {"status": "error", "error": "Timeout"}, "2": {"status": "ok"}}
        assert store.load_all() == {1: LedgerEntry(STATUS_ERROR, "Timeout"), 2: LedgerEntry(STATUS_OK)}

    def test_save_leaves_no_temp_files(self, store):
        store.save_all({1: LedgerEntry(STATUS_OK)})
        store.save_all({1: LedgerEntry(STATUS_OK), 2: LedgerEntry(STATUS_EMPTY)})

        assert [p.name for p in store.path.parent.iterdir()] == ["progress.json"]

    def test_failed_save_keeps_previous_snapshot(self, store, monkeypatch):
        store.save_all({1: LedgerEntry(STATUS_OK)})

        def broken_dump(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("sellerscraper.crawler.ledger.json.dump", broken_dump)
        with pytest.raises(OSError):
            store.save_all({1: LedgerEntry(STATUS_OK), 2: LedgerEntry(STATUS_OK)})
        monkeypatch.undo()

        assert store.load_all() == {1: LedgerEntry(STATUS_OK)}
        assert [p.name for p in store.path.parent.iterdir()] == ["progress.json"]

    def test_record_is_monotonic(self, ledger):
        ledger.record(1, STATUS_OK)

        with pytest.raises(ValueError, match="already recorded"):
            ledger.record(1, STATUS_EMPTY)
        assert ledger.get(1).status == STATUS_OK

    def test_rejects_unknown_status(self, ledger):
        with pytest.raises(ValueError, match="Invalid ledger status"):
            ledger.record(1, "pending")
        assert 1 not in ledger

    def test_flush_only_when_changed(self):
        store = MagicMock()
        store.path = "progress.json"
        ledger = ProgressLedger(store)

        ledger.flush()
        ledger.record(1, STATUS_OK)
        ledger.flush()
        ledger.flush()
        ledger.flush(force=True)

        assert store.save_all.call_count == 2

    def test_count_in_range(self, ledger):
        for seller_id in (1, 5, 10):
            ledger.record(seller_id, STATUS_EMPTY)

        assert ledger.count_in_range(2, 10) == 2
        assert sorted(ledger) == [1, 5, 10]


# ============================================================================
# TESTS: CSV SINK
# ============================================================================

class TestCsvRecordSink:
    """Tests for CsvRecordSink."""

    def test_writes_header_once_and_appends(self, tmp_path):
        path = tmp_path / "out" / "sellers.csv"
        sink = CsvRecordSink(path)

        sink.append(SellerRecord(seller_id=1, business_name="Shop, B.V.", rating=4.5))
        sink.append(SellerRecord(seller_id=2, business_name="Ander", extras={"Plaats": "Delft"}))

        with path.open(encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))

        assert rows[0] == RECORD_COLUMNS
        assert len(rows) == 3
        first = dict(zip(RECORD_COLUMNS, rows[1]))
        assert first["businessName"] == "Shop, B.V."
        assert first["rating"] == "4.5"
        assert first["reviewCount"] == ""
        assert first["extras"] == "{}"
        second = dict(zip(RECORD_COLUMNS, rows[2]))
        assert json.loads(second["extras"]) == {"Plaats": "Delft"}

    def test_appends_to_existing_file(self, tmp_path):
        path = tmp_path / "sellers.csv"
        CsvRecordSink(path).append(SellerRecord(seller_id=1, business_name="A"))
        CsvRecordSink(path).append(SellerRecord(seller_id=2, business_name="B"))

        with path.open(encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))

        assert [row[0] for row in rows] == ["sellerId", "1", "2"]
