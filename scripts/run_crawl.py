"""Bulk seller crawler.

Walks a range of marketplace seller IDs, writes every seller found to a
CSV file and tracks processed IDs in a progress file so an interrupted
run picks up where it stopped.

Usage:
    python scripts/run_crawl.py                        # IDs 1-15000, resumes automatically
    python scripts/run_crawl.py --from 500 --to 1000
    python scripts/run_crawl.py --from 500 --to 1000 --delay 3

Output:
    results/sellers.csv    -- all successfully scraped sellers
    results/progress.json  -- processed IDs and their outcome (for resume)
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add backend to path so the package imports without installation
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from sellerscraper.config import settings
from sellerscraper.core.logging_config import configure_logging
from sellerscraper.crawler import (
    CrawlDriver,
    CrawlStats,
    CsvRecordSink,
    JsonLedgerStore,
    ProgressLedger,
)
from sellerscraper.dependencies import get_parser
from sellerscraper.scrapers.fetcher import SellerPageFetcher

CSV_FILENAME = "sellers.csv"
PROGRESS_FILENAME = "progress.json"


async def run_crawl(
    from_id: int,
    to_id: int,
    delay: float,
    results_dir: Path,
    language: str,
    country: str,
) -> CrawlStats:
    """Crawl [from_id, to_id] and return the run's counters.

    Args:
        from_id: First seller ID (inclusive)
        to_id: Last seller ID (inclusive)
        delay: Seconds between requests
        results_dir: Directory for the CSV and progress files
        language: Page language, e.g. "nl-NL"
        country: Marketplace country code, e.g. "NL"
    """
    ledger = ProgressLedger.load(JsonLedgerStore(results_dir / PROGRESS_FILENAME))
    sink = CsvRecordSink(results_dir / CSV_FILENAME)

    async with SellerPageFetcher(
        settings.MARKETPLACE_BASE_URL,
        timeout=settings.CRAWL_REQUEST_TIMEOUT_SECONDS,
        proxy_url=settings.get_proxy_url(),
    ) as fetcher:

        async def fetch(seller_id: int):
            return await fetcher.fetch(seller_id, language=language, country=country)

        driver = CrawlDriver(
            fetch,
            get_parser(),
            ledger,
            sink,
            max_attempts=settings.CRAWL_MAX_ATTEMPTS,
            backoff_step=settings.CRAWL_BACKOFF_STEP_SECONDS,
            delay=delay,
            flush_every=settings.CRAWL_FLUSH_EVERY,
        )
        return await driver.run(from_id, to_id)


def _print_summary(stats: CrawlStats, results_dir: Path) -> None:
    print(f"\n{'='*70}")
    print("  Done")
    print(f"{'='*70}")
    print(f"  Processed:     {stats.done} / {stats.total}")
    print(f"  Skipped:       {stats.skipped} (already in progress file)")
    print(f"  Sellers found: {stats.found}")
    print(f"  Empty:         {stats.empty}")
    print(f"  Errors:        {stats.errors}")
    print(f"  Results saved to: {results_dir / CSV_FILENAME}")
    print(f"{'='*70}\n")


def main():
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(
        description="Crawl marketplace seller pages over an ID range",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_crawl.py --from 500 --to 1000
  python scripts/run_crawl.py --from 500 --to 1000 --delay 3
  python scripts/run_crawl.py --results-dir results/de --language de-DE --country DE
        """,
    )
    parser.add_argument(
        "--from", dest="from_id", type=int, default=settings.CRAWL_FROM_ID,
        help=f"First seller ID (default: {settings.CRAWL_FROM_ID})",
    )
    parser.add_argument(
        "--to", dest="to_id", type=int, default=settings.CRAWL_TO_ID,
        help=f"Last seller ID (default: {settings.CRAWL_TO_ID})",
    )
    parser.add_argument(
        "--delay", type=float, default=settings.CRAWL_DELAY_SECONDS,
        help=f"Seconds between requests (default: {settings.CRAWL_DELAY_SECONDS})",
    )
    parser.add_argument(
        "--results-dir", type=Path, default=Path(settings.RESULTS_DIR),
        help=f"Output directory (default: {settings.RESULTS_DIR})",
    )
    parser.add_argument("--language", default=settings.DEFAULT_LANGUAGE)
    parser.add_argument("--country", default=settings.DEFAULT_COUNTRY)

    args = parser.parse_args()

    if args.from_id < 1 or args.to_id < args.from_id:
        parser.error("--from must be >= 1 and --to must be >= --from")
    if args.delay < 0:
        parser.error("--delay must be non-negative")

    configure_logging(settings.LOG_LEVEL)

    print(f"\n{'='*70}")
    print("  Marketplace Seller Crawler")
    print(f"{'='*70}")
    print(f"  Range:  {args.from_id} - {args.to_id} ({args.to_id - args.from_id + 1} IDs)")
    print(f"  Delay:  {args.delay}s between requests")
    print(f"  Output: {args.results_dir / CSV_FILENAME}")
    print(f"{'='*70}\n")

    try:
        stats = asyncio.run(
            run_crawl(
                args.from_id,
                args.to_id,
                args.delay,
                args.results_dir,
                args.language,
                args.country,
            )
        )
    except KeyboardInterrupt:
        print("\nInterrupted; progress has been saved.")
        sys.exit(130)
    except Exception as e:
        print(f"\nFatal error: {e}")
        sys.exit(1)

    _print_summary(stats, args.results_dir)


if __name__ == "__main__":
    main()
