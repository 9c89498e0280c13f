"""Retry policy for seller page fetches.

Transient failures are retried with linearly increasing waits:
attempt 1 fails -> wait 1 x step, attempt 2 fails -> wait 2 x step, ...
"""

import asyncio
from typing import Awaitable, Callable

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from sellerscraper.core.exceptions import TransientFetchError


logger = structlog.get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


def _log_before_sleep(retry_state: RetryCallState) -> None:
    """Log the failed attempt and the upcoming backoff."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "seller_fetch_retry",
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(exc) if exc else None,
    )


def fetch_retrying(
    max_attempts: int = 3,
    backoff_step: float = 5.0,
    sleep: SleepFunc = asyncio.sleep,
) -> AsyncRetrying:
    """Build the async retry controller used by the crawl driver.

    Only TransientFetchError (and its FetchTimeoutError subclass) is retried;
    the last error is re-raised once the attempt budget is spent.

    Args:
        max_attempts: Total attempts including the first one
        backoff_step: Seconds added to the wait after every failed attempt
        sleep: Coroutine used for the backoff waits (swapped out in tests)

    Returns:
        AsyncRetrying to drive with ``async for attempt in ...``
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_incrementing(start=backoff_step, increment=backoff_step),
        retry=retry_if_exception_type(TransientFetchError),
        before_sleep=_log_before_sleep,
        sleep=sleep,
        reraise=True,
    )
