"""Fixed-delay pacing for sequential seller page requests."""

import asyncio
from typing import Awaitable, Callable


class RequestPacer:
    """Keeps a fixed pause between successive outbound requests.

    Requests are issued one at a time, so pacing is a plain sleep before
    every request except the first. Callers that know a request is the
    last one simply stop calling wait().
    """

    def __init__(
        self,
        delay: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize pacer.

        Args:
            delay: Seconds to wait between two requests (0 disables pacing)
            sleep: Coroutine used for waiting (swapped out in tests)
        """
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.delay = delay
        self._sleep = sleep
        self._started = False

    async def wait(self) -> None:
        """Wait before the next request; no-op before the first one."""
        if self._started and self.delay > 0:
            await self._sleep(self.delay)
        self._started = True

    def reset(self) -> None:
        self._started = False
