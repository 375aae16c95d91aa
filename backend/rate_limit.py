"""SafeRoute Backend — Outbound request pacing

Every GeoProvider call goes through one RequestPacer, so the spacing between
calls lives here instead of in the scoring code.
"""

import asyncio
import logging
import time
from typing import Optional

logger = logging.getLogger("saferoute.pacing")


class RequestPacer:
    """Fixed-interval pacer: consecutive requests are at least `interval` apart.

    Callers may ask for a longer gap before their own request (`spacing`) or
    reserve a gap before whatever request comes next (`pause`).
    """

    def __init__(self, interval: float = 0.0, clock=time.monotonic, sleep=asyncio.sleep):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._next_allowed = 0.0
        self._last_request: Optional[float] = None
        self._lock = asyncio.Lock()

    async def acquire(self, spacing: float = 0.0):
        async with self._lock:
            now = self._clock()
            ready_at = self._next_allowed
            if self._last_request is not None:
                ready_at = max(ready_at, self._last_request + max(self.interval, spacing))
            wait = ready_at - now
            if wait > 0:
                logger.debug(f"Pacing provider request by {wait:.3f}s")
                await self._sleep(wait)
            self._last_request = self._clock()

    def pause(self, seconds: float):
        """Hold back the next request until `seconds` from now."""
        if seconds <= 0:
            return
        self._next_allowed = max(self._next_allowed, self._clock() + seconds)
