"""Process-wide minimum gap between Assistant Service calls."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)


class RateLimiter:
    """Enforces a minimum interval between consecutive upstream calls.

    The last-call timestamp is read and written while holding an
    ``asyncio.Lock``, and the lock stays held during the wait, so concurrent
    callers are released one gap apart.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the limiter.

        Args:
            min_interval_seconds: Minimum gap between two calls
            clock: Monotonic clock (injectable for tests)
            sleep: Async sleep function (injectable for tests)
        """
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None

    @classmethod
    def from_milliseconds(cls, min_interval_ms: int) -> "RateLimiter":
        return cls(min_interval_ms / 1000.0)

    async def acquire(self) -> float:
        """Wait until the next call is allowed and record it.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                remaining = self.min_interval_seconds - elapsed
                if remaining > 0:
                    LOGGER.debug(f"Rate limiter sleeping {remaining:.3f}s")
                    await self._sleep(remaining)
                    waited = remaining
            self._last_call = self._clock()
            return waited
