"""
Admission control for outbound geocoding requests.

Free-tier geocoding APIs are unauthenticated and rate limited, so only a
small number of requests may be in flight at once. Callers that find the
limiter full sleep a random delay and poll again. There is no queue, so
admission order among waiters is not guaranteed.
"""
import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


class ConcurrencyLimiter:
    """Bounded in-flight counter with jittered re-polling"""

    def __init__(self, max_concurrent: int = 1, retry_delay: Tuple[float, float] = (2.0, 4.0)):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.retry_delay = retry_delay
        self._in_flight = 0
        self.stats = {
            "admissions": 0,
            "retries": 0,
            "peak_in_flight": 0,
        }

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def try_acquire(self) -> bool:
        """Take a slot if one is free, without waiting"""
        if self._in_flight >= self.max_concurrent:
            return False
        self._in_flight += 1
        self.stats["admissions"] += 1
        self.stats["peak_in_flight"] = max(self.stats["peak_in_flight"], self._in_flight)
        return True

    async def acquire(self) -> None:
        """Wait until a slot is free, re-polling after a random delay"""
        while not self.try_acquire():
            self.stats["retries"] += 1
            delay = random.uniform(*self.retry_delay)
            logger.debug(
                f"Geocoding limiter saturated ({self._in_flight}/{self.max_concurrent}), "
                f"retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    def release(self) -> None:
        if self._in_flight > 0:
            self._in_flight -= 1
        else:
            logger.warning("Geocoding limiter released without a matching acquire")

    @asynccontextmanager
    async def slot(self):
        """Hold one slot for the duration of the block"""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    def get_statistics(self) -> Dict:
        return {
            "max_concurrent": self.max_concurrent,
            "in_flight": self._in_flight,
            **self.stats,
        }
