import asyncio
import time
from typing import Dict, Optional

from config import settings, logger


class RateLimiter:
    """Spaces out calls to one upstream so at most ``calls_per_second`` start each second."""

    def __init__(self, name: str, calls_per_second: float):
        if calls_per_second <= 0:
            raise ValueError(f"calls_per_second for {name} must be positive, got {calls_per_second}")
        self.name = name
        self.calls_per_second = calls_per_second
        self.min_interval = 1.0 / calls_per_second
        self._next_slot = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """Wait for the next free slot. Returns the seconds spent waiting."""
        async with self._lock:
            now = time.monotonic()
            wait_time = max(0.0, self._next_slot - now)
            if wait_time:
                logger.debug("Throttling %s call for %.3fs", self.name, wait_time)
                await asyncio.sleep(wait_time)
            self._next_slot = max(now, self._next_slot) + self.min_interval
            return wait_time


_rate_limiters: Dict[str, RateLimiter] = {}

def get_rate_limiter(api_name: str, calls_per_second: Optional[float] = None) -> RateLimiter:
    """Shared limiter for an upstream; ``settings.RATE_LIMIT_OVERRIDES`` wins over the default rate."""
    if api_name not in _rate_limiters:
        rate = settings.RATE_LIMIT_OVERRIDES.get(api_name, calls_per_second or 10.0)
        _rate_limiters[api_name] = RateLimiter(api_name, rate)
    return _rate_limiters[api_name]
