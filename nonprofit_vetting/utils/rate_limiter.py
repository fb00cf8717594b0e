"""
Process-wide request throttling per API.

Collectors can be created per request or per worker thread, so the minimum
gap between calls is tracked here by API name instead of on the collector.

    from nonprofit_vetting.utils.rate_limiter import global_rate_limiter

    global_rate_limiter.wait("propublica", delay=0.5)
    response = requests.get(url)
"""

import logging
import threading
import time
from typing import Optional

logger = logging.getLogger(__name__)


class GlobalRateLimiter:
    """
    Enforces a minimum delay between consecutive requests to the same API.

    Callers for one API hold that API's lock while sleeping, so concurrent
    threads are released one at a time in arrival order. Different APIs
    never block each other.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._api_locks: dict[str, threading.Lock] = {}
        self._last_call: dict[str, float] = {}

    def _lock_for(self, api: str) -> threading.Lock:
        with self._guard:
            return self._api_locks.setdefault(api, threading.Lock())

    def wait(self, api: str, delay: float) -> float:
        """
        Sleep until at least ``delay`` seconds have passed since the last
        request to ``api``, then record this request.

        Returns:
            Seconds actually slept (0.0 when no wait was needed)
        """
        with self._lock_for(api):
            last = self._last_call.get(api)
            remaining = 0.0 if last is None else delay - (time.monotonic() - last)
            if remaining > 0:
                logger.debug(f"Rate limiting {api}: waiting {remaining * 1000:.0f}ms")
                time.sleep(remaining)
            else:
                remaining = 0.0
            self._last_call[api] = time.monotonic()
            return remaining

    def reset(self, api: Optional[str] = None):
        """Forget the last request time for one API, or for all of them."""
        with self._guard:
            if api is None:
                self._last_call.clear()
            else:
                self._last_call.pop(api, None)


# Shared by every collector instance
global_rate_limiter = GlobalRateLimiter()
