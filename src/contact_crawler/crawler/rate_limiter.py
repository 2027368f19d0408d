"""
Inter-request delay for crawling.

Serializes page renders to a host with a minimum spacing. This is the
crawler's own politeness limit and is unrelated to any throttling of
callers.
"""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass
from urllib.parse import urlparse

from contact_crawler.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitState:
    """
    Tracks request spacing for a single host.

    Attributes:
        last_request_time: Timestamp of last request (monotonic clock)
        request_count: Total requests made to this host
    """

    last_request_time: float | None = None
    request_count: int = 0


class RateLimiter:
    """
    Rate limiter enforcing a minimum delay between requests.

    The first request to a host goes through immediately; later ones wait
    until delay_seconds have passed since the previous request.

    Example:
        >>> limiter = RateLimiter(delay_seconds=1.0)
        >>> await limiter.acquire("https://example.com/page1")
        0.0
        >>> await limiter.acquire("https://example.com/page2")  # waits ~1s
    """

    def __init__(
        self,
        delay_seconds: float = 1.0,
        per_domain: bool = True,
    ) -> None:
        """
        Initialize rate limiter.

        Args:
            delay_seconds: Minimum seconds between requests
            per_domain: If True, track spacing per host; if False, globally
        """
        self.delay_seconds = delay_seconds
        self.per_domain = per_domain
        self._states: dict[str, RateLimitState] = defaultdict(RateLimitState)
        self._lock = asyncio.Lock()

    def _get_key(self, url: str) -> str:
        if not self.per_domain:
            return "global"
        return urlparse(url).netloc.lower() or "unknown"

    async def acquire(self, url: str, min_delay: float | None = None) -> float:
        """
        Wait until a request to url is allowed.

        Args:
            url: URL to be requested
            min_delay: Larger spacing to apply for this host (e.g. robots Crawl-delay)

        Returns:
            Time waited in seconds
        """
        delay = self.delay_seconds
        if min_delay is not None and min_delay > delay:
            delay = min_delay

        async with self._lock:
            state = self._states[self._get_key(url)]
            waited = 0.0

            if state.last_request_time is not None and delay > 0:
                time_since_last = time.monotonic() - state.last_request_time
                if time_since_last < delay:
                    waited = delay - time_since_last
                    logger.debug(f"Delaying {waited:.2f}s before {url}")
                    await asyncio.sleep(waited)

            state.last_request_time = time.monotonic()
            state.request_count += 1

            return waited

    def get_stats(self) -> dict:
        return {
            "hosts": len(self._states),
            "total_requests": sum(s.request_count for s in self._states.values()),
        }

    def reset(self) -> None:
        self._states.clear()
