"""
URL frontier for breadth-first crawling.

Provides a FIFO work queue of (url, depth) entries guarded by a visited
set, so every normalized URL is enqueued and dequeued at most once per job.
"""

from collections import deque
from typing import Iterable
from urllib.parse import urljoin, urlparse, urlunparse

from contact_crawler.crawler.models import FrontierEntry
from contact_crawler.utils.logging import get_logger

logger = get_logger(__name__)

CRAWLABLE_SCHEMES = ("http", "https")


def normalize_url(url: str, base: str | None = None) -> str | None:
    """
    Normalize URL for consistent comparison.

    - Resolves relative URLs against base
    - Lowercases scheme and host
    - Removes default ports
    - Removes trailing slashes (except root)
    - Removes fragments
    - Sorts query parameters

    Args:
        url: URL to normalize
        base: Page URL to resolve relative links against

    Returns:
        Normalized URL, or None if the URL is not http(s) or has no host
    """
    if not url:
        return None

    try:
        if base:
            url = urljoin(base, url.strip())
        parsed = urlparse(url.strip())

        scheme = parsed.scheme.lower()
        if scheme not in CRAWLABLE_SCHEMES:
            return None

        netloc = parsed.netloc.lower()
        if not parsed.hostname:
            return None

        if netloc.endswith(":80") and scheme == "http":
            netloc = netloc[:-3]
        elif netloc.endswith(":443") and scheme == "https":
            netloc = netloc[:-4]

        path = parsed.path or "/"
        if path != "/" and path.endswith("/"):
            path = path.rstrip("/") or "/"

        query = parsed.query
        if query:
            query = "&".join(sorted(query.split("&")))

        return urlunparse((scheme, netloc, path, parsed.params, query, ""))

    except ValueError:
        return None


class URLFrontier:
    """
    Breadth-first URL frontier with exactly-once visitation.

    Owned by a single crawl job; not shared between jobs or tasks.

    Example:
        >>> frontier = URLFrontier(max_depth=1)
        >>> frontier.push("https://example.com", depth=0)
        True
        >>> frontier.push("https://example.com/#top", depth=0)
        False
        >>> frontier.pop().url
        'https://example.com/'
    """

    def __init__(self, max_depth: int) -> None:
        """
        Initialize frontier.

        Args:
            max_depth: Maximum crawl depth (0 = seed only)
        """
        self.max_depth = max_depth
        self._queue: deque[FrontierEntry] = deque()
        self._seen: set[str] = set()
        self._dropped_too_deep = 0
        self._dropped_invalid = 0
        self._popped = 0

    def push(
        self,
        url: str,
        depth: int,
        parent_url: str | None = None,
        base: str | None = None,
    ) -> bool:
        """
        Add URL to the frontier if it has not been seen.

        Args:
            url: URL to add (absolute, or relative to base)
            depth: Link distance from the seed
            parent_url: URL of the page that linked here
            base: URL to resolve a relative url against

        Returns:
            True if URL was enqueued, False if too deep, invalid or already seen
        """
        if depth > self.max_depth:
            self._dropped_too_deep += 1
            logger.debug(f"Skipping URL (depth {depth} > {self.max_depth}): {url}")
            return False

        normalized = normalize_url(url, base=base)
        if normalized is None:
            self._dropped_invalid += 1
            return False

        if normalized in self._seen:
            return False

        self._seen.add(normalized)
        self._queue.append(
            FrontierEntry(url=normalized, depth=depth, parent_url=parent_url)
        )
        logger.debug(f"Queued (depth={depth}): {normalized}")
        return True

    def push_many(
        self,
        urls: Iterable[str],
        depth: int,
        parent_url: str | None = None,
    ) -> int:
        """
        Add several URLs at the same depth.

        Returns:
            Number of URLs actually enqueued
        """
        added = 0
        for url in urls:
            if self.push(url, depth, parent_url=parent_url):
                added += 1
        return added

    def pop(self) -> FrontierEntry | None:
        """
        Take the oldest entry.

        Returns:
            FrontierEntry, or None if the frontier is empty
        """
        if not self._queue:
            return None
        self._popped += 1
        return self._queue.popleft()

    def __len__(self) -> int:
        return len(self._queue)

    def is_empty(self) -> bool:
        return not self._queue

    def mark_seen(self, url: str) -> bool:
        """
        Record a URL as visited without queueing it.

        Used for redirect targets so they are not rendered a second time.

        Returns:
            True if the URL was not seen before
        """
        normalized = normalize_url(url)
        if normalized is None or normalized in self._seen:
            return False
        self._seen.add(normalized)
        return True

    def is_seen(self, url: str) -> bool:
        """Check whether a URL was ever enqueued (pending or already popped)."""
        normalized = normalize_url(url)
        return normalized is not None and normalized in self._seen

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def get_stats(self) -> dict:
        return {
            "pending": len(self._queue),
            "seen": len(self._seen),
            "popped": self._popped,
            "dropped_too_deep": self._dropped_too_deep,
            "dropped_invalid": self._dropped_invalid,
        }
