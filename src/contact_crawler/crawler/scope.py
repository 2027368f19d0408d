"""
Link scope policy.

Decides which discovered links a job may follow. By default only links
on the seed's exact host are in scope; follow_external_links lifts that
restriction and restrict_to_path narrows it to a path prefix.
"""

from typing import Iterable
from urllib.parse import urlparse

from contact_crawler.config.settings import CrawlOptions
from contact_crawler.crawler.frontier import normalize_url
from contact_crawler.utils.logging import get_logger

logger = get_logger(__name__)


class ScopePolicy:
    """
    Filter URLs against a seed's host and an optional path prefix.

    Example:
        >>> policy = ScopePolicy(seed_host="example.com")
        >>> policy.is_in_scope("https://example.com/about")
        True
        >>> policy.is_in_scope("https://other.com/")
        False
    """

    def __init__(
        self,
        seed_host: str,
        follow_external: bool = False,
        path_prefix: str | None = None,
    ) -> None:
        """
        Initialize scope policy.

        Args:
            seed_host: Host (with non-default port) of the seed URL
            follow_external: Whether links to other hosts are followed
            path_prefix: Only follow seed-host URLs whose path starts with this
        """
        self.seed_host = seed_host.lower()
        self.hosts = {self.seed_host}
        self.follow_external = follow_external
        self.path_prefix = (path_prefix.rstrip("/") or "/") if path_prefix else None

    @classmethod
    def for_seed(cls, seed_url: str, options: CrawlOptions) -> "ScopePolicy":
        """Build the policy for a job from its seed URL and options."""
        normalized = normalize_url(seed_url) or seed_url
        return cls(
            seed_host=urlparse(normalized).netloc,
            follow_external=options.follow_external_links,
            path_prefix=options.restrict_to_path,
        )

    def add_host(self, host: str) -> None:
        """Treat another host as the seed's own, e.g. after a redirect."""
        host = host.lower()
        if host not in self.hosts:
            logger.info(f"Seed host redirected, also crawling {host}")
            self.hosts.add(host)

    def is_in_scope(self, url: str) -> bool:
        return self.get_rejection_reason(url) is None

    def filter_urls(self, urls: Iterable[str]) -> list[str]:
        """Keep only the in-scope URLs, preserving order."""
        return [url for url in urls if self.is_in_scope(url)]

    def get_rejection_reason(self, url: str) -> str | None:
        """
        Explain why a URL is out of scope.

        Returns:
            Rejection reason or None if the URL is in scope
        """
        normalized = normalize_url(url)
        if normalized is None:
            return "Not an http(s) URL"

        parsed = urlparse(normalized)

        if self.path_prefix is not None:
            if parsed.netloc not in self.hosts:
                return f"Outside restricted host: {parsed.netloc}"
            if not self._path_matches(parsed.path):
                return f"Outside restricted path: {self.path_prefix}"
            return None

        if not self.follow_external and parsed.netloc not in self.hosts:
            return f"External host: {parsed.netloc}"

        return None

    def _path_matches(self, path: str) -> bool:
        if self.path_prefix == "/":
            return True
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")
