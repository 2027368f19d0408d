"""
robots.txt compliance for crawl jobs.

Fetches each host's robots.txt once per job and caches the parsed rules.
An unreachable robots.txt fails open: the URL is allowed and the failure
is logged.
"""

from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import httpx

from contact_crawler.core.exceptions import RobotsFetchError
from contact_crawler.utils.logging import get_logger
from contact_crawler.utils.metrics import Metrics

logger = get_logger(__name__)


class RobotsChecker:
    """
    Checks URLs against robots.txt rules.

    Caches robots.txt per scheme and host for the lifetime of the checker,
    which is one crawl job.

    Status handling:
    - 200: rules are parsed and enforced
    - 4xx: no usable robots.txt, everything allowed
    - 5xx or transport failure: fail open, everything allowed

    Example:
        >>> checker = RobotsChecker(user_agent="ContactCrawler/1.0")
        >>> await checker.is_allowed("https://example.com/page")
        True
    """

    def __init__(
        self,
        user_agent: str,
        timeout_seconds: float = 5.0,
        enabled: bool = True,
        agent_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize robots.txt checker.

        Args:
            user_agent: User agent sent when fetching robots.txt
            timeout_seconds: Timeout for fetching robots.txt
            enabled: If False, allows all URLs without fetching anything
            agent_token: Token matched against User-agent groups (defaults to user_agent)
            transport: Optional httpx transport, e.g. for tests
        """
        self.user_agent = user_agent
        self.agent_token = agent_token or user_agent
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self._transport = transport
        self._parsers: dict[str, RobotFileParser | None] = {}
        self._fetch_errors: set[str] = set()

    @staticmethod
    def _get_domain_key(url: str) -> str:
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}".lower()

    async def _fetch_robots(self, domain_key: str) -> RobotFileParser | None:
        """
        Fetch and parse robots.txt for a host.

        Raises:
            RobotsFetchError: If the file cannot be retrieved
        """
        robots_url = f"{domain_key}/robots.txt"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            ) as client:
                response = await client.get(robots_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RobotsFetchError(
                f"Could not fetch robots.txt: {e}", robots_url=robots_url
            ) from e

        if response.status_code == 200:
            logger.debug(f"Loaded robots.txt from {robots_url}")
            return self._parse(response.text)

        if 400 <= response.status_code < 500:
            logger.debug(f"No robots.txt at {robots_url} ({response.status_code})")
            return None

        raise RobotsFetchError(
            f"Unexpected status {response.status_code}",
            robots_url=robots_url,
        )

    @staticmethod
    def _parse(text: str) -> RobotFileParser:
        parser = RobotFileParser()
        parser.parse(text.splitlines())
        return parser

    async def _get_parser(self, url: str) -> RobotFileParser | None:
        domain_key = self._get_domain_key(url)

        if domain_key not in self._parsers:
            try:
                self._parsers[domain_key] = await self._fetch_robots(domain_key)
            except RobotsFetchError as e:
                logger.warning(f"{e}; allowing all URLs on {domain_key}")
                self._fetch_errors.add(domain_key)
                self._parsers[domain_key] = None

        return self._parsers[domain_key]

    async def is_allowed(self, url: str) -> bool:
        """
        Check if URL is allowed by robots.txt.

        Args:
            url: URL to check

        Returns:
            True if allowed, False if blocked
        """
        if not self.enabled:
            return True

        parser = await self._get_parser(url)
        if parser is None:
            return True

        allowed = parser.can_fetch(self.agent_token, url)
        if not allowed:
            Metrics.get().increment("pages_blocked")
            logger.debug(f"Blocked by robots.txt: {url}")

        return allowed

    def get_crawl_delay(self, url: str) -> float | None:
        """
        Get the Crawl-delay for a host, if its robots.txt was loaded.

        Returns:
            Crawl delay in seconds, or None if not specified
        """
        if not self.enabled:
            return None

        parser = self._parsers.get(self._get_domain_key(url))
        if parser is None:
            return None

        delay = parser.crawl_delay(self.agent_token)
        return float(delay) if delay is not None else None

    def set_rules(self, url: str, robots_txt: str) -> None:
        """
        Preload robots.txt rules for the host of url.

        Args:
            url: Any URL on the host
            robots_txt: Raw robots.txt content
        """
        self._parsers[self._get_domain_key(url)] = self._parse(robots_txt)

    def had_fetch_error(self, url: str) -> bool:
        """Whether the host's robots.txt could not be fetched."""
        return self._get_domain_key(url) in self._fetch_errors

    def clear_cache(self) -> None:
        self._parsers.clear()
        self._fetch_errors.clear()
