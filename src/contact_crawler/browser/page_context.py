"""
Page context wrapper for rendering a single URL.

Wraps a Playwright Page with navigation error classification and content
retrieval, producing a RenderedPage for the extractor pipeline.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from contact_crawler.core.exceptions import NavigationError, RenderSessionFatalError
from contact_crawler.extraction.links import extract_links
from contact_crawler.utils.logging import get_logger

logger = get_logger(__name__)

# Playwright messages meaning the page or browser itself is gone
SESSION_LOST_MARKERS = (
    "target page, context or browser has been closed",
    "browser has been closed",
    "target closed",
    "browser has disconnected",
)

NETWORK_ERROR_MARKERS = ("net::", "dns", "connection", "ns_error")


@dataclass
class RenderedPage:
    """
    Content of a rendered page.

    timed_out is True when the page did not finish loading within the
    settle timeout; html is then the partially loaded DOM.
    """

    url: str
    final_url: str
    html: str
    status_code: int = 200
    timed_out: bool = False
    load_time_ms: float = 0.0
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc))

    @property
    def outbound_links(self) -> list[str]:
        """Absolute http(s) links found in the DOM."""
        return extract_links(self.html, self.final_url)


def is_session_lost(error: BaseException) -> bool:
    """Check whether a Playwright error means the browser/page is unusable."""
    message = str(error).lower()
    return any(marker in message for marker in SESSION_LOST_MARKERS)


class PageContext:
    """
    Wrapper around a Playwright Page with rendering helpers.

    Example:
        >>> ctx = PageContext(page)
        >>> rendered = await ctx.render("https://example.com", timeout_ms=30000)
    """

    def __init__(self, page: Page) -> None:
        self.page = page
        self._last_response: Response | None = None

    @property
    def current_url(self) -> str:
        return self.page.url

    async def navigate(self, url: str, timeout_ms: float) -> Response | None:
        """
        Navigate to URL and wait for the DOM to be ready.

        Args:
            url: Target URL
            timeout_ms: Hard navigation timeout

        Returns:
            Response object if available

        Raises:
            NavigationError: If navigation fails, times out or returns an HTTP error
            RenderSessionFatalError: If the page or browser has been closed
        """
        try:
            logger.debug(f"Navigating to: {url}")
            response = await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=timeout_ms,
            )
        except PlaywrightTimeoutError as e:
            raise NavigationError(
                f"Navigation timeout after {timeout_ms:.0f}ms",
                url=url,
                timed_out=True,
            ) from e
        except PlaywrightError as e:
            if is_session_lost(e):
                raise RenderSessionFatalError(
                    f"Render session lost: {e.message}",
                    details={"url": url},
                ) from e

            error_msg = e.message
            if any(x in error_msg.lower() for x in NETWORK_ERROR_MARKERS):
                raise NavigationError(
                    f"Network error: {error_msg}", url=url) from e

            raise NavigationError(
                f"Navigation failed: {error_msg}", url=url) from e

        self._last_response = response

        if response is not None and response.status >= 400:
            raise NavigationError(
                f"HTTP {response.status} error",
                url=url,
                status_code=response.status,
            )

        return response

    async def wait_until_settled(self, timeout_ms: float) -> bool:
        """
        Wait for the load event.

        Returns:
            True if the page loaded in time, False if the wait timed out
        """
        if timeout_ms <= 0:
            return True
        try:
            await self.page.wait_for_load_state("load", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def render(
        self,
        url: str,
        timeout_ms: float,
        settle_timeout_ms: float = 0.0,
    ) -> RenderedPage:
        """
        Navigate to URL and capture the rendered HTML.

        Args:
            url: Target URL
            timeout_ms: Hard navigation timeout
            settle_timeout_ms: Extra wait for the load event

        Returns:
            RenderedPage with the DOM serialized as HTML

        Raises:
            NavigationError: If the page cannot be rendered
            RenderSessionFatalError: If the page or browser has been closed
        """
        start_time = time.perf_counter()

        response = await self.navigate(url, timeout_ms)
        settled = await self.wait_until_settled(settle_timeout_ms)

        try:
            html = await self.page.content()
        except PlaywrightError as e:
            if is_session_lost(e):
                raise RenderSessionFatalError(
                    f"Render session lost: {e.message}",
                    details={"url": url},
                ) from e
            raise NavigationError(
                f"Failed to read page content: {e.message}", url=url) from e

        elapsed = (time.perf_counter() - start_time) * 1000

        return RenderedPage(
            url=url,
            final_url=self.page.url or url,
            html=html,
            status_code=response.status if response is not None else 200,
            timed_out=not settled,
            load_time_ms=elapsed,
        )

    async def close(self) -> None:
        try:
            await self.page.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing page: {e}")
