"""
Job-scoped render session using Playwright.

A RenderSession owns one browser, one context and one page for the whole
lifetime of a crawl job. It is acquired once before the crawl loop and
released exactly once on every exit path.
"""

import asyncio

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Route,
)

from contact_crawler.browser.page_context import PageContext, RenderedPage
from contact_crawler.config.settings import BrowserSettings, CrawlOptions
from contact_crawler.core.exceptions import RenderSessionFatalError
from contact_crawler.utils.logging import get_logger
from contact_crawler.utils.metrics import Metrics

logger = get_logger(__name__)


class RenderSession:
    """
    Scoped browser session rendering one page at a time.

    Honors the job's resource blocking flags and per-page timeout.

    Example:
        >>> async with RenderSession(options) as session:
        ...     rendered = await session.fetch("https://example.com")
        ...     print(rendered.outbound_links)
    """

    def __init__(
        self,
        options: CrawlOptions,
        browser_settings: BrowserSettings | None = None,
    ) -> None:
        """
        Initialize render session.

        Args:
            options: Crawl options (headless, timeouts, resource blocking, user agent)
            browser_settings: Browser engine and context configuration
        """
        self.options = options
        self.browser_settings = browser_settings or BrowserSettings()
        self._blocked_types = options.block_resources.blocked_types()

        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._page_ctx: PageContext | None = None
        self._fetch_lock = asyncio.Lock()

        self._acquired = False
        self._released = False
        self.release_count = 0
        self.blocked_requests = 0

    @property
    def is_active(self) -> bool:
        return self._acquired and not self._released

    async def acquire(self) -> None:
        """
        Start Playwright, launch the browser and open the page.

        Raises:
            RenderSessionFatalError: If any step fails; partial resources are released
        """
        if self._acquired:
            raise RenderSessionFatalError("Render session already acquired")
        self._acquired = True

        settings = self.browser_settings
        try:
            logger.info(
                f"Starting {settings.browser_type} browser "
                f"(headless={self.options.headless})"
            )

            self._playwright = await async_playwright().start()
            browser_type = getattr(self._playwright, settings.browser_type)

            launch_options: dict = {"headless": self.options.headless}
            if settings.browser_type == "chromium" and settings.launch_args:
                launch_options["args"] = list(settings.launch_args)
            self._browser = await browser_type.launch(**launch_options)

            self._context = await self._browser.new_context(
                user_agent=self.options.user_agent,
                viewport={
                    "width": settings.viewport_width,
                    "height": settings.viewport_height,
                },
                ignore_https_errors=settings.ignore_https_errors,
                extra_http_headers=dict(settings.extra_headers),
            )
            self._context.set_default_timeout(self.options.page_timeout_ms)
            self._context.set_default_navigation_timeout(
                self.options.page_timeout_ms)

            if self._blocked_types:
                await self._context.route("**/*", self._route_request)

            self._page = await self._context.new_page()
            self._page_ctx = PageContext(self._page)

            logger.info("Render session ready")

        except Exception as e:
            await self._cleanup()
            self._released = True
            raise RenderSessionFatalError(
                f"Failed to launch browser: {e}",
                details={"browser_type": settings.browser_type},
            ) from e

    async def _route_request(self, route: Route) -> None:
        """Abort requests for blocked resource types."""
        if route.request.resource_type in self._blocked_types:
            self.blocked_requests += 1
            await route.abort()
        else:
            await route.continue_()

    async def fetch(self, url: str) -> RenderedPage:
        """
        Render a URL.

        Only one fetch runs at a time; concurrent callers wait.

        Args:
            url: URL to render

        Returns:
            RenderedPage

        Raises:
            NavigationError: Per-page failure (timeout, network, HTTP error)
            RenderSessionFatalError: Session not acquired, released, or browser lost
        """
        if not self.is_active or self._page_ctx is None:
            raise RenderSessionFatalError("Render session is not active")

        async with self._fetch_lock:
            if self._browser is not None and not self._browser.is_connected():
                raise RenderSessionFatalError("Browser disconnected")

            with Metrics.get().timer("page_render_ms"):
                return await self._page_ctx.render(
                    url,
                    timeout_ms=self.options.page_timeout_ms,
                    settle_timeout_ms=self.options.settle_timeout_ms,
                )

    async def release(self) -> None:
        """
        Close page, context, browser and Playwright.

        Safe to call multiple times; resources are released once.
        """
        if not self._acquired or self._released:
            return
        self._released = True
        await self._cleanup()
        self.release_count += 1
        logger.info("Render session released")

    async def _cleanup(self) -> None:
        """Close whatever was opened, innermost first."""
        if self._page_ctx is not None:
            await self._page_ctx.close()
            self._page_ctx = None
            self._page = None

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self._playwright = None

    async def __aenter__(self) -> "RenderSession":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release()
