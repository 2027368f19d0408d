"""
Crawl orchestration for the contact crawler.

Coordinates the frontier, scope policy, robots checker, delay, render
session and extractor pipeline for one seed URL. Provides the main
entry point for crawling a site.
"""

import asyncio
from datetime import datetime, timezone
from typing import AsyncIterator, Callable
from urllib.parse import urlparse

from contact_crawler.browser.page_context import RenderedPage
from contact_crawler.browser.session import RenderSession
from contact_crawler.config.settings import BrowserSettings, CrawlOptions, RobotsSettings
from contact_crawler.core.exceptions import (
    CrawlerError,
    CrawlJobError,
    NavigationError,
    error_payload,
)
from contact_crawler.crawler.events import (
    EventType,
    ProgressCallback,
    ProgressChannel,
    ProgressEvent,
)
from contact_crawler.crawler.frontier import URLFrontier, normalize_url
from contact_crawler.crawler.models import CrawlResult, CrawlState, FrontierEntry
from contact_crawler.crawler.rate_limiter import RateLimiter
from contact_crawler.crawler.robots import RobotsChecker
from contact_crawler.crawler.scope import ScopePolicy
from contact_crawler.extraction.base import ExtractionTarget, PageDocument
from contact_crawler.extraction.pipeline import ExtractionPipeline, PageExtraction
from contact_crawler.extraction.records import PersonalDataRecord
from contact_crawler.utils.logging import get_logger, get_logger_with_context
from contact_crawler.utils.metrics import Metrics

logger = get_logger(__name__)

# Builds the render session for a job: (options, browser_settings) -> session
SessionFactory = Callable[[CrawlOptions, BrowserSettings], RenderSession]

DEFAULT_STREAM_BUFFER = 100


class CrawlJob:
    """
    A single-seed crawl.

    Runs a breadth-first crawl bounded by max_depth and max_pages,
    collecting emails and personal data from every rendered page. A job
    runs once; its state moves PENDING -> RUNNING -> COMPLETED, FAILED
    or CANCELLED.

    Example:
        >>> job = CrawlJob("https://example.com", CrawlOptions(max_pages=10))
        >>> result = await job.run()
        >>> print(result.emails)

        >>> async for event in CrawlJob(seed, options).stream():
        ...     print(event.pages_visited, event.email_count)
    """

    def __init__(
        self,
        seed_url: str,
        options: CrawlOptions | None = None,
        *,
        browser_settings: BrowserSettings | None = None,
        robots_settings: RobotsSettings | None = None,
        session_factory: SessionFactory | None = None,
        robots_checker: RobotsChecker | None = None,
        pipeline: ExtractionPipeline | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """
        Initialize crawl job.

        Args:
            seed_url: Starting URL (already validated by the caller)
            options: Crawl options; defaults if None
            browser_settings: Browser configuration for the render session
            robots_settings: robots.txt fetch configuration
            session_factory: Builds the render session (defaults to RenderSession)
            robots_checker: Robots checker (defaults to one per job)
            pipeline: Extractor pipeline (defaults to the standard composition)
            rate_limiter: Inter-request delay (defaults to the options' delay)
        """
        self.seed_url = seed_url
        self.options = options or CrawlOptions()
        self.browser_settings = browser_settings or BrowserSettings()

        robots_settings = robots_settings or RobotsSettings()
        self._session_factory = session_factory or RenderSession
        self._robots = robots_checker or RobotsChecker(
            user_agent=self.options.user_agent,
            timeout_seconds=robots_settings.timeout_seconds,
            enabled=self.options.respect_robots,
            agent_token=robots_settings.user_agent_token,
        )
        self._pipeline = pipeline or ExtractionPipeline.default(
            collect_personal_data=self.options.collect_personal_data
        )
        self._rate_limiter = rate_limiter or RateLimiter(
            delay_seconds=self.options.request_delay_seconds
        )

        self._state = CrawlState.PENDING
        self._result = CrawlResult(seed_url=seed_url, state=CrawlState.PENDING)
        self._frontier: URLFrontier | None = None
        self._email_keys: set[str] = set()
        self._personal_keys: set[tuple[str, str]] = set()
        self._rendered_urls: set[str] = set()
        self._cancel_requested = False
        self.error: CrawlJobError | None = None

        self._log = get_logger_with_context(__name__, seed=seed_url)

    @property
    def state(self) -> CrawlState:
        return self._state

    @property
    def result(self) -> CrawlResult:
        """Result so far; final once the job is in a terminal state."""
        return self._result

    @property
    def queue_size(self) -> int:
        return len(self._frontier) if self._frontier is not None else 0

    def cancel(self) -> None:
        """
        Request cooperative cancellation.

        The loop stops before its next page; the job ends in CANCELLED
        with the partial result.
        """
        if not self._state.is_terminal:
            self._log.info("Cancellation requested")
            self._cancel_requested = True

    async def run(self, on_progress: ProgressCallback | None = None) -> CrawlResult:
        """
        Run the crawl to completion.

        Args:
            on_progress: Optional async callback receiving every progress event

        Returns:
            CrawlResult (state COMPLETED, or CANCELLED after cancel())

        Raises:
            CrawlerError: If the job has already been started
            CrawlJobError: If the job failed; the cause is chained
        """
        result = await self._execute(on_progress)
        if self.error is not None:
            raise self.error
        return result

    async def stream(
        self,
        maxsize: int = DEFAULT_STREAM_BUFFER,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run the crawl, yielding progress events.

        Yields PAGE events followed by exactly one terminal event. Closing
        the iterator before the terminal event cancels the job, which
        releases the render session and ends in CANCELLED.

        Args:
            maxsize: Event buffer size; the crawl pauses while it is full

        Yields:
            ProgressEvent for each page attempt, then the terminal event
        """
        channel = ProgressChannel(maxsize=maxsize)
        task = asyncio.create_task(self._execute(channel.send))
        receive: asyncio.Future | None = None

        try:
            while True:
                receive = asyncio.ensure_future(channel.receive())
                done, _ = await asyncio.wait(
                    {receive, task}, return_when=asyncio.FIRST_COMPLETED
                )
                if receive not in done:
                    receive.cancel()
                    if channel.pending:
                        continue
                    # The task ended without a terminal event (already started)
                    task.result()
                    return

                event = receive.result()
                yield event
                if event.is_terminal:
                    break
        finally:
            channel.close()
            if receive is not None and not receive.done():
                receive.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

    async def _execute(self, emit: ProgressCallback | None) -> CrawlResult:
        """
        Drive the state machine around the crawl loop.

        Fatal errors end the job in FAILED and are stored in self.error.
        Task cancellation ends it in CANCELLED and propagates.
        """
        if self._state != CrawlState.PENDING:
            raise CrawlerError(
                "Crawl job has already been started",
                details={"state": self._state.value},
            )

        self._state = CrawlState.RUNNING
        self._result.state = CrawlState.RUNNING
        self._result.started_at = datetime.now(timezone.utc)
        self._log.info("Crawl job started")

        try:
            await self._crawl(emit)

        except asyncio.CancelledError:
            self._finish(CrawlState.CANCELLED)
            self._log.info(
                f"Crawl job cancelled after {self._result.pages_visited} pages")
            raise

        except Exception as e:
            self._finish(CrawlState.FAILED)
            Metrics.get().increment("jobs_failed")
            self._log.error(f"Crawl job failed: {e}")

            error = CrawlJobError(f"Crawl failed: {e}", seed_url=self.seed_url)
            error.__cause__ = e
            self.error = error

            await self._emit(emit, self._terminal_event(
                EventType.FAILED, error=error_payload(error)))
            return self._result

        if self._cancel_requested:
            self._finish(CrawlState.CANCELLED)
            self._log.info(
                f"Crawl job cancelled after {self._result.pages_visited} pages")
            event_type = EventType.CANCELLED
        else:
            self._finish(CrawlState.COMPLETED)
            Metrics.get().increment("jobs_completed")
            self._log.info(
                f"Crawl job completed: {self._result.pages_visited} pages, "
                f"{self._result.pages_failed} failed, "
                f"{self._result.total_emails} emails, "
                f"{self._result.duration_seconds:.1f}s"
            )
            event_type = EventType.COMPLETED

        await self._emit(emit, self._terminal_event(event_type, result=self._result))
        return self._result

    def _finish(self, state: CrawlState) -> None:
        self._state = state
        self._result.state = state
        self._result.completed_at = datetime.now(timezone.utc)

    async def _crawl(self, emit: ProgressCallback | None) -> None:
        """
        Main crawl loop.

        The render session is acquired once here and released on every
        exit path by the async context manager.
        """
        options = self.options
        scope = ScopePolicy.for_seed(self.seed_url, options)
        self._frontier = URLFrontier(max_depth=options.max_depth)

        if not self._frontier.push(self.seed_url, depth=0):
            raise CrawlerError(
                "Seed URL cannot be crawled",
                details={"url": self.seed_url},
            )

        async with self._session_factory(options, self.browser_settings) as session:
            while not self._cancel_requested:
                if self._result.pages_visited >= options.max_pages:
                    self._log.info(f"Reached page limit: {options.max_pages}")
                    break

                entry = self._frontier.pop()
                if entry is None:
                    self._log.debug("Frontier empty, crawl complete")
                    break

                await self._visit(session, entry, scope, emit)

    async def _visit(
        self,
        session: RenderSession,
        entry: FrontierEntry,
        scope: ScopePolicy,
        emit: ProgressCallback | None,
    ) -> None:
        """
        Process one frontier entry.

        A URL disallowed by robots.txt is skipped silently. A failed render
        is counted and reported but does not consume the page budget.
        """
        url = entry.url

        # Already rendered as an earlier page's redirect target
        if url in self._rendered_urls:
            self._log.debug(f"Skipping already rendered URL: {url}")
            return

        if not await self._robots.is_allowed(url):
            self._result.pages_skipped += 1
            self._log.info(f"Blocked by robots.txt: {url}")
            return

        await self._rate_limiter.acquire(url, min_delay=self._robots.get_crawl_delay(url))

        try:
            rendered = await session.fetch(url)
        except NavigationError as e:
            self._result.pages_failed += 1
            Metrics.get().increment("pages_failed")
            self._log.warning(f"Page failed: {url} ({e.message})")
            await self._emit(emit, self._page_event(url, success=False, error=error_payload(e)))
            return

        self._result.pages_visited += 1
        Metrics.get().increment("pages_crawled")
        self._rendered_urls.add(url)

        if rendered.final_url != url:
            self._follow_redirect(entry, rendered.final_url, scope)

        extraction = self._pipeline.run(PageDocument(rendered.final_url, rendered.html))
        new_emails = self._merge_emails(extraction.emails)
        self._merge_personal_data(extraction.personal_data)

        if entry.depth < self.options.max_depth:
            links = self._outbound_links(extraction, rendered)
            added = self._frontier.push_many(
                scope.filter_urls(links),
                depth=entry.depth + 1,
                parent_url=url,
            )
            if added:
                self._log.debug(f"Discovered {added} new links from {url}")

        self._log.info(
            f"[{self._result.pages_visited}/{self.options.max_pages}] "
            f"Fetched {url} ({new_emails} new emails"
            f"{', partial load' if rendered.timed_out else ''})"
        )
        await self._emit(emit, self._page_event(url, success=True))

    def _follow_redirect(
        self,
        entry: FrontierEntry,
        final_url: str,
        scope: ScopePolicy,
    ) -> None:
        """
        Account for a render that ended on a different URL.

        The target is marked visited. When the seed itself redirects to
        another host, that host joins the crawl scope.
        """
        final = normalize_url(final_url)
        if final is None:
            return

        self._frontier.mark_seen(final)
        self._rendered_urls.add(final)
        self._log.debug(f"Redirected: {entry.url} -> {final}")

        if entry.depth == 0:
            scope.add_host(urlparse(final).netloc)

    def _outbound_links(
        self,
        extraction: PageExtraction,
        rendered: RenderedPage,
    ) -> list[str]:
        if self._pipeline.has_target(ExtractionTarget.LINKS):
            return extraction.links
        return rendered.outbound_links

    def _merge_emails(self, emails: list[str]) -> int:
        """Add emails to the result as an ordered, case-insensitive set."""
        added = 0
        for email in emails:
            key = email.casefold()
            if key in self._email_keys:
                continue
            self._email_keys.add(key)
            self._result.emails.append(email)
            added += 1

        if added:
            Metrics.get().increment("emails_found", added)
        return added

    def _merge_personal_data(self, records: list[PersonalDataRecord]) -> None:
        """Add records, keeping the first source of each (kind, value)."""
        for record in records:
            if record.dedupe_key in self._personal_keys:
                continue
            self._personal_keys.add(record.dedupe_key)
            self._result.personal_data.append(record)

    def _page_event(
        self,
        url: str,
        success: bool,
        error: dict | None = None,
    ) -> ProgressEvent:
        return ProgressEvent(
            event_type=EventType.PAGE,
            pages_visited=self._result.pages_visited,
            queue_size=self.queue_size,
            current_url=url,
            email_count=self._result.total_emails,
            success=success,
            error=error,
        )

    def _terminal_event(
        self,
        event_type: EventType,
        result: CrawlResult | None = None,
        error: dict | None = None,
    ) -> ProgressEvent:
        return ProgressEvent(
            event_type=event_type,
            pages_visited=self._result.pages_visited,
            queue_size=self.queue_size,
            email_count=self._result.total_emails,
            success=event_type != EventType.FAILED,
            error=error,
            result=result,
        )

    @staticmethod
    async def _emit(emit: ProgressCallback | None, event: ProgressEvent) -> None:
        if emit is not None:
            await emit(event)


async def crawl_site(
    seed_url: str,
    options: CrawlOptions | None = None,
    on_progress: ProgressCallback | None = None,
    **job_kwargs,
) -> CrawlResult:
    """
    Crawl a site and return its result.

    Args:
        seed_url: Starting URL
        options: Crawl options; defaults if None
        on_progress: Optional async progress callback
        **job_kwargs: Collaborators passed through to CrawlJob

    Returns:
        CrawlResult

    Raises:
        CrawlJobError: If the crawl failed
    """
    normalized = normalize_url(seed_url) or seed_url
    logger.debug(f"crawl_site: {normalized}")
    job = CrawlJob(normalized, options, **job_kwargs)
    return await job.run(on_progress=on_progress)
