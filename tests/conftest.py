"""
Shared pytest fixtures for contact crawler tests.

Provides reusable fixtures for:
- Crawl options tuned for fast, offline tests
- A scripted fake site standing in for the browser render session
- Sample HTML pages
- Temporary resources
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from contact_crawler.browser.page_context import RenderedPage
from contact_crawler.config import BrowserSettings, CrawlOptions, reset_settings
from contact_crawler.core.exceptions import NavigationError
from contact_crawler.crawler import CrawlJob, RobotsChecker
from contact_crawler.utils.logging import reset_logging
from contact_crawler.utils.metrics import Metrics


SEED_URL = "https://example.com/"


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Reset global logging, metrics and settings state around each test.

    This ensures tests are isolated and don't share global state.
    """
    reset_logging()
    reset_settings()
    Metrics.reset()
    yield
    reset_logging()
    reset_settings()
    Metrics.reset()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class FakeRenderSession:
    """
    Scripted stand-in for RenderSession.

    Serves HTML from a dict keyed by normalized URL. Unknown URLs fail
    with an HTTP 404 NavigationError; URLs in failures raise the given
    exception. URLs in redirects are served from their target, which is
    reported as the final URL. Records every fetch, acquire and release.
    """

    def __init__(
        self,
        pages: dict[str, str],
        failures: dict[str, Exception] | None = None,
        acquire_error: Exception | None = None,
        redirects: dict[str, str] | None = None,
    ) -> None:
        self.pages = pages
        self.failures = failures or {}
        self.redirects = redirects or {}
        self.acquire_error = acquire_error
        self.fetched: list[str] = []
        self.acquire_count = 0
        self.release_count = 0
        self.options: CrawlOptions | None = None

    def factory(
        self,
        options: CrawlOptions,
        browser_settings: BrowserSettings,
    ) -> "FakeRenderSession":
        self.options = options
        return self

    async def acquire(self) -> None:
        if self.acquire_error is not None:
            raise self.acquire_error
        self.acquire_count += 1

    async def release(self) -> None:
        self.release_count += 1

    async def fetch(self, url: str) -> RenderedPage:
        self.fetched.append(url)
        if url in self.failures:
            raise self.failures[url]
        target = self.redirects.get(url, url)
        if target not in self.pages:
            raise NavigationError("HTTP 404 error", url=url, status_code=404)
        return RenderedPage(url=url, final_url=target, html=self.pages[target])

    async def __aenter__(self) -> "FakeRenderSession":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release()


def page(body: str, title: str = "Test") -> str:
    """Wrap body markup in a minimal HTML document."""
    return f"<html><head><title>{title}</title></head><body>{body}</body></html>"


@pytest.fixture
def site_pages() -> dict[str, str]:
    """
    A small site, keyed by normalized URL.

    Depths from the seed: / (0), /about and /contact (1), /team (2),
    /deep (3). /about links back to / and also to an external host.
    """
    return {
        "https://example.com/": page(
            '<p>Email us at hello@example.com</p>'
            '<a href="/about">About</a>'
            '<a href="/contact">Contact</a>'
            '<a href="https://other.example.org/">Partner</a>'
            '<a href="mailto:info@example.com">Mail</a>'
        ),
        "https://example.com/about": page(
            '<p>Jane Doe: jane.doe@example.com</p>'
            '<a href="/">Home</a>'
            '<a href="/team">Team</a>'
            '<a href="https://www.linkedin.com/in/jane-doe">LinkedIn</a>'
        ),
        "https://example.com/contact": page(
            '<p>Call +1-555-123-4567</p>'
            '<p>Sales: sales [at] example [dot] com</p>'
            '<address>123 Main St, Springfield, IL 62701</address>'
            '<a href="/about#top">About</a>'
        ),
        "https://example.com/team": page(
            '<p>bob.smith@example.com</p>'
            '<a href="/deep">Deep</a>'
        ),
        "https://example.com/deep": page('<p>deep@example.com</p>'),
    }


@pytest.fixture
def fake_session(site_pages: dict[str, str]) -> FakeRenderSession:
    """Fake render session serving the sample site."""
    return FakeRenderSession(site_pages)


@pytest.fixture
def test_options() -> CrawlOptions:
    """Options with no delay and robots.txt disabled."""
    return CrawlOptions(
        max_depth=2,
        max_pages=50,
        request_delay_seconds=0,
        respect_robots=False,
    )


@pytest.fixture
def make_job(test_options: CrawlOptions):
    """
    Factory building a CrawlJob wired to a fake session.

    Robots checking is disabled unless a checker is passed in.
    """

    def _make(
        session: FakeRenderSession,
        options: CrawlOptions | None = None,
        seed_url: str = SEED_URL,
        **kwargs,
    ) -> CrawlJob:
        opts = options or test_options
        kwargs.setdefault(
            "robots_checker",
            RobotsChecker(user_agent="TestBot", enabled=opts.respect_robots),
        )
        return CrawlJob(
            seed_url,
            opts,
            session_factory=session.factory,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_html() -> str:
    """Provide sample HTML for extraction tests."""
    return """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="author" content="Maria Garcia">
        <title>Contact Acme</title>
        <style>.hidden { color: red; } /* style@example.com */</style>
        <script>var tracker = "script@example.com";</script>
    </head>
    <body>
        <header>
            <nav>
                <a href="/">Home</a>
                <a href="/about">About</a>
                <a href="https://www.example.com/team#people">Team</a>
            </nav>
        </header>
        <main>
            <h1>Contact us</h1>
            <p>General enquiries: info@acme.test</p>
            <p>Press: press (at) acme (dot) test</p>
            <p>Our logo: logo@2x.png</p>
            <a href="mailto:Sales@Acme.test?subject=Hello">Email sales</a>
            <span data-email="john.smith@acme.test">John</span>
            <a href="tel:+1-555-987-6543">Call us</a>
            <p>Fax: (555) 321-0987</p>
            <div itemscope itemtype="https://schema.org/Person">
                <span itemprop="name">Alice Walker</span>
            </div>
            <address>
                Acme Corp<br>
                500 Market Street, San Francisco, CA 94105
            </address>
            <a href="https://twitter.com/acme">Twitter</a>
            <a href="https://twitter.com/intent/tweet?text=hi">Share</a>
            <a href="https://github.com/acme-corp">GitHub</a>
            <a href="javascript:void(0)">Nothing</a>
        </main>
        <footer>
            <a href="https://other.test/page">Partner</a>
        </footer>
    </body>
    </html>
    """
