"""
Custom exceptions for the contact crawler.

Provides a hierarchy of exceptions for precise error handling across
all subsystems. All exceptions inherit from ContactCrawlerError.

Exception Hierarchy:
    ContactCrawlerError (base)
    ├── ConfigurationError
    ├── ValidationError
    ├── BrowserError
    │   ├── NavigationError
    │   └── RenderSessionFatalError
    ├── CrawlerError
    │   ├── RobotsFetchError
    │   └── CrawlJobError
    ├── ExtractionError
    └── BatchItemError
"""

from typing import Any


class ContactCrawlerError(Exception):
    """
    Base exception for all contact crawler errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration and input errors
# =============================================================================


class ConfigurationError(ContactCrawlerError):
    """
    Error in configuration loading.

    Raised when a configuration file is missing or malformed.
    """

    pass


class ValidationError(ContactCrawlerError):
    """
    Malformed seed URL or crawl input.

    Raised before a job is constructed. Fatal to that request only.
    """

    def __init__(
        self,
        message: str,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if value is not None:
            details["value"] = value
        super().__init__(message, details)
        self.value = value


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(ContactCrawlerError):
    """Base error for browser/Playwright operations."""

    pass


class NavigationError(BrowserError):
    """
    Error rendering a single page.

    Raised when:
    - URL is unreachable (network, DNS)
    - Navigation exceeds the per-page timeout
    - Server answers with an HTTP error status

    Recoverable: the page is skipped and the crawl continues.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        timed_out: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code
        if timed_out:
            details["timed_out"] = True
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code
        self.timed_out = timed_out


class RenderSessionFatalError(BrowserError):
    """
    The render session could not be acquired or was lost.

    Raised when:
    - Playwright or the browser fails to launch
    - Context or page creation fails
    - The browser disconnects mid-crawl

    Fatal to the whole job.
    """

    pass


# =============================================================================
# Crawler Errors
# =============================================================================


class CrawlerError(ContactCrawlerError):
    """Base error for crawling operations."""

    pass


class RobotsFetchError(CrawlerError):
    """
    robots.txt could not be fetched.

    Never surfaced to callers: the checker logs it and allows the URL.
    """

    def __init__(
        self,
        message: str,
        robots_url: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["robots_url"] = robots_url
        super().__init__(message, details)
        self.robots_url = robots_url


class CrawlJobError(CrawlerError):
    """
    A crawl job ended in the FAILED state.

    The underlying cause is chained as __cause__.
    """

    def __init__(
        self,
        message: str,
        seed_url: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["seed_url"] = seed_url
        super().__init__(message, details)
        self.seed_url = seed_url


# =============================================================================
# Extraction Errors
# =============================================================================


class ExtractionError(ContactCrawlerError):
    """
    A single extractor failed on a page.

    Isolated by the pipeline: logged, other extractors keep running.
    """

    def __init__(
        self,
        message: str,
        extractor: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["extractor"] = extractor
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.extractor = extractor
        self.url = url


# =============================================================================
# Batch Errors
# =============================================================================


class BatchItemError(ContactCrawlerError):
    """
    One seed of a batch failed.

    Recorded in that seed's result entry; never propagates to siblings.
    """

    def __init__(
        self,
        message: str,
        url: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        details["url"] = url
        super().__init__(message, details)
        self.url = url


# =============================================================================
# Utility Functions
# =============================================================================


def root_cause(error: BaseException) -> BaseException:
    """Follow __cause__ links to the original exception."""
    while error.__cause__ is not None:
        error = error.__cause__
    return error


def error_payload(error: BaseException) -> dict[str, Any]:
    """
    Build a serializable error description for terminal events.

    Args:
        error: The exception that ended a job

    Returns:
        Dictionary with error type, message and details
    """
    cause = root_cause(error)
    payload: dict[str, Any] = {
        "type": cause.__class__.__name__,
        "message": cause.message if isinstance(cause, ContactCrawlerError) else str(cause),
    }
    if isinstance(cause, ContactCrawlerError) and cause.details:
        payload["details"] = dict(cause.details)
    return payload
