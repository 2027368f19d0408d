"""
Core module for the contact crawler.

Contains the exception hierarchy and input validation shared by all subsystems.
"""

from contact_crawler.core.exceptions import (
    ContactCrawlerError,
    ConfigurationError,
    ValidationError,
    BrowserError,
    NavigationError,
    RenderSessionFatalError,
    CrawlerError,
    RobotsFetchError,
    CrawlJobError,
    ExtractionError,
    BatchItemError,
    error_payload,
)
from contact_crawler.core.validation import validate_url, validate_batch_urls

__all__ = [
    # Base
    "ContactCrawlerError",
    "ConfigurationError",
    "ValidationError",
    # Browser
    "BrowserError",
    "NavigationError",
    "RenderSessionFatalError",
    # Crawler
    "CrawlerError",
    "RobotsFetchError",
    "CrawlJobError",
    # Extraction
    "ExtractionError",
    # Batch
    "BatchItemError",
    # Helpers
    "error_payload",
    "validate_url",
    "validate_batch_urls",
]
