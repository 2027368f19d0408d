"""
Contact Crawler - A browser-rendered site crawler for contact data.

This package crawls websites breadth-first from a seed URL in a headless
browser and collects email addresses and other public contact data
(phones, names, addresses, social handles) from every rendered page.
"""

from contact_crawler.config import CrawlOptions, Settings, load_config
from contact_crawler.utils.logging import setup_logging, get_logger
from contact_crawler.core.exceptions import ContactCrawlerError
from contact_crawler.crawler import (
    CrawlJob,
    CrawlResult,
    BatchCoordinator,
    BatchResult,
    crawl_site,
    crawl_batch,
)

__version__ = "0.1.0"
__author__ = "Contact Crawler Team"

__all__ = [
    "CrawlOptions",
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "ContactCrawlerError",
    "CrawlJob",
    "CrawlResult",
    "BatchCoordinator",
    "BatchResult",
    "crawl_site",
    "crawl_batch",
]
