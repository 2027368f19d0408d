"""
Crawler module for the contact crawler.

Provides the crawling engine including:
- URL frontier and visited set
- Scope policy and robots.txt compliance
- Inter-request delay
- Crawl orchestration and progress streaming
- Batch crawling
"""

from contact_crawler.crawler.models import (
    CrawlState,
    CrawlResult,
    FrontierEntry,
    PersonalDataKind,
    PersonalDataRecord,
    BatchItemResult,
    BatchResult,
)
from contact_crawler.crawler.frontier import URLFrontier, normalize_url
from contact_crawler.crawler.scope import ScopePolicy
from contact_crawler.crawler.robots import RobotsChecker
from contact_crawler.crawler.rate_limiter import RateLimiter, RateLimitState
from contact_crawler.crawler.events import (
    EventType,
    ProgressEvent,
    ProgressChannel,
    ProgressCallback,
    ChannelClosedError,
)
from contact_crawler.crawler.orchestrator import CrawlJob, crawl_site
from contact_crawler.crawler.batch import BatchCoordinator, crawl_batch

__all__ = [
    # Models
    "CrawlState",
    "CrawlResult",
    "FrontierEntry",
    "PersonalDataKind",
    "PersonalDataRecord",
    "BatchItemResult",
    "BatchResult",
    # Frontier
    "URLFrontier",
    "normalize_url",
    # Policies
    "ScopePolicy",
    "RobotsChecker",
    "RateLimiter",
    "RateLimitState",
    # Events
    "EventType",
    "ProgressEvent",
    "ProgressChannel",
    "ProgressCallback",
    "ChannelClosedError",
    # Orchestrator
    "CrawlJob",
    "crawl_site",
    # Batch
    "BatchCoordinator",
    "crawl_batch",
]
