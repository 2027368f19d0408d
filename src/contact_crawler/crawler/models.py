"""
Data models for crawl jobs and their results.

Plain dataclasses shared by the frontier, orchestrator, extractors
and batch coordinator.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from contact_crawler.extraction.records import PersonalDataKind, PersonalDataRecord


class CrawlState(str, Enum):
    """Lifecycle state of a crawl job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlState.COMPLETED, CrawlState.FAILED, CrawlState.CANCELLED)


@dataclass(frozen=True)
class FrontierEntry:
    """A URL waiting in the frontier, with its link distance from the seed."""

    url: str
    depth: int
    parent_url: str | None = None


@dataclass
class CrawlResult:
    """
    Aggregate result of one crawl job.

    emails is an ordered set: insertion order, unique under
    case-insensitive comparison.
    """

    seed_url: str
    emails: list[str] = field(default_factory=list)
    pages_visited: int = 0
    personal_data: list[PersonalDataRecord] = field(default_factory=list)
    pages_failed: int = 0
    pages_skipped: int = 0
    state: CrawlState = CrawlState.COMPLETED
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def total_emails(self) -> int:
        return len(self.emails)

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None:
            return 0.0
        end = self.completed_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.seed_url,
            "emails": list(self.emails),
            "total_emails": self.total_emails,
            "pages_visited": self.pages_visited,
            "pages_failed": self.pages_failed,
            "pages_skipped": self.pages_skipped,
            "personal_data": [record.to_dict() for record in self.personal_data],
            "state": self.state.value,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class BatchItemResult:
    """Outcome of one seed in a batch crawl."""

    url: str
    success: bool
    emails: list[str] = field(default_factory=list)
    pages_visited: int = 0
    personal_data: list[PersonalDataRecord] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_result(cls, result: CrawlResult) -> "BatchItemResult":
        return cls(
            url=result.seed_url,
            success=True,
            emails=list(result.emails),
            pages_visited=result.pages_visited,
            personal_data=list(result.personal_data),
        )

    @classmethod
    def from_error(cls, url: str, error: str) -> "BatchItemResult":
        return cls(url=url, success=False, error=error)

    @property
    def total_emails(self) -> int:
        return len(self.emails) if self.success else 0

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"url": self.url, "success": False, "error": self.error}
        return {
            "url": self.url,
            "success": True,
            "emails": list(self.emails),
            "total_emails": self.total_emails,
            "pages_visited": self.pages_visited,
            "personal_data": [record.to_dict() for record in self.personal_data],
        }


@dataclass
class BatchResult:
    """
    Result of a multi-seed crawl.

    results has exactly one entry per seed, in seed order. Totals are
    computed from the entries.
    """

    results: list[BatchItemResult] = field(default_factory=list)

    @property
    def total_urls(self) -> int:
        return len(self.results)

    @property
    def successful_urls(self) -> int:
        return sum(1 for item in self.results if item.success)

    @property
    def failed_urls(self) -> int:
        return sum(1 for item in self.results if not item.success)

    @property
    def total_emails(self) -> int:
        return sum(item.total_emails for item in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_urls": self.total_urls,
            "successful_urls": self.successful_urls,
            "failed_urls": self.failed_urls,
            "total_emails": self.total_emails,
            "results": [item.to_dict() for item in self.results],
        }
