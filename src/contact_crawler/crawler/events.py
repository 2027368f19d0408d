"""
Progress events for crawl jobs.

A job reports one PAGE event per render attempt and exactly one terminal
event (COMPLETED, FAILED or CANCELLED). Events travel through a bounded
ProgressChannel so a slow consumer applies back-pressure to the crawl.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from contact_crawler.crawler.models import CrawlResult
from contact_crawler.core.exceptions import CrawlerError


class EventType(str, Enum):
    """Kind of progress event."""

    PAGE = "page"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self != EventType.PAGE


@dataclass
class ProgressEvent:
    """
    Snapshot of a job's progress.

    Attributes:
        event_type: PAGE or one of the terminal types
        pages_visited: Successful renders so far
        queue_size: URLs waiting in the frontier
        current_url: URL of the page attempt (PAGE events)
        email_count: Unique emails found so far
        success: Whether the page attempt rendered
        error: Error payload for failed pages and FAILED events
        result: Final result on COMPLETED and CANCELLED events
    """

    event_type: EventType
    pages_visited: int
    queue_size: int
    current_url: str | None = None
    email_count: int = 0
    success: bool = True
    error: dict[str, Any] | None = None
    result: CrawlResult | None = None
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.event_type.is_terminal

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.event_type.value,
            "pages_visited": self.pages_visited,
            "queue_size": self.queue_size,
            "email_count": self.email_count,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.event_type == EventType.PAGE:
            data["current_url"] = self.current_url
            data["success"] = self.success
        if self.error is not None:
            data["error"] = self.error
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data


# Type alias for progress callbacks
ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]


class ChannelClosedError(CrawlerError):
    """The consumer of a progress channel has gone away."""

    pass


class ProgressChannel:
    """
    Bounded single-producer single-consumer event channel.

    send() blocks while the buffer is full. Once close() is called,
    further sends raise ChannelClosedError.

    Example:
        >>> channel = ProgressChannel(maxsize=10)
        >>> await channel.send(event)
        >>> await channel.receive()
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def send(self, event: ProgressEvent) -> None:
        if self._closed:
            raise ChannelClosedError("Progress channel is closed")
        await self._queue.put(event)

    async def receive(self) -> ProgressEvent:
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True
