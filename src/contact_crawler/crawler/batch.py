"""
Batch crawling of several seed URLs.

Seeds run one after another with the same options, each in its own
CrawlJob. A failing seed is recorded in its own entry and never stops the
batch.
"""

import functools
from typing import Awaitable, Callable, Iterable

from contact_crawler.config.settings import CrawlOptions
from contact_crawler.core.exceptions import BatchItemError, error_payload
from contact_crawler.crawler.events import ProgressEvent
from contact_crawler.crawler.models import BatchItemResult, BatchResult
from contact_crawler.crawler.orchestrator import CrawlJob
from contact_crawler.utils.logging import get_logger

logger = get_logger(__name__)

# Builds the job for one seed: (seed_url, options) -> CrawlJob
JobFactory = Callable[[str, CrawlOptions], CrawlJob]

# Receives (seed_url, event) for every event of every seed
BatchProgressCallback = Callable[[str, ProgressEvent], Awaitable[None]]


class BatchCoordinator:
    """
    Runs crawl jobs for a list of seeds sequentially.

    The result always has one entry per seed, in seed order.

    Example:
        >>> coordinator = BatchCoordinator(CrawlOptions.fast())
        >>> batch = await coordinator.run(["https://a.example", "https://b.example"])
        >>> print(batch.successful_urls, batch.total_emails)
    """

    def __init__(
        self,
        options: CrawlOptions | None = None,
        *,
        job_factory: JobFactory = CrawlJob,
        on_progress: BatchProgressCallback | None = None,
    ) -> None:
        """
        Initialize batch coordinator.

        Args:
            options: Options shared by every seed; defaults if None
            job_factory: Builds the CrawlJob for a seed
            on_progress: Optional async callback for per-seed progress
        """
        self.options = options or CrawlOptions()
        self._job_factory = job_factory
        self._on_progress = on_progress

    async def run(self, seeds: Iterable[str]) -> BatchResult:
        """
        Crawl every seed.

        Args:
            seeds: Seed URLs (already validated by the caller)

        Returns:
            BatchResult with one entry per seed
        """
        seeds = list(seeds)
        batch = BatchResult()
        logger.info(f"Starting batch of {len(seeds)} seeds")

        for index, seed in enumerate(seeds, start=1):
            logger.info(f"Batch seed {index}/{len(seeds)}: {seed}")
            batch.results.append(await self._run_seed(seed))

        logger.info(
            f"Batch finished: {batch.successful_urls} succeeded, "
            f"{batch.failed_urls} failed, {batch.total_emails} emails"
        )
        return batch

    async def _run_seed(self, seed: str) -> BatchItemResult:
        on_progress = None
        if self._on_progress is not None:
            on_progress = functools.partial(self._on_progress, seed)

        try:
            job = self._job_factory(seed, self.options)
            result = await job.run(on_progress=on_progress)
        except Exception as e:
            error = BatchItemError(f"Seed failed: {e}", url=seed)
            error.__cause__ = e
            logger.warning(str(error))
            return BatchItemResult.from_error(seed, error_payload(error)["message"])

        return BatchItemResult.from_result(result)


async def crawl_batch(
    seeds: Iterable[str],
    options: CrawlOptions | None = None,
    *,
    job_factory: JobFactory = CrawlJob,
    on_progress: BatchProgressCallback | None = None,
) -> BatchResult:
    """
    Crawl several seeds and return the aggregate result.

    Args:
        seeds: Seed URLs
        options: Options shared by every seed
        job_factory: Builds the CrawlJob for a seed
        on_progress: Optional async per-seed progress callback

    Returns:
        BatchResult
    """
    coordinator = BatchCoordinator(
        options, job_factory=job_factory, on_progress=on_progress)
    return await coordinator.run(seeds)
