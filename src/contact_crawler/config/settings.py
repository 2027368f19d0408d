"""
Pydantic settings models for the contact crawler.

CrawlOptions is the immutable per-job option set; the remaining models
configure the browser, robots fetching, batch limits and logging.
Every model rejects unknown fields and out-of-range values at construction.
"""

from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Quick-scan preset: shallow crawl, short delay and timeout, no robots.txt
FAST_PRESET = {
    "max_depth": 2,
    "max_pages": 50,
    "request_delay_seconds": 0.5,
    "page_timeout_seconds": 15.0,
    "respect_robots": False,
}


class ResourceBlockFlags(BaseModel):
    """Resource types the render session refuses to download."""

    images: bool = Field(default=True, description="Block images")
    stylesheets: bool = Field(default=True, description="Block stylesheets")
    fonts: bool = Field(default=True, description="Block web fonts")
    media: bool = Field(default=True, description="Block audio and video")

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    def blocked_types(self) -> frozenset[str]:
        """Playwright resource type names to abort."""
        mapping = {
            "image": self.images,
            "stylesheet": self.stylesheets,
            "font": self.fonts,
            "media": self.media,
        }
        return frozenset(name for name, blocked in mapping.items() if blocked)


class CrawlOptions(BaseModel):
    """
    Options for one crawl job.

    Immutable once constructed. The same instance is shared by every
    seed of a batch.
    """

    max_depth: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Maximum link hops from the seed URL (0 = seed only)",
    )
    max_pages: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of successfully rendered pages per job",
    )
    request_delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Minimum spacing between page renders on the same host",
    )
    page_timeout_seconds: float = Field(
        default=30.0,
        ge=5.0,
        le=120.0,
        description="Hard timeout for navigating to a single page",
    )
    settle_timeout_seconds: float = Field(
        default=0.5,
        ge=0.0,
        le=10.0,
        description="Extra wait for the load event after the DOM is ready",
    )
    block_resources: ResourceBlockFlags = Field(
        default_factory=ResourceBlockFlags,
        description="Resource types to block during rendering",
    )
    respect_robots: bool = Field(
        default=True,
        description="Whether to honour robots.txt",
    )
    collect_personal_data: bool = Field(
        default=True,
        description="Whether to run the personal-data extractors",
    )
    headless: bool = Field(
        default=True,
        description="Run the browser in headless mode",
    )
    follow_external_links: bool = Field(
        default=False,
        description="Follow links that leave the seed's host",
    )
    restrict_to_path: str | None = Field(
        default=None,
        description="Only follow links under this URL path prefix on the seed host",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="User agent for rendering and robots.txt matching",
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "validate_default": True,
    }

    @field_validator("restrict_to_path", mode="before")
    @classmethod
    def normalize_path_prefix(cls, v: str | None) -> str | None:
        """Accept either a bare path or a full URL; store the path."""
        if v is None or v == "":
            return None
        if "://" in v:
            v = urlparse(v).path or "/"
        if not v.startswith("/"):
            v = "/" + v
        return v

    @property
    def page_timeout_ms(self) -> float:
        return self.page_timeout_seconds * 1000

    @property
    def settle_timeout_ms(self) -> float:
        return self.settle_timeout_seconds * 1000

    @classmethod
    def fast(cls, **overrides) -> "CrawlOptions":
        """
        Preset tuned for quick scans.

        Shallow crawl, short delay and timeout, robots.txt not consulted.
        """
        values = dict(FAST_PRESET)
        values.update(overrides)
        return cls(**values)


class BrowserSettings(BaseModel):
    """Playwright browser configuration."""

    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use",
    )
    viewport_width: int = Field(
        default=1920,
        ge=320,
        le=3840,
        description="Browser viewport width in pixels",
    )
    viewport_height: int = Field(
        default=1080,
        ge=240,
        le=2160,
        description="Browser viewport height in pixels",
    )
    ignore_https_errors: bool = Field(
        default=False,
        description="Whether to ignore HTTPS certificate errors",
    )
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
        ],
        description="Extra command line arguments passed to the browser",
    )
    extra_headers: dict[str, str] = Field(
        default_factory=lambda: {
            "Accept-Language": "en-US,en;q=0.9",
            "DNT": "1",
        },
        description="HTTP headers sent with every request",
    )

    model_config = {"extra": "forbid"}


class RobotsSettings(BaseModel):
    """robots.txt fetching configuration."""

    timeout_seconds: float = Field(
        default=5.0,
        ge=0.5,
        le=60.0,
        description="Timeout for fetching robots.txt",
    )
    user_agent_token: str | None = Field(
        default=None,
        description="Agent token matched against robots.txt groups. None uses the crawl user agent.",
    )

    model_config = {"extra": "forbid"}


class BatchSettings(BaseModel):
    """Batch crawl limits."""

    max_urls: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum number of seed URLs per batch",
    )

    model_config = {"extra": "forbid"}


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    model_config = {"extra": "forbid"}

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model containing all subsystem settings.

    Settings are loaded from YAML with environment variable overrides.
    """

    crawl: CrawlOptions = Field(
        default_factory=CrawlOptions,
        description="Default options for crawl jobs",
    )
    browser: BrowserSettings = Field(
        default_factory=BrowserSettings,
        description="Browser/Playwright settings",
    )
    robots: RobotsSettings = Field(
        default_factory=RobotsSettings,
        description="robots.txt settings",
    )
    batch: BatchSettings = Field(
        default_factory=BatchSettings,
        description="Batch crawl settings",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
    }
