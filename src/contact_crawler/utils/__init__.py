"""
Utilities module for the contact crawler.

Provides logging setup and in-process metrics.
"""

from contact_crawler.utils.logging import (
    setup_logging,
    get_logger,
    get_logger_with_context,
)
from contact_crawler.utils.metrics import Metrics, TimingStats

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "get_logger_with_context",
    # Metrics
    "Metrics",
    "TimingStats",
]
