"""
Browser module for the contact crawler.

Provides the Playwright-based render session:
- Job-scoped browser lifecycle with guaranteed release
- Resource-type blocking
- Page rendering with navigation error classification
"""

from contact_crawler.browser.page_context import PageContext, RenderedPage
from contact_crawler.browser.session import RenderSession

__all__ = [
    "RenderSession",
    "PageContext",
    "RenderedPage",
]
