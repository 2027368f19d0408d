"""
CLI module for the contact crawler.

Provides command-line interface using Typer:
- crawl: Crawl one site for contact data
- batch: Crawl several sites
- config: Configuration inspection
"""

from contact_crawler.cli.main import app

__all__ = ["app"]
