"""
Tests for link scope policy.
"""

import pytest

from contact_crawler.config import CrawlOptions
from contact_crawler.crawler import ScopePolicy


class TestScopePolicy:
    """Tests for ScopePolicy."""

    @pytest.fixture
    def policy(self) -> ScopePolicy:
        return ScopePolicy(seed_host="example.com")

    def test_same_host_in_scope(self, policy: ScopePolicy):
        assert policy.is_in_scope("https://example.com/about")
        assert policy.is_in_scope("http://example.com/contact?x=1")

    def test_other_host_out_of_scope(self, policy: ScopePolicy):
        """Only the exact seed host is followed by default."""
        assert not policy.is_in_scope("https://other.com/")
        assert not policy.is_in_scope("https://blog.example.com/")
        assert "External host" in policy.get_rejection_reason("https://other.com/")

    def test_non_http_rejected(self, policy: ScopePolicy):
        assert not policy.is_in_scope("mailto:a@example.com")

    def test_follow_external(self):
        policy = ScopePolicy(seed_host="example.com", follow_external=True)
        assert policy.is_in_scope("https://other.com/page")

    def test_path_prefix(self):
        """A path prefix restricts links to that subtree of the seed host."""
        policy = ScopePolicy(seed_host="example.com", path_prefix="/team/")

        assert policy.is_in_scope("https://example.com/team")
        assert policy.is_in_scope("https://example.com/team/jane")
        assert not policy.is_in_scope("https://example.com/teams")
        assert not policy.is_in_scope("https://example.com/about")
        assert not policy.is_in_scope("https://other.com/team/jane")

    def test_added_host_in_scope(self, policy: ScopePolicy):
        """A host the seed redirected to is treated like the seed host."""
        policy.add_host("WWW.example.com")

        assert policy.is_in_scope("https://www.example.com/contact")
        assert policy.is_in_scope("https://example.com/about")
        assert not policy.is_in_scope("https://other.com/")

    def test_path_prefix_overrides_external(self):
        """restrict_to_path keeps the crawl on the seed host."""
        policy = ScopePolicy(seed_host="example.com", follow_external=True, path_prefix="/docs")
        assert not policy.is_in_scope("https://other.com/docs")

    def test_filter_urls_preserves_order(self, policy: ScopePolicy):
        urls = [
            "https://example.com/b",
            "https://other.com/",
            "https://example.com/a",
        ]
        assert policy.filter_urls(urls) == ["https://example.com/b", "https://example.com/a"]

    def test_for_seed(self):
        """The policy is built from the seed host and the options."""
        options = CrawlOptions(restrict_to_path="https://Example.com/team")
        policy = ScopePolicy.for_seed("https://Example.com:443/", options)

        assert policy.seed_host == "example.com"
        assert policy.path_prefix == "/team"
        assert not policy.follow_external

    def test_for_seed_keeps_non_default_port(self):
        policy = ScopePolicy.for_seed("http://localhost:8000/", CrawlOptions())

        assert policy.is_in_scope("http://localhost:8000/page")
        assert not policy.is_in_scope("http://localhost:9000/page")
