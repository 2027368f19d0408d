"""
Tests for configuration module.

Tests settings validation, the fast preset, YAML loading and
environment variable overrides.
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from contact_crawler.config import (
    FAST_PRESET,
    BatchSettings,
    BrowserSettings,
    CrawlOptions,
    ResourceBlockFlags,
    Settings,
    get_settings,
    load_config,
)
from contact_crawler.core.exceptions import ConfigurationError


class TestCrawlOptions:
    """Tests for CrawlOptions."""

    def test_defaults(self):
        """Default options match the documented values."""
        options = CrawlOptions()

        assert options.max_depth == 2
        assert options.max_pages == 50
        assert options.request_delay_seconds == 1.0
        assert options.page_timeout_seconds == 30.0
        assert options.respect_robots is True
        assert options.collect_personal_data is True
        assert options.headless is True
        assert options.follow_external_links is False
        assert options.restrict_to_path is None
        assert options.block_resources.blocked_types() == frozenset(
            {"image", "stylesheet", "font", "media"})

    @pytest.mark.parametrize(
        "field,value",
        [
            ("max_depth", -1),
            ("max_depth", 11),
            ("max_pages", 0),
            ("max_pages", 1001),
            ("request_delay_seconds", -0.1),
            ("request_delay_seconds", 10.5),
            ("page_timeout_seconds", 4.9),
            ("page_timeout_seconds", 121),
        ],
    )
    def test_out_of_range_rejected(self, field: str, value):
        with pytest.raises(PydanticValidationError):
            CrawlOptions(**{field: value})

    @pytest.mark.parametrize(
        "field,value",
        [
            ("max_depth", 0),
            ("max_depth", 10),
            ("max_pages", 1),
            ("max_pages", 1000),
            ("request_delay_seconds", 0),
            ("page_timeout_seconds", 5),
            ("page_timeout_seconds", 120),
        ],
    )
    def test_bounds_inclusive(self, field: str, value):
        assert getattr(CrawlOptions(**{field: value}), field) == value

    def test_unknown_field_rejected(self):
        with pytest.raises(PydanticValidationError):
            CrawlOptions(max_pagez=10)

    def test_immutable(self):
        options = CrawlOptions()
        with pytest.raises(PydanticValidationError):
            options.max_pages = 10

    def test_timeouts_in_ms(self):
        options = CrawlOptions(page_timeout_seconds=15, settle_timeout_seconds=0.25)
        assert options.page_timeout_ms == 15000
        assert options.settle_timeout_ms == 250

    def test_fast_preset(self):
        options = CrawlOptions.fast()

        assert options.max_depth == FAST_PRESET["max_depth"]
        assert options.max_pages == 50
        assert options.request_delay_seconds == 0.5
        assert options.page_timeout_seconds == 15.0
        assert options.respect_robots is False

    def test_fast_preset_overrides(self):
        options = CrawlOptions.fast(max_pages=5, collect_personal_data=False)

        assert options.max_pages == 5
        assert options.collect_personal_data is False
        assert options.request_delay_seconds == 0.5

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("/team", "/team"),
            ("team", "/team"),
            ("https://example.com/docs/", "/docs/"),
            ("", None),
            (None, None),
        ],
    )
    def test_restrict_to_path_normalized(self, value, expected):
        assert CrawlOptions(restrict_to_path=value).restrict_to_path == expected

    def test_nothing_blocked(self):
        flags = ResourceBlockFlags(images=False, stylesheets=False, fonts=False, media=False)
        assert flags.blocked_types() == frozenset()


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings_valid(self):
        settings = Settings()

        assert settings.crawl.max_pages == 50
        assert settings.browser.browser_type == "chromium"
        assert settings.robots.timeout_seconds == 5.0
        assert settings.batch.max_urls == 10
        assert settings.logging.level == "INFO"

    def test_browser_settings_validation(self):
        with pytest.raises(PydanticValidationError):
            BrowserSettings(browser_type="netscape")
        with pytest.raises(PydanticValidationError):
            BrowserSettings(viewport_width=100)

    def test_batch_limit_validation(self):
        with pytest.raises(PydanticValidationError):
            BatchSettings(max_urls=0)

    def test_logging_file_path_converted(self):
        settings = Settings(logging={"file_path": "logs/crawler.log"})
        assert settings.logging.file_path == Path("logs/crawler.log")


class TestConfigLoading:
    """Tests for configuration loading."""

    def test_load_config_defaults(self):
        settings = load_config()
        assert settings.crawl.max_depth == 2

    def test_load_config_from_yaml(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text(yaml.dump({
            "crawl": {
                "max_pages": 200,
                "block_resources": {"images": False},
            },
            "browser": {"browser_type": "firefox"},
        }))

        settings = load_config(config_path)

        assert settings.crawl.max_pages == 200
        assert settings.crawl.max_depth == 2
        assert settings.crawl.block_resources.images is False
        assert settings.crawl.block_resources.fonts is True
        assert settings.browser.browser_type == "firefox"

    def test_load_config_env_override(self, temp_dir: Path, monkeypatch):
        """Environment variables win over the YAML file."""
        config_path = temp_dir / "config.yaml"
        config_path.write_text(yaml.dump({"crawl": {"max_pages": 200}}))
        monkeypatch.setenv("CONTACT_CRAWLER__CRAWL__MAX_PAGES", "300")
        monkeypatch.setenv("CONTACT_CRAWLER__CRAWL__RESPECT_ROBOTS", "false")
        monkeypatch.setenv("CONTACT_CRAWLER__CRAWL__BLOCK_RESOURCES__MEDIA", "no")
        monkeypatch.setenv("CONTACT_CRAWLER__LOGGING__LEVEL", "DEBUG")

        settings = load_config(config_path)

        assert settings.crawl.max_pages == 300
        assert settings.crawl.respect_robots is False
        assert settings.crawl.block_resources.media is False
        assert settings.logging.level == "DEBUG"

    def test_load_config_missing_file(self, temp_dir: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(temp_dir / "missing.yaml")

    def test_load_config_invalid_yaml(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("crawl: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(config_path)

    def test_load_config_not_a_mapping(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_path)

    def test_empty_file_uses_defaults(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text("")

        assert load_config(config_path).crawl.max_pages == 50

    def test_invalid_value_rejected(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text(yaml.dump({"crawl": {"max_depth": 50}}))

        with pytest.raises(PydanticValidationError):
            load_config(config_path)

    def test_get_settings_cached(self, temp_dir: Path):
        config_path = temp_dir / "config.yaml"
        config_path.write_text(yaml.dump({"crawl": {"max_pages": 7}}))

        first = get_settings(config_path)
        second = get_settings()

        assert first is second
        assert second.crawl.max_pages == 7

        config_path.write_text(yaml.dump({"crawl": {"max_pages": 8}}))
        assert get_settings(config_path, reload=True).crawl.max_pages == 8
