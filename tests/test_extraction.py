"""
Tests for extraction module.

Tests email, personal data and link extraction and the pipeline's
error isolation.
"""

import pytest

from contact_crawler.core.exceptions import ExtractionError
from contact_crawler.extraction import (
    AddressExtractor,
    EmailExtractor,
    ExtractionPipeline,
    ExtractionTarget,
    Extractor,
    LinkExtractor,
    NameExtractor,
    PageDocument,
    PersonalDataKind,
    PhoneExtractor,
    SocialHandleExtractor,
    clean_email,
    extract_links,
    name_from_email,
    social_handle,
)

PAGE_URL = "https://www.example.com/contact"


@pytest.fixture
def document(sample_html: str) -> PageDocument:
    return PageDocument(PAGE_URL, sample_html)


class TestPageDocument:
    """Tests for the shared document model."""

    def test_text_excludes_scripts_and_styles(self, document: PageDocument):
        """Visible text should not contain script or style content."""
        assert "script@example.com" not in document.text
        assert "style@example.com" not in document.text
        assert "info@acme.test" in document.text

    def test_text_collapses_whitespace(self):
        """Whitespace runs should collapse to single spaces."""
        doc = PageDocument(PAGE_URL, "<p>a\n\n   b</p>\t<p>c</p>")
        assert doc.text == "a b c"

    def test_json_ld_kept(self):
        """JSON-LD blocks often carry contact data and stay in the text."""
        html = (
            '<script type="application/ld+json">{"email": "ld@example.com"}</script>'
            '<script>var x = "js@example.com";</script>'
        )
        doc = PageDocument(PAGE_URL, html)
        assert "ld@example.com" in doc.text
        assert "js@example.com" not in doc.text

    def test_empty_html(self):
        """Empty HTML should parse to empty text."""
        doc = PageDocument(PAGE_URL, "")
        assert doc.text == ""
        assert doc.soup is not None


class TestCleanEmail:
    """Tests for email normalization."""

    def test_lowercases(self):
        assert clean_email("John.Doe@Example.COM") == "john.doe@example.com"

    def test_bracket_obfuscation(self):
        assert clean_email("jane [at] example [dot] com") == "jane@example.com"

    def test_paren_obfuscation(self):
        assert clean_email("jane(at)mail.example(dot)org") == "jane@mail.example.org"

    def test_rejects_asset_names(self):
        """Retina image names look like emails but are not."""
        assert clean_email("logo@2x.png") is None
        assert clean_email("icon@3x.webp") is None

    def test_rejects_malformed(self):
        assert clean_email("not-an-email") is None
        assert clean_email("a..b@example.com") is None
        assert clean_email("user@-example.com") is None


class TestEmailExtractor:
    """Tests for EmailExtractor."""

    def test_extracts_all_sources_in_order(self, document: PageDocument):
        """Text matches first, then mailto links, then data attributes."""
        emails = EmailExtractor().extract(document)

        assert emails == [
            "info@acme.test",
            "press@acme.test",
            "sales@acme.test",
            "john.smith@acme.test",
        ]

    def test_no_duplicates(self):
        """An address found twice should appear once."""
        html = (
            "<p>ops@example.com and OPS@example.com</p>"
            '<a href="mailto:ops@example.com">ops</a>'
        )
        emails = EmailExtractor().extract(PageDocument(PAGE_URL, html))
        assert emails == ["ops@example.com"]

    def test_mailto_with_multiple_recipients(self):
        """Comma separated mailto recipients are all collected."""
        html = '<a href="mailto:a@example.com,b@example.com?cc=c@example.com">x</a>'
        emails = EmailExtractor().extract(PageDocument(PAGE_URL, html))
        assert emails == ["a@example.com", "b@example.com"]

    def test_data_mail_and_data_contact(self):
        """Alternative data attributes are supported."""
        html = (
            '<div data-mail="one@example.com"></div>'
            '<div data-contact="two@example.com"></div>'
        )
        emails = EmailExtractor().extract(PageDocument(PAGE_URL, html))
        assert emails == ["one@example.com", "two@example.com"]

    def test_json_ld_contact_point(self):
        """Addresses inside structured data are found alongside page text."""
        html = (
            "<p>Write to info@example.com</p>"
            '<script type="application/ld+json">'
            '{"@type": "Organization", "contactPoint": {"email": "support@example.com"}}'
            "</script>"
        )
        emails = EmailExtractor().extract(PageDocument(PAGE_URL, html))
        assert emails == ["info@example.com", "support@example.com"]

    def test_target(self):
        assert EmailExtractor().target == ExtractionTarget.EMAILS


class TestPhoneExtractor:
    """Tests for PhoneExtractor."""

    def test_tel_links_and_text(self, document: PageDocument):
        """Numbers from tel: links and text are both found."""
        records = PhoneExtractor().extract(document)
        values = [r.value for r in records]

        assert values == ["+1-555-987-6543", "(555) 321-0987"]
        assert all(r.kind == PersonalDataKind.PHONE for r in records)
        assert all(r.source_url == PAGE_URL for r in records)

    def test_same_digits_deduplicated(self):
        """Different formatting of the same number is one record."""
        html = '<a href="tel:5551234567">x</a><p>555-123-4567</p>'
        records = PhoneExtractor().extract(PageDocument(PAGE_URL, html))
        assert len(records) == 1

    def test_short_numbers_ignored(self):
        """Dates and short numbers are not phone numbers."""
        html = "<p>Founded 2024-01-15, suite 120, zip 94105</p>"
        assert PhoneExtractor().extract(PageDocument(PAGE_URL, html)) == []


class TestNameExtraction:
    """Tests for NameExtractor and name_from_email."""

    @pytest.mark.parametrize(
        "email,expected",
        [
            ("john.doe@company.com", "John Doe"),
            ("jane_smith@company.com", "Jane Smith"),
            ("j.doe@company.com", "J Doe"),
            ("john@company.com", "John"),
            ("johnDoe@company.com", "John Doe"),
            ("john_doe_smith@company.com", "John Doe Smith"),
            ("john.doe+news@company.com", "John Doe"),
        ],
    )
    def test_name_from_email(self, email: str, expected: str):
        assert name_from_email(email) == expected

    @pytest.mark.parametrize(
        "email",
        ["admin@company.com", "info@company.com", "contact@company.com",
         "sales@company.com", "support@company.com", "12345@company.com"],
    )
    def test_role_accounts_skipped(self, email: str):
        assert name_from_email(email) is None

    def test_markup_and_email_sources(self, document: PageDocument):
        """Schema.org names, meta author and personal emails are used."""
        records = NameExtractor().extract(document)

        assert [r.value for r in records] == ["Alice Walker", "Maria Garcia", "John Smith"]
        assert all(r.kind == PersonalDataKind.NAME for r in records)

    def test_without_email_derivation(self, document: PageDocument):
        records = NameExtractor(derive_from_emails=False).extract(document)
        assert [r.value for r in records] == ["Alice Walker", "Maria Garcia"]


class TestAddressExtractor:
    """Tests for AddressExtractor."""

    def test_address_block(self, document: PageDocument):
        """The <address> block is used and the pattern match inside it is not repeated."""
        records = AddressExtractor().extract(document)

        assert len(records) == 1
        assert records[0].value == "Acme Corp 500 Market Street, San Francisco, CA 94105"
        assert records[0].kind == PersonalDataKind.ADDRESS

    def test_street_pattern_in_text(self):
        html = "<p>Visit us at 42 Baker Street, London today</p>"
        records = AddressExtractor().extract(PageDocument(PAGE_URL, html))
        assert [r.value for r in records] == ["42 Baker Street, London"]

    def test_schema_street_address(self):
        html = '<span itemprop="streetAddress">7 Elm Rd</span>'
        records = AddressExtractor().extract(PageDocument(PAGE_URL, html))
        assert [r.value for r in records] == ["7 Elm Rd"]


class TestSocialHandles:
    """Tests for social profile detection."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://www.linkedin.com/in/jane-doe/", "linkedin:jane-doe"),
            ("https://linkedin.com/company/acme", "linkedin:acme"),
            ("https://x.com/acme", "twitter:acme"),
            ("https://twitter.com/@acme", "twitter:acme"),
            ("https://www.facebook.com/acme.corp", "facebook:acme.corp"),
            ("https://instagram.com/acme_photos/", "instagram:acme_photos"),
            ("https://github.com/acme-corp/repo", "github:acme-corp"),
            ("https://www.youtube.com/@acmechannel", "youtube:acmechannel"),
            ("https://youtube.com/channel/UC123", "youtube:UC123"),
            ("https://www.tiktok.com/@acme", "tiktok:acme"),
        ],
    )
    def test_profile_urls(self, url: str, expected: str):
        assert social_handle(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "https://twitter.com/intent/tweet?text=hi",
            "https://www.facebook.com/sharer.php?u=x",
            "https://instagram.com/p/abc123",
            "https://linkedin.com/feed",
            "https://example.com/acme",
            "https://github.com/",
        ],
    )
    def test_non_profile_urls(self, url: str):
        assert social_handle(url) is None

    def test_extractor(self, document: PageDocument):
        records = SocialHandleExtractor().extract(document)
        assert [r.value for r in records] == ["twitter:acme", "github:acme-corp"]
        assert all(r.kind == PersonalDataKind.SOCIAL_HANDLE for r in records)


class TestLinkExtraction:
    """Tests for link extraction."""

    def test_links_resolved_and_filtered(self, document: PageDocument):
        """Links are absolute, fragment-free and http(s) only."""
        links = LinkExtractor().extract(document)

        assert links == [
            "https://www.example.com/",
            "https://www.example.com/about",
            "https://www.example.com/team",
            "https://twitter.com/acme",
            "https://twitter.com/intent/tweet?text=hi",
            "https://github.com/acme-corp",
            "https://other.test/page",
        ]

    def test_base_href_respected(self):
        html = '<base href="https://cdn.example.com/docs/"><a href="guide">Guide</a>'
        assert extract_links(html, PAGE_URL) == ["https://cdn.example.com/docs/guide"]

    def test_duplicates_removed(self):
        html = '<a href="/a">1</a><a href="/a#x">2</a><a href="/b">3</a>'
        assert extract_links(html, PAGE_URL) == [
            "https://www.example.com/a",
            "https://www.example.com/b",
        ]


class FailingExtractor(Extractor):
    """Extractor that always raises."""

    name = "broken"
    target = ExtractionTarget.PERSONAL_DATA

    def extract(self, document: PageDocument) -> list:
        raise RuntimeError("boom")


class TestExtractionPipeline:
    """Tests for ExtractionPipeline."""

    def test_default_composition(self):
        full = ExtractionPipeline.default(collect_personal_data=True)
        minimal = ExtractionPipeline.default(collect_personal_data=False)

        assert full.names == ["emails", "links", "phones", "names", "addresses", "social_handles"]
        assert minimal.names == ["emails", "links"]

    def test_run_merges_targets(self, sample_html: str):
        extraction = ExtractionPipeline.default().extract(PAGE_URL, sample_html)

        assert extraction.url == PAGE_URL
        assert "info@acme.test" in extraction.emails
        assert "https://www.example.com/about" in extraction.links
        kinds = {r.kind for r in extraction.personal_data}
        assert kinds == {
            PersonalDataKind.PHONE,
            PersonalDataKind.NAME,
            PersonalDataKind.ADDRESS,
            PersonalDataKind.SOCIAL_HANDLE,
        }
        assert not extraction.has_errors

    def test_personal_data_disabled(self, sample_html: str):
        extraction = ExtractionPipeline.default(collect_personal_data=False).extract(
            PAGE_URL, sample_html)
        assert extraction.personal_data == []
        assert extraction.emails

    def test_failing_extractor_isolated(self, sample_html: str):
        """One failing extractor must not prevent the others from running."""
        pipeline = ExtractionPipeline([FailingExtractor(), EmailExtractor(), LinkExtractor()])

        extraction = pipeline.extract(PAGE_URL, sample_html)

        assert extraction.emails
        assert extraction.links
        assert len(extraction.errors) == 1
        error = extraction.errors[0]
        assert isinstance(error, ExtractionError)
        assert error.extractor == "broken"
        assert error.url == PAGE_URL
        assert isinstance(error.__cause__, RuntimeError)

    def test_has_target(self):
        pipeline = ExtractionPipeline([EmailExtractor()])
        assert pipeline.has_target(ExtractionTarget.EMAILS)
        assert not pipeline.has_target(ExtractionTarget.LINKS)
