"""
Extraction module for the contact crawler.

Provides content extraction from rendered pages including:
- Email addresses (plain, obfuscated, mailto, data attributes)
- Personal data (phones, names, addresses, social handles)
- Outbound links for the frontier
"""

from contact_crawler.extraction.base import (
    Extractor,
    ExtractionTarget,
    PageDocument,
)
from contact_crawler.extraction.records import PersonalDataKind, PersonalDataRecord
from contact_crawler.extraction.emails import EmailExtractor, clean_email
from contact_crawler.extraction.links import LinkExtractor, extract_links
from contact_crawler.extraction.personal_data import (
    PhoneExtractor,
    NameExtractor,
    AddressExtractor,
    SocialHandleExtractor,
    name_from_email,
    social_handle,
)
from contact_crawler.extraction.pipeline import ExtractionPipeline, PageExtraction

__all__ = [
    # Base
    "Extractor",
    "ExtractionTarget",
    "PageDocument",
    "PersonalDataKind",
    "PersonalDataRecord",
    # Extractors
    "EmailExtractor",
    "LinkExtractor",
    "PhoneExtractor",
    "NameExtractor",
    "AddressExtractor",
    "SocialHandleExtractor",
    # Helpers
    "clean_email",
    "extract_links",
    "name_from_email",
    "social_handle",
    # Pipeline
    "ExtractionPipeline",
    "PageExtraction",
]
