"""
Extractor pipeline.

Runs a composition of extractors over one page and merges their output
into a PageExtraction. A failing extractor is isolated: its error is
logged and recorded, the others still run.
"""

from dataclasses import dataclass, field
from typing import Iterable

from contact_crawler.core.exceptions import ExtractionError
from contact_crawler.extraction.base import ExtractionTarget, Extractor, PageDocument
from contact_crawler.extraction.emails import EmailExtractor
from contact_crawler.extraction.links import LinkExtractor
from contact_crawler.extraction.personal_data import (
    AddressExtractor,
    NameExtractor,
    PhoneExtractor,
    SocialHandleExtractor,
)
from contact_crawler.extraction.records import PersonalDataRecord
from contact_crawler.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PageExtraction:
    """Everything extracted from one page."""

    url: str
    emails: list[str] = field(default_factory=list)
    personal_data: list[PersonalDataRecord] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    errors: list[ExtractionError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class ExtractionPipeline:
    """
    Ordered composition of extractors.

    Example:
        >>> pipeline = ExtractionPipeline.default(collect_personal_data=False)
        >>> extraction = pipeline.extract(url, html)
        >>> extraction.emails
        ['info@example.com']
    """

    def __init__(self, extractors: Iterable[Extractor]) -> None:
        self.extractors = list(extractors)

    @classmethod
    def default(cls, collect_personal_data: bool = True) -> "ExtractionPipeline":
        """
        Build the standard composition.

        Args:
            collect_personal_data: Include phone, name, address and social extractors

        Returns:
            Configured pipeline
        """
        extractors: list[Extractor] = [EmailExtractor(), LinkExtractor()]
        if collect_personal_data:
            extractors.extend([
                PhoneExtractor(),
                NameExtractor(),
                AddressExtractor(),
                SocialHandleExtractor(),
            ])
        return cls(extractors)

    @property
    def names(self) -> list[str]:
        return [extractor.name for extractor in self.extractors]

    def has_target(self, target: ExtractionTarget) -> bool:
        """Whether any extractor contributes to target."""
        return any(extractor.target == target for extractor in self.extractors)

    def run(self, document: PageDocument) -> PageExtraction:
        """
        Run every extractor over a document.

        Args:
            document: Parsed page

        Returns:
            PageExtraction with merged results and per-extractor errors
        """
        extraction = PageExtraction(url=document.url)

        for extractor in self.extractors:
            try:
                items = extractor.extract(document)
            except Exception as e:
                error = ExtractionError(
                    f"Extractor {extractor.name!r} failed: {e}",
                    extractor=extractor.name,
                    url=document.url,
                )
                error.__cause__ = e
                logger.warning(str(error))
                extraction.errors.append(error)
                continue

            if extractor.target == ExtractionTarget.EMAILS:
                for email in items:
                    if email not in extraction.emails:
                        extraction.emails.append(email)
            elif extractor.target == ExtractionTarget.PERSONAL_DATA:
                extraction.personal_data.extend(items)
            elif extractor.target == ExtractionTarget.LINKS:
                for link in items:
                    if link not in extraction.links:
                        extraction.links.append(link)

        return extraction

    def extract(self, url: str, html: str) -> PageExtraction:
        """Convenience wrapper building the PageDocument."""
        return self.run(PageDocument(url, html))
