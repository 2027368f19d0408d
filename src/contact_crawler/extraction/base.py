"""
Shared document model and extractor interface.

A PageDocument is built once per rendered page and handed to every
extractor, so the HTML is parsed at most once for markup queries and
once for visible text.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from bs4 import BeautifulSoup

# Elements whose text never appears on the rendered page
NON_VISIBLE_TAGS = ["style", "template", "svg", "head"]


class ExtractionTarget(str, Enum):
    """Which part of a page extraction an extractor contributes to."""

    EMAILS = "emails"
    PERSONAL_DATA = "personal_data"
    LINKS = "links"


class PageDocument:
    """
    A rendered page prepared for extraction.

    Example:
        >>> doc = PageDocument("https://example.com", "<p>hi</p>")
        >>> doc.text
        'hi'
    """

    def __init__(self, url: str, html: str) -> None:
        self.url = url
        self.html = html or ""
        self._soup: BeautifulSoup | None = None
        self._text: str | None = None

    @property
    def soup(self) -> BeautifulSoup:
        """Parsed DOM. Extractors must treat it as read-only."""
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "html.parser")
        return self._soup

    @property
    def text(self) -> str:
        """Visible text with whitespace collapsed."""
        if self._text is None:
            self._text = self._visible_text()
        return self._text

    def _visible_text(self) -> str:
        soup = BeautifulSoup(self.html, "html.parser")

        for tag in soup.find_all(NON_VISIBLE_TAGS):
            tag.decompose()

        # get_text() skips script strings, so JSON-LD is collected first
        json_ld = []
        for script in soup.find_all("script"):
            if script.get("type", "").lower() == "application/ld+json" and script.string:
                json_ld.append(str(script.string))
            script.decompose()

        text = " ".join([soup.get_text(" "), *json_ld])
        return " ".join(text.split())


class Extractor(ABC):
    """
    Base class for content extractors.

    Subclasses set name and target and implement extract(). An extractor
    must not mutate the document.
    """

    name: str = "extractor"
    target: ExtractionTarget = ExtractionTarget.EMAILS

    @abstractmethod
    def extract(self, document: PageDocument) -> list[Any]:
        """
        Extract items from a page.

        Args:
            document: The rendered page

        Returns:
            Extracted items, unique and in document order
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
