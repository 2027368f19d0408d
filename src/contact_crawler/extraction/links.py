"""
Outbound link extraction.
"""

from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from contact_crawler.extraction.base import ExtractionTarget, Extractor, PageDocument

SKIPPED_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:", "#")


def links_from_soup(soup: BeautifulSoup, base_url: str) -> list[str]:
    """
    Collect absolute http(s) links from anchor tags.

    Relative links resolve against the page's <base href> when present,
    otherwise against base_url. Fragments are removed.

    Args:
        soup: Parsed page
        base_url: URL the page was served from

    Returns:
        Unique links in document order
    """
    base_tag = soup.find("base", href=True)
    if base_tag is not None:
        base_url = urljoin(base_url, base_tag["href"].strip())

    links: list[str] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
            continue

        try:
            absolute, _ = urldefrag(urljoin(base_url, href))
            scheme = urlparse(absolute).scheme.lower()
        except ValueError:
            continue

        if scheme not in ("http", "https"):
            continue

        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    return links


def extract_links(html: str, base_url: str) -> list[str]:
    """Parse html and return its absolute http(s) links."""
    return links_from_soup(BeautifulSoup(html or "", "html.parser"), base_url)


class LinkExtractor(Extractor):
    """Extracts outbound links for the frontier."""

    name = "links"
    target = ExtractionTarget.LINKS

    def extract(self, document: PageDocument) -> list[str]:
        return links_from_soup(document.soup, document.url)
