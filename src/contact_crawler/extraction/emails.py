"""
Email address extraction.

Finds addresses in visible text, including the common "[at]"/"(at)"
obfuscations, in mailto: links and in data-email style attributes.
"""

import re
from urllib.parse import unquote

from contact_crawler.extraction.base import ExtractionTarget, Extractor, PageDocument

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_AT = r"\s*(?:\[at\]|\(at\))\s*"
_DOT = r"\s*(?:\[dot\]|\(dot\))\s*"

OBFUSCATED_EMAIL_RE = re.compile(
    rf"[a-zA-Z0-9._%+-]+{_AT}[a-zA-Z0-9-]+(?:(?:{_DOT}|\.)[a-zA-Z0-9-]+)*{_DOT}[a-zA-Z]{{2,}}",
    re.IGNORECASE,
)

VALID_EMAIL_RE = re.compile(
    r"^[a-z0-9._%+-]+@[a-z0-9](?:[a-z0-9-]*[a-z0-9])?(?:\.[a-z0-9](?:[a-z0-9-]*[a-z0-9])?)*\.[a-z]{2,}$"
)

# "logo@2x.png" and friends
ASSET_SUFFIXES = frozenset({
    "png", "jpg", "jpeg", "gif", "webp", "svg", "bmp", "ico", "avif",
    "css", "js", "woff", "woff2", "ttf", "mp4", "webm",
})

EMAIL_ATTRIBUTES = ("data-email", "data-mail", "data-contact")


def clean_email(raw: str) -> str | None:
    """
    Normalize a candidate address.

    Replaces obfuscation tokens, removes whitespace and lower-cases.

    Args:
        raw: Matched text

    Returns:
        The cleaned address, or None if it is not a plausible email
    """
    cleaned = re.sub(r"\[at\]|\(at\)", "@", raw, flags=re.IGNORECASE)
    cleaned = re.sub(r"\[dot\]|\(dot\)", ".", cleaned, flags=re.IGNORECASE)
    cleaned = "".join(cleaned.split()).lower().strip(".")

    if not VALID_EMAIL_RE.match(cleaned):
        return None

    local, _, domain = cleaned.rpartition("@")
    if ".." in local or local.startswith(".") or local.endswith("."):
        return None
    if domain.rsplit(".", 1)[-1] in ASSET_SUFFIXES:
        return None

    return cleaned


def emails_in_text(text: str) -> list[str]:
    """Find plain and obfuscated addresses in text, in order of appearance."""
    matches = [
        (m.start(), m.group())
        for pattern in (EMAIL_RE, OBFUSCATED_EMAIL_RE)
        for m in pattern.finditer(text)
    ]
    matches.sort(key=lambda item: item[0])

    emails: list[str] = []
    for _, raw in matches:
        email = clean_email(raw)
        if email and email not in emails:
            emails.append(email)
    return emails


class EmailExtractor(Extractor):
    """
    Extracts email addresses from a page.

    Sources, in this order: visible text, mailto: hrefs, then
    data-email/data-mail/data-contact attributes. Each address appears
    once, at its first occurrence.

    Example:
        >>> doc = PageDocument(url, '<p>Write to jane [at] example [dot] com</p>')
        >>> EmailExtractor().extract(doc)
        ['jane@example.com']
    """

    name = "emails"
    target = ExtractionTarget.EMAILS

    def extract(self, document: PageDocument) -> list[str]:
        emails = emails_in_text(document.text)
        seen = set(emails)

        for candidate in self._attribute_candidates(document):
            email = clean_email(candidate)
            if email and email not in seen:
                seen.add(email)
                emails.append(email)

        return emails

    def _attribute_candidates(self, document: PageDocument) -> list[str]:
        candidates = []
        soup = document.soup

        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if href.lower().startswith("mailto:"):
                addresses = unquote(href[len("mailto:"):]).split("?", 1)[0]
                candidates.extend(a for a in addresses.split(",") if a.strip())

        for element in soup.find_all(
            lambda tag: any(tag.has_attr(attr) for attr in EMAIL_ATTRIBUTES)
        ):
            for attr in EMAIL_ATTRIBUTES:
                value = element.get(attr)
                if value:
                    candidates.append(value)
                    break

        return candidates
