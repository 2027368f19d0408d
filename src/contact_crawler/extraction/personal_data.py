"""
Personal contact data extraction.

One extractor per PersonalDataKind: phone numbers, person names, postal
addresses and social media handles. Every record is tagged with the URL
of the page it was found on.
"""

import re
from urllib.parse import unquote, urlparse

from contact_crawler.extraction.records import PersonalDataKind, PersonalDataRecord
from contact_crawler.extraction.base import ExtractionTarget, Extractor, PageDocument
from contact_crawler.extraction.emails import EmailExtractor

# =============================================================================
# Phones
# =============================================================================

PHONE_RE = re.compile(
    r"(?<![\w+])"
    r"(?:\+?\d{1,3}[\s.-]?)?"
    r"(?:\(\d{2,4}\)|\d{2,4})[\s.-]?"
    r"\d{3,4}[\s.-]?\d{3,4}"
    r"(?!\w)"
)

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15


def _digit_count(value: str) -> int:
    return sum(ch.isdigit() for ch in value)


class PhoneExtractor(Extractor):
    """Phone numbers from tel: links and number patterns in text."""

    name = "phones"
    target = ExtractionTarget.PERSONAL_DATA

    def extract(self, document: PageDocument) -> list[PersonalDataRecord]:
        candidates: list[str] = []

        for anchor in document.soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if href.lower().startswith("tel:"):
                candidates.append(unquote(href[len("tel:"):]))

        candidates.extend(m.group() for m in PHONE_RE.finditer(document.text))

        records = []
        seen_digits: set[str] = set()
        for candidate in candidates:
            value = " ".join(candidate.split())
            if not MIN_PHONE_DIGITS <= _digit_count(value) <= MAX_PHONE_DIGITS:
                continue
            digits = "".join(ch for ch in value if ch.isdigit())
            if digits in seen_digits:
                continue
            seen_digits.add(digits)
            records.append(PersonalDataRecord(PersonalDataKind.PHONE, value, document.url))

        return records


# =============================================================================
# Names
# =============================================================================

# Shared mailboxes that say nothing about a person
ROLE_ACCOUNTS = frozenset({
    "admin", "administrator", "info", "contact", "contacts", "sales", "support",
    "help", "hello", "hi", "office", "team", "mail", "email", "webmaster",
    "postmaster", "hostmaster", "abuse", "noreply", "no-reply", "donotreply",
    "enquiries", "enquiry", "inquiries", "inquiry", "marketing", "press", "media",
    "news", "newsletter", "jobs", "careers", "hr", "billing", "accounts",
    "finance", "privacy", "legal", "security", "service", "services",
    "feedback", "orders", "shop", "store", "booking", "bookings", "reception",
})

_CAMEL_SPLIT_RE = re.compile(r"(?<=[a-z])(?=[A-Z])")


def name_from_email(email: str) -> str | None:
    """
    Derive a display name from an address's local part.

    Example:
        >>> name_from_email("john.doe@example.com")
        'John Doe'
        >>> name_from_email("info@example.com") is None
        True
    """
    local = email.split("@", 1)[0].split("+", 1)[0]
    if not local or local.lower() in ROLE_ACCOUNTS:
        return None

    parts = []
    for token in re.split(r"[._-]+", local):
        for piece in _CAMEL_SPLIT_RE.split(token):
            letters = "".join(ch for ch in piece if ch.isalpha())
            if letters:
                parts.append(letters)

    if not parts or parts[0].lower() in ROLE_ACCOUNTS:
        return None

    return " ".join(part.capitalize() for part in parts)


class NameExtractor(Extractor):
    """
    Person names from markup and email addresses.

    Sources: schema.org Person "name" properties, meta author tags, and
    names derived from personal (non-role) email addresses on the page.
    """

    name = "names"
    target = ExtractionTarget.PERSONAL_DATA

    def __init__(self, derive_from_emails: bool = True) -> None:
        self.derive_from_emails = derive_from_emails
        self._email_extractor = EmailExtractor()

    def extract(self, document: PageDocument) -> list[PersonalDataRecord]:
        names: list[str] = []
        soup = document.soup

        for person in soup.find_all(itemtype=re.compile(r"schema\.org/Person", re.I)):
            for element in person.find_all(itemprop="name"):
                value = element.get("content") or element.get_text(" ")
                names.append(value)

        for meta in soup.find_all("meta", attrs={"name": re.compile(r"^author$", re.I)}):
            if meta.get("content"):
                names.append(meta["content"])

        if self.derive_from_emails:
            for email in self._email_extractor.extract(document):
                derived = name_from_email(email)
                if derived:
                    names.append(derived)

        records = []
        seen: set[str] = set()
        for raw in names:
            value = " ".join(raw.split())
            if not value or value.casefold() in seen:
                continue
            seen.add(value.casefold())
            records.append(PersonalDataRecord(PersonalDataKind.NAME, value, document.url))

        return records


# =============================================================================
# Addresses
# =============================================================================

STREET_ADDRESS_RE = re.compile(
    r"\b\d{1,6}\s+(?:[A-Z][a-zA-Z]*\s+){1,4}"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Court|Ct"
    r"|Way|Place|Pl|Square|Sq|Parkway|Pkwy|Highway|Hwy)\b\.?"
    r"(?:,\s*[A-Z][A-Za-z]+(?:\s[A-Z][A-Za-z]+)*)?"
    r"(?:,\s*[A-Z]{2}(?:\s+\d{5}(?:-\d{4})?)?)?"
)


class AddressExtractor(Extractor):
    """Postal addresses from <address> blocks, schema.org markup and street patterns."""

    name = "addresses"
    target = ExtractionTarget.PERSONAL_DATA

    def extract(self, document: PageDocument) -> list[PersonalDataRecord]:
        soup = document.soup
        blocks: list[str] = []

        for element in soup.find_all("address"):
            blocks.append(element.get_text(" "))
        for element in soup.find_all(itemprop="streetAddress"):
            blocks.append(element.get("content") or element.get_text(" "))

        values = [" ".join(block.split()) for block in blocks]
        for match in STREET_ADDRESS_RE.finditer(document.text):
            candidate = match.group().rstrip(".,")
            # Skip matches already covered by a markup block
            if not any(candidate.casefold() in v.casefold() for v in values):
                values.append(candidate)

        records = []
        seen: set[str] = set()
        for value in values:
            if not value or value.casefold() in seen:
                continue
            seen.add(value.casefold())
            records.append(PersonalDataRecord(PersonalDataKind.ADDRESS, value, document.url))

        return records


# =============================================================================
# Social handles
# =============================================================================

SOCIAL_HOSTS = {
    "linkedin.com": "linkedin",
    "twitter.com": "twitter",
    "x.com": "twitter",
    "facebook.com": "facebook",
    "fb.com": "facebook",
    "instagram.com": "instagram",
    "github.com": "github",
    "youtube.com": "youtube",
    "tiktok.com": "tiktok",
}

# First path segments that are site features, not profiles
RESERVED_PATHS = {
    "twitter": {"share", "intent", "home", "i", "search", "hashtag", "explore", "login", "signup"},
    "facebook": {"sharer.php", "sharer", "share", "dialog", "plugins", "login", "tr", "events", "watch", "profile.php"},
    "instagram": {"p", "explore", "reel", "reels", "stories", "accounts"},
    "github": {"features", "about", "login", "join", "sponsors", "marketplace", "topics", "pricing", "settings"},
}

HANDLE_RE = re.compile(r"^[A-Za-z0-9_.-]{1,100}$")


def social_handle(url: str) -> str | None:
    """
    Map a profile URL to "platform:handle".

    Example:
        >>> social_handle("https://www.linkedin.com/in/jane-doe/")
        'linkedin:jane-doe'
        >>> social_handle("https://x.com/intent/tweet") is None
        True
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    for prefix in ("www.", "m.", "mobile.", "web."):
        if host.startswith(prefix):
            host = host[len(prefix):]
            break

    platform = SOCIAL_HOSTS.get(host)
    if platform is None:
        return None

    segments = [unquote(s) for s in parsed.path.split("/") if s]
    if not segments:
        return None

    handle: str | None = None
    if platform == "linkedin":
        if len(segments) >= 2 and segments[0] in ("in", "company", "school"):
            handle = segments[1]
    elif platform == "youtube":
        if segments[0].startswith("@"):
            handle = segments[0][1:]
        elif len(segments) >= 2 and segments[0] in ("c", "channel", "user"):
            handle = segments[1]
    elif platform == "tiktok":
        if segments[0].startswith("@"):
            handle = segments[0][1:]
    else:
        first = segments[0].lstrip("@")
        if first.lower() not in RESERVED_PATHS.get(platform, set()):
            handle = first

    if not handle or not HANDLE_RE.match(handle):
        return None
    return f"{platform}:{handle}"


class SocialHandleExtractor(Extractor):
    """Social media profiles linked from the page."""

    name = "social_handles"
    target = ExtractionTarget.PERSONAL_DATA

    def extract(self, document: PageDocument) -> list[PersonalDataRecord]:
        records = []
        seen: set[str] = set()

        for anchor in document.soup.find_all("a", href=True):
            value = social_handle(anchor["href"].strip())
            if value is None or value.casefold() in seen:
                continue
            seen.add(value.casefold())
            records.append(
                PersonalDataRecord(PersonalDataKind.SOCIAL_HANDLE, value, document.url)
            )

        return records
