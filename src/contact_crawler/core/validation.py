"""
Input validation for seed URLs.

Mirrors the checks the HTTP layer performs before a crawl job is built.
The engine itself trusts its inputs; these helpers exist for callers
such as the CLI that accept raw user input.
"""

from urllib.parse import urlparse

from contact_crawler.core.exceptions import ValidationError

ALLOWED_SCHEMES = ("http", "https")


def validate_url(url: str) -> str:
    """
    Validate a seed URL.

    Args:
        url: Candidate URL

    Returns:
        The URL, stripped of surrounding whitespace

    Raises:
        ValidationError: If the URL is empty, not http(s), or has no host
    """
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("URL must be a non-empty string", value=url)

    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL format: {e}", value=url) from e

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError("URL must use HTTP or HTTPS protocol", value=url)

    if not parsed.hostname:
        raise ValidationError("URL must have a valid hostname", value=url)

    return url


def validate_batch_urls(urls: list[str], max_urls: int = 10) -> list[str]:
    """
    Validate a list of seed URLs for a batch crawl.

    Args:
        urls: Candidate URLs in request order
        max_urls: Maximum number of seeds accepted

    Returns:
        The validated URLs in the same order

    Raises:
        ValidationError: If the list is empty, too long, or any URL is invalid
    """
    if not isinstance(urls, (list, tuple)):
        raise ValidationError("URLs must be a list")

    if len(urls) == 0:
        raise ValidationError("URLs list cannot be empty")

    if len(urls) > max_urls:
        raise ValidationError(
            f"Maximum {max_urls} URLs allowed per batch",
            value=len(urls),
        )

    errors = []
    validated = []
    for index, url in enumerate(urls, start=1):
        try:
            validated.append(validate_url(url))
        except ValidationError as e:
            errors.append(f"URL {index}: {e.message}")

    if errors:
        raise ValidationError("; ".join(errors))

    return validated
