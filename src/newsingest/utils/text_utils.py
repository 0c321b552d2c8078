"""Text processing utilities."""

import hashlib
import html
import re
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "fbclid",
    "gclid",
    "ref",
}

_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def normalize_url(url: str) -> str:
    """Normalize URL by removing tracking parameters and fragments.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL
    """
    parsed = urlparse(url.strip())

    query_params = parse_qs(parsed.query)
    clean_params = {
        k: v for k, v in query_params.items() if k.lower() not in TRACKING_PARAMS
    }
    clean_query = urlencode(clean_params, doseq=True) if clean_params else ""

    normalized = urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path,
            parsed.params,
            clean_query,
            "",
        )
    )

    if normalized.endswith("/"):
        normalized = normalized[:-1]

    return normalized


def hash_url(url: str) -> str:
    """Generate SHA-256 hash of the normalized URL.

    The hash is the idempotency key for stored articles.

    Args:
        url: URL to hash

    Returns:
        64-character hex string
    """
    normalized = normalize_url(url)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def clean_html_content(text: str) -> str:
    """Strip CDATA wrappers, HTML tags and entities from feed text.

    Args:
        text: Raw text from a feed element

    Returns:
        Plain text
    """
    if not text:
        return ""

    text = _CDATA_RE.sub(r"\1", text)
    text = _TAG_RE.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")

    return clean_whitespace(text)


def clean_whitespace(text: str) -> str:
    """Collapse runs of whitespace and strip the ends."""
    return re.sub(r"\s+", " ", text).strip()


def slugify(title: str) -> str:
    """Build a URL slug from a title.

    Args:
        title: Article title

    Returns:
        Lowercase slug of ASCII letters, digits and dashes
    """
    return _SLUG_RE.sub("-", title.lower()).strip("-")


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add when truncating

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix
