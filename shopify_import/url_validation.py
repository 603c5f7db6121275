"""URL validation and normalization for store and image URLs."""

import re
from urllib.parse import urlparse, urlunparse

from shopify_import.exceptions import ConfigurationError

__all__ = [
    "URLValidationError",
    "sanitize_url",
    "normalize_store_url",
    "normalize_image_url",
    "DANGEROUS_SCHEMES",
]


class URLValidationError(ConfigurationError):
    """Raised when URL validation fails."""
    pass


# Dangerous URL schemes to reject
DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}

SUSPICIOUS_PATTERNS = [
    r"\.\./",            # Path traversal
    r"%2e%2e",           # Encoded path traversal
    r"<script",          # XSS attempt
]


def sanitize_url(url: str) -> str:
    """Strip whitespace and control characters from a URL."""
    if not url:
        return ""

    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def _check_url(url: str, kind: str) -> None:
    parsed = urlparse(url)

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme in {kind}: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid {kind} URL scheme: {scheme or '(none)'}")
    if not parsed.netloc:
        raise URLValidationError(f"{kind.capitalize()} URL has no domain: {url}")

    url_lower = url.lower()
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, url_lower):
            raise URLValidationError(f"URL contains suspicious pattern: {pattern}")


def normalize_store_url(url: str) -> str:
    """Validate a storefront URL and reduce it to ``scheme://host[/path]``.

    A bare host gets ``https://``. Query strings, fragments, trailing slashes
    and a trailing ``/products.json`` are dropped.

    Raises:
        URLValidationError: If the URL is empty or unusable
    """
    url = sanitize_url(url)
    if not url:
        raise URLValidationError("Store URL is empty")

    if "://" not in url:
        url = f"https://{url}"

    _check_url(url, "store")

    parsed = urlparse(url)
    path = parsed.path.rstrip("/")
    if path.endswith("/products.json"):
        path = path[: -len("/products.json")]

    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), path, "", "", ""))


def normalize_image_url(url: str) -> str:
    """Validate an image ``src`` from the feed.

    Shopify CDN sources are often protocol-relative (``//cdn.shopify.com/...``);
    those are upgraded to https.

    Raises:
        URLValidationError: If the URL is empty or unusable
    """
    url = sanitize_url(url)
    if not url:
        raise URLValidationError("Image URL is empty")

    if url.startswith("//"):
        url = f"https:{url}"

    _check_url(url, "image")
    return url
