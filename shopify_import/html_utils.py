"""Text helpers: HTML stripping, slugs and tag parsing."""

import re
import secrets
import unicodedata
from typing import Any, List, Optional

from bs4 import BeautifulSoup

__all__ = [
    "strip_html",
    "slugify",
    "random_token",
    "split_tags",
    "truncate",
]


def strip_html(html: Optional[str]) -> str:
    """Return the visible text of an HTML fragment with whitespace collapsed."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    text = soup.get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def slugify(value: str, separator: str = "-") -> str:
    """Convert a name to a lowercase ASCII slug.

    >>> slugify("Blue Shirt (Men's)")
    'blue-shirt-mens'
    >>> slugify("Shoe Size", "_")
    'shoe_size'
    """
    normalized = unicodedata.normalize("NFKD", value or "")
    ascii_value = normalized.encode("ascii", "ignore").decode("ascii").lower()
    # Drop apostrophes so "men's" becomes "mens", not "men-s"
    ascii_value = re.sub(r"['’]", "", ascii_value)
    cleaned = re.sub(r"[^a-z0-9]+", separator, ascii_value)
    cleaned = re.sub(re.escape(separator) + r"+", separator, cleaned)
    return cleaned.strip(separator)


def random_token(length: int = 10) -> str:
    """Random lowercase hex string used to disambiguate SKUs and file names."""
    return secrets.token_hex((length + 1) // 2)[:length]


def split_tags(tags: Any) -> List[str]:
    """Normalize feed tags (comma string or list) to distinct, trimmed, non-empty values."""
    if not tags:
        return []
    if isinstance(tags, str):
        raw = tags.split(",")
    else:
        raw = [str(t) for t in tags if t is not None]

    seen = set()
    result: List[str] = []
    for tag in raw:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[: length - 3].rstrip() + "..."
