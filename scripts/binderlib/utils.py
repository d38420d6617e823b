"""String normalization helpers."""

import posixpath
import re
from urllib.parse import unquote, urlparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value, fallback="image"):
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def url_basename(url):
    """Last path segment of a URL, ignoring query string and fragment."""
    path = unquote(urlparse(url).path)
    return posixpath.basename(path.rstrip("/"))
