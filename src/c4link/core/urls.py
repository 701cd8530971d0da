"""URL helpers."""

from __future__ import annotations

from urllib.parse import urlparse


def is_url(text: str | None) -> bool:
    """Check whether text is a well-formed absolute URL (scheme and host)."""
    if not text or not text.strip():
        return False
    if any(ch.isspace() for ch in text.strip()):
        return False
    try:
        parsed = urlparse(text.strip())
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)
