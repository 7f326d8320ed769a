"""Social link normalization for equality comparison."""

from __future__ import annotations

import re

# Bare platform domains that listings use as "no link" placeholders
PLACEHOLDER_DOMAINS: frozenset[str] = frozenset({"x.com", "t.me", "twitter.com"})

_SCHEME_AND_WWW = re.compile(r"^(?:https?://)?(?:www\.)?", re.IGNORECASE)
_TRAILING_JUNK = re.compile(r"[./\s]+$")


def normalize_link(url: str | None) -> str:
    """Canonicalize a free-text link for comparison.

    Strips scheme and ``www.``, lowercases and drops trailing slashes/dots.
    Empty input and placeholder domains normalize to "", which every caller
    treats as an absent link. Idempotent.
    """
    if not url:
        return ""
    normalized = url.strip()
    # Loop so that "https://www.https://x" style double prefixes still reach a fixed point
    while True:
        stripped = _SCHEME_AND_WWW.sub("", normalized, count=1)
        if stripped == normalized:
            break
        normalized = stripped.strip()
    normalized = _TRAILING_JUNK.sub("", normalized.lower())
    if normalized in PLACEHOLDER_DOMAINS:
        return ""
    return normalized

