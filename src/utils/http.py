"""Shared requests session setup for the listing API and webhooks."""

from __future__ import annotations

import requests

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "*/*",
}


def create_session(proxy_url: str | None = None, verify_tls: bool = True) -> requests.Session:
    """Build a session with browser-like headers and an optional proxy."""
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    if proxy_url:
        session.proxies.update({"http": proxy_url, "https": proxy_url})
    session.verify = verify_tls
    return session
