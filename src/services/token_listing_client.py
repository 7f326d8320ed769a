"""Listing API client for paginated token listings."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import requests
import structlog
from pydantic import ValidationError

from src.models.token import Token, TokenPage
from src.utils.http import create_session

logger = structlog.get_logger(__name__)


class ListingView(StrEnum):
    """Orderings and filters of the listing the pipelines read."""

    NEWEST = "newest"
    MARKET_CAP = "market_cap"
    FREED = "freed"
    HISTORY = "history"


# Query parameters the listing API expects for each view
_VIEW_PARAMS: dict[ListingView, dict[str, str]] = {
    ListingView.NEWEST: {"sort": "0", "order": "1", "filter": "0"},
    ListingView.MARKET_CAP: {"sort": "2", "order": "1", "filter": "0"},
    ListingView.FREED: {"sort": "1", "order": "1", "filter": "2"},
    ListingView.HISTORY: {"sort": "1", "order": "1", "filter": "0"},
}


def parse_listing_payload(data: Any) -> TokenPage:
    """Parse a decoded listing response.

    Raises ValueError when the payload lacks an ``items`` list. Individual
    items that fail validation are skipped.
    """
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        msg = "Unexpected listing response structure"
        raise ValueError(msg)

    tokens: list[Token] = []
    for item in data["items"]:
        if not isinstance(item, dict):
            logger.warning("listing_item_skipped", reason="not an object")
            continue
        try:
            tokens.append(Token.from_api(item))
        except ValidationError as exc:
            logger.warning(
                "listing_item_skipped",
                address=item.get("address"),
                error=str(exc),
            )

    try:
        total_pages = int(data.get("pageCount") or 0)
    except (TypeError, ValueError):
        total_pages = 0

    return TokenPage(tokens=tokens, total_pages=total_pages)


class TokenListingClient:
    """Client for the token listing API."""

    def __init__(
        self,
        api_url: str,
        proxy_url: str | None = None,
        verify_tls: bool = True,
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or create_session(proxy_url, verify_tls)

    def fetch_page_strict(self, page: int, view: ListingView = ListingView.NEWEST) -> TokenPage:
        """Fetch one page. Raises on transport, HTTP status and payload errors."""
        params = {
            "page": str(page),
            **_VIEW_PARAMS[view],
            "search": "",
            "chain": "0",
        }
        response = self.session.get(self.api_url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return parse_listing_payload(response.json())

    def fetch(self, page: int, view: ListingView = ListingView.NEWEST) -> TokenPage:
        """Fetch one page, returning an empty page on any failure."""
        try:
            result = self.fetch_page_strict(page, view)
        except requests.RequestException as exc:
            logger.error("listing_fetch_failed", page=page, view=view.value, error=str(exc))
            return TokenPage.empty()
        except ValueError as exc:
            logger.error("listing_response_invalid", page=page, view=view.value, error=str(exc))
            return TokenPage.empty()

        logger.debug(
            "listing_page_fetched",
            page=page,
            view=view.value,
            tokens=len(result.tokens),
            total_pages=result.total_pages,
        )
        return result
