"""API health check utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING

import requests
import structlog

if TYPE_CHECKING:
    from src.services.token_listing_client import TokenListingClient

logger = structlog.get_logger(__name__)


def check_listing_api_health(client: TokenListingClient) -> bool:
    """Check that the listing API answers page 0 with a well-formed payload."""
    try:
        client.fetch_page_strict(0)
    except (requests.RequestException, ValueError) as exc:
        logger.warning("listing_api_health_check_failed", error=str(exc))
        return False
    return True


def check_webhook_health(
    webhook_url: str,
    session: requests.Session | None = None,
    timeout: int = 10,
) -> bool:
    """Check that a Discord webhook exists (GET returns the webhook object)."""
    http = session or requests.Session()
    try:
        response = http.get(webhook_url, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("webhook_health_check_failed", error=str(exc))
        return False
    return response.status_code == 200
