"""Discord webhook notifier for watcher events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests
import structlog

from src.models.event import (
    SimilarityFlag,
    SocialLinksChanged,
    ThresholdCrossed,
    TokenAppeared,
)
from src.utils.http import create_session

if TYPE_CHECKING:
    from src.models.event import Event
    from src.models.token import Token

logger = structlog.get_logger(__name__)

COLOR_YELLOW = 0xFFFF00
COLOR_GREEN = 0x00FF00
COLOR_RED = 0xFF0000
COLOR_ORANGE = 0xFF8C00

# Discord rejects embeds with more than 25 fields
_MAX_EMBED_FIELDS = 25


def _link_or_na(url: str | None) -> str:
    return f"[{url}]({url})" if url else "N/A"


def _token_summary(token: Token) -> str:
    return (
        f"**Name:** {token.name}\n"
        f"**Twitter:** {_link_or_na(token.twitter)}\n"
        f"**Telegram:** {_link_or_na(token.telegram)}\n"
        f"**Website:** {_link_or_na(token.website)}"
    )


class DiscordNotifier:
    """Posts one embed per event to a Discord webhook."""

    def __init__(
        self,
        webhook_url: str,
        site_url: str = "https://ape.store/base",
        explorer_url: str = "https://basescan.org/address",
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.site_url = site_url.rstrip("/")
        self.explorer_url = explorer_url.rstrip("/")
        self.timeout = timeout
        self.session = session or create_session()

    def _links(self, token: Token) -> tuple[str, str]:
        return f"{self.site_url}/{token.address}", f"{self.explorer_url}/{token.address}"

    def build_embed(self, event: Event) -> dict[str, Any]:
        """Render an event as a Discord embed."""
        project_link, explorer_link = self._links(event.token)
        timestamp = event.detected_at.isoformat()

        if isinstance(event, SocialLinksChanged):
            changed_fields = ", ".join(change.field.value.capitalize() for change in event.changes)
            return {
                "title": f"🔄 {changed_fields} Change Detected - {event.token.name}",
                "description": f"Changes detected for [${event.token.name}]({project_link})",
                "color": COLOR_YELLOW,
                "timestamp": timestamp,
                "fields": [
                    {"name": change.describe(), "value": "\u200b", "inline": False}
                    for change in event.changes[:_MAX_EMBED_FIELDS]
                ],
            }

        if isinstance(event, ThresholdCrossed):
            return {
                "title": f"🚀 Token Reached {event.threshold:,} Market Cap: {event.token.name}",
                "description": (
                    f"**Market Cap:** ${event.token.market_cap:,.0f}\n"
                    f"**View on Listing:** [Link]({project_link})\n"
                    f"**Explorer:** [Link]({explorer_link})"
                ),
                "color": COLOR_GREEN,
                "timestamp": timestamp,
            }

        if isinstance(event, SimilarityFlag):
            return {
                "title": f"🚨 Red Flag: New Project Launch Alert - {event.token.name}",
                "description": (
                    f"A new project with matching {event.matched_on} has been launched.\n"
                    f"**View on Listing:** [Link]({project_link})"
                ),
                "color": COLOR_RED,
                "timestamp": timestamp,
                "fields": [
                    {"name": "New Token", "value": _token_summary(event.token), "inline": True},
                    {
                        "name": "Existing Token",
                        "value": _token_summary(event.match),
                        "inline": True,
                    },
                ],
            }

        if isinstance(event, TokenAppeared):
            title = f"🆓 New Token Freed: {event.token.name}"
            color = COLOR_YELLOW
            if event.suspicious:
                title = f"⚠️ Freshly Created Token Freed: {event.token.name}"
                color = COLOR_ORANGE
            return {
                "title": title,
                "description": (
                    f"**View on Listing:** [Link]({project_link})\n"
                    f"**Explorer:** [Link]({explorer_link})"
                ),
                "color": color,
                "timestamp": timestamp,
            }

        msg = f"Unsupported event type: {type(event).__name__}"
        raise TypeError(msg)

    def notify(self, event: Event) -> bool:
        """Deliver an event. Returns True on a 2xx response; never raises."""
        payload = {"embeds": [self.build_embed(event)]}
        try:
            response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(
                "notification_failed",
                event_type=event.event_type.value,
                address=event.token.address,
                error=str(exc),
            )
            return False

        if response.status_code not in (200, 204):
            logger.error(
                "notification_rejected",
                event_type=event.event_type.value,
                address=event.token.address,
                status_code=response.status_code,
            )
            return False

        logger.info(
            "notification_sent",
            event_type=event.event_type.value,
            token=event.token.name,
            address=event.token.address,
        )
        return True
