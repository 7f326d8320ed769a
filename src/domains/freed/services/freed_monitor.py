"""Monitor for tokens appearing on the freed listing page."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from src.domains.freed.core.presence import PresenceTracker, is_recently_created
from src.models.config import Pipeline
from src.models.event import TokenAppeared
from src.services.token_listing_client import ListingView

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.models.event import Event
    from src.models.token import Token
    from src.repositories.seen_token_repository import SeenTokenRepository
    from src.services.notification_dispatcher import NotificationDispatcher
    from src.services.protocols import TokenFetcherProtocol

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class FreedMonitor:
    """Reports tokens that newly appear on the top page of the freed view.

    The first non-empty cycle of the process only records what is listed.
    Each later appearance is persisted as soon as it is decided.
    """

    name = Pipeline.FREED.value

    def __init__(
        self,
        fetcher: TokenFetcherProtocol,
        dispatcher: NotificationDispatcher,
        seen_repo: SeenTokenRepository,
        namespace: str = Pipeline.FREED.value,
        recent_window: timedelta = timedelta(minutes=60),
        view: ListingView = ListingView.FREED,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.seen_repo = seen_repo
        self.namespace = namespace
        self.recent_window = recent_window
        self.view = view
        self.clock = clock
        self.tracker = PresenceTracker(seen=self._load_seen())
        self._unsaved: dict[str, Token] = {}

    def _load_seen(self) -> set[str]:
        try:
            seen = self.seen_repo.get_addresses(self.namespace)
        except sqlite3.Error as exc:
            logger.error("seen_tokens_load_failed", namespace=self.namespace, error=str(exc))
            return set()
        logger.info("seen_tokens_loaded", namespace=self.namespace, tokens=len(seen))
        return seen

    def run_cycle(self) -> list[Event]:
        """Check the freed page for tokens not seen before."""
        # Writes that failed last cycle
        self.flush()
        result = self.fetcher.fetch(0, self.view)
        if result.is_empty:
            logger.debug("freed_page_empty", namespace=self.namespace)
            return []

        if not self.tracker.initialized:
            added = self.tracker.initialize([token.address for token in result.tokens])
            self._unsaved.update({token.address: token for token in result.tokens})
            self.flush()
            logger.info("freed_tracker_initialized", listed=len(result.tokens), new=len(added))
            return []

        events: list[Event] = []
        now = self.clock()
        for token in result.tokens:
            if not self.tracker.observe(token.address):
                continue
            suspicious = is_recently_created(token.create_date, now, self.recent_window)
            logger.info(
                "token_freed",
                token=token.name,
                address=token.address,
                suspicious=suspicious,
            )
            self._unsaved[token.address] = token
            self.flush()
            event = TokenAppeared(token=token, suspicious=suspicious)
            events.append(event)
            self.dispatcher.dispatch(event)
        return events

    def flush(self) -> None:
        """Persist seen addresses not yet written."""
        if not self._unsaved:
            return
        try:
            self.seen_repo.add_many(self.namespace, list(self._unsaved.values()))
        except sqlite3.Error as exc:
            logger.error(
                "state_persist_failed",
                namespace=self.namespace,
                pending=len(self._unsaved),
                error=str(exc),
            )
            return
        self._unsaved.clear()

    def shutdown(self) -> None:
        self.flush()
        self.dispatcher.shutdown()
