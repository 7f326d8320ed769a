"""Social link change monitor for already-known tokens."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import structlog

from src.domains.socials.core.social_diff import diff_social_links
from src.models.config import Pipeline
from src.models.event import SocialLinksChanged
from src.services.token_listing_client import ListingView

if TYPE_CHECKING:
    from src.models.event import Event
    from src.models.token import Token
    from src.repositories.token_repository import TokenRepository
    from src.services.notification_dispatcher import NotificationDispatcher
    from src.services.protocols import TokenFetcherProtocol

logger = structlog.get_logger(__name__)


class SocialChangeMonitor:
    """Reports added or changed social links on tokens in the snapshot.

    Tokens not yet in the snapshot are added to it silently and watched from
    then on. Removed links are written to the snapshot without a notification.
    """

    name = Pipeline.SOCIALS.value

    def __init__(
        self,
        fetcher: TokenFetcherProtocol,
        dispatcher: NotificationDispatcher,
        token_repo: TokenRepository,
        namespace: str = Pipeline.SOCIALS.value,
        max_pages: int = 10,
        view: ListingView = ListingView.NEWEST,
    ) -> None:
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.token_repo = token_repo
        self.namespace = namespace
        self.max_pages = max_pages
        self.view = view
        self.snapshot: dict[str, Token] = self._load_snapshot()
        self._dirty: dict[str, Token] = {}

    def _load_snapshot(self) -> dict[str, Token]:
        try:
            snapshot = self.token_repo.get_snapshot(self.namespace)
        except sqlite3.Error as exc:
            logger.error("snapshot_load_failed", namespace=self.namespace, error=str(exc))
            return {}
        logger.info("snapshot_loaded", namespace=self.namespace, tokens=len(snapshot))
        return snapshot

    def check_token(self, fetched: Token) -> SocialLinksChanged | None:
        """Diff one fetched token against the snapshot, updating it in place."""
        stored = self.snapshot.get(fetched.address)
        if stored is None:
            self.snapshot[fetched.address] = fetched
            self._dirty[fetched.address] = fetched
            logger.debug("token_added_to_snapshot", token=fetched.name, address=fetched.address)
            return None

        diff = diff_social_links(stored, fetched)
        if not diff.dirty:
            return None

        self.snapshot[fetched.address] = diff.updated
        self._dirty[fetched.address] = diff.updated

        if not diff.changes:
            logger.info("social_links_removed", token=fetched.name, address=fetched.address)
            return None

        logger.info(
            "social_links_changed",
            token=fetched.name,
            address=fetched.address,
            fields=[change.field.value for change in diff.changes],
        )
        return SocialLinksChanged(token=fetched, changes=diff.changes)

    def run_cycle(self) -> list[Event]:
        """Scan up to ``max_pages`` listing pages and report link changes."""
        events: list[Event] = []

        for page in range(self.max_pages):
            result = self.fetcher.fetch(page, self.view)
            for token in result.tokens:
                event = self.check_token(token)
                if event is not None:
                    events.append(event)
                    self.dispatcher.dispatch(event)
            if result.total_pages and page + 1 >= result.total_pages:
                break

        if self._dirty:
            self.flush()
        else:
            logger.debug("no_social_changes", namespace=self.namespace)
        return events

    def flush(self) -> None:
        """Persist snapshot entries changed since the last successful write."""
        if not self._dirty:
            return
        try:
            self.token_repo.upsert_tokens(self.namespace, list(self._dirty.values()))
        except sqlite3.Error as exc:
            logger.error(
                "state_persist_failed",
                namespace=self.namespace,
                pending=len(self._dirty),
                error=str(exc),
            )
            return
        logger.info("snapshot_saved", namespace=self.namespace, tokens=len(self._dirty))
        self._dirty.clear()

    def shutdown(self) -> None:
        self.flush()
        self.dispatcher.shutdown()
