"""New launch monitor with copycat detection."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import structlog

from src.domains.launches.core.similarity import TokenHistory
from src.models.config import Pipeline
from src.models.event import SimilarityFlag
from src.services.token_listing_client import ListingView

if TYPE_CHECKING:
    from src.models.event import Event
    from src.models.token import Token
    from src.repositories.seen_token_repository import SeenTokenRepository
    from src.repositories.token_repository import TokenRepository
    from src.services.notification_dispatcher import NotificationDispatcher
    from src.services.protocols import TokenFetcherProtocol

logger = structlog.get_logger(__name__)


class LaunchMonitor:
    """Flags newly listed tokens that share a name or social link with an older one.

    Every new token joins the history whether or not it matched. A token is
    flagged at most once; the flagged set is stored under
    ``<namespace>:flagged``.
    """

    name = Pipeline.LAUNCHES.value

    def __init__(
        self,
        fetcher: TokenFetcherProtocol,
        dispatcher: NotificationDispatcher,
        token_repo: TokenRepository,
        seen_repo: SeenTokenRepository,
        namespace: str = Pipeline.LAUNCHES.value,
        view: ListingView = ListingView.NEWEST,
    ) -> None:
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.token_repo = token_repo
        self.seen_repo = seen_repo
        self.namespace = namespace
        self.flagged_namespace = f"{namespace}:flagged"
        self.view = view
        self.history, self.flagged = self._load_state()
        self._unsaved_history: list[Token] = []
        self._unsaved_flags: list[Token] = []

    def _load_state(self) -> tuple[TokenHistory, set[str]]:
        try:
            tokens = self.token_repo.get_tokens(self.namespace)
            flagged = self.seen_repo.get_addresses(self.flagged_namespace)
        except sqlite3.Error as exc:
            logger.error("launch_state_load_failed", namespace=self.namespace, error=str(exc))
            return TokenHistory(), set()
        logger.info(
            "launch_state_loaded",
            namespace=self.namespace,
            history=len(tokens),
            flagged=len(flagged),
        )
        return TokenHistory(tokens), flagged

    def check_token(self, token: Token) -> SimilarityFlag | None:
        """Process one listed token. Returns a flag for a first-time lookalike."""
        if token.address in self.history:
            return None

        logger.info("new_token_found", token=token.name, address=token.address)
        match = self.history.find_match(token)
        self.history.append(token)
        self._unsaved_history.append(token)

        if match is None or token.address in self.flagged:
            return None

        self.flagged.add(token.address)
        self._unsaved_flags.append(token)
        self._persist_flags()
        logger.info(
            "red_flag_detected",
            token=token.name,
            address=token.address,
            match=match.token.name,
            match_address=match.token.address,
            matched_on=match.matched_on,
        )
        return SimilarityFlag(token=token, match=match.token, matched_on=match.matched_on)

    def run_cycle(self) -> list[Event]:
        """Check the newest listing page for unseen tokens."""
        events: list[Event] = []
        result = self.fetcher.fetch(0, self.view)
        logger.debug("launch_page_fetched", tokens=len(result.tokens))

        for token in result.tokens:
            event = self.check_token(token)
            if event is not None:
                events.append(event)
                self.dispatcher.dispatch(event)

        if self._unsaved_history or self._unsaved_flags:
            self.flush()
        return events

    def _persist_flags(self) -> None:
        if not self._unsaved_flags:
            return
        try:
            self.seen_repo.add_many(self.flagged_namespace, self._unsaved_flags)
        except sqlite3.Error as exc:
            logger.error("state_persist_failed", namespace=self.flagged_namespace, error=str(exc))
            return
        self._unsaved_flags.clear()

    def flush(self) -> None:
        """Persist history entries and flags not yet written."""
        self._persist_flags()
        if not self._unsaved_history:
            return
        try:
            self.token_repo.upsert_tokens(self.namespace, self._unsaved_history)
        except sqlite3.Error as exc:
            logger.error("state_persist_failed", namespace=self.namespace, error=str(exc))
            return
        logger.info("history_saved", namespace=self.namespace, added=len(self._unsaved_history))
        self._unsaved_history.clear()

    def shutdown(self) -> None:
        self.flush()
        self.dispatcher.shutdown()
