"""Market cap milestone monitor."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import structlog

from src.domains.market_cap.core.thresholds import (
    DEFAULT_THRESHOLDS,
    ThresholdLedger,
    evaluate_threshold,
)
from src.models.config import Pipeline
from src.models.event import ThresholdCrossed
from src.services.token_listing_client import ListingView

if TYPE_CHECKING:
    from src.domains.market_cap.repositories.threshold_ledger_repository import (
        ThresholdLedgerRepository,
    )
    from src.models.event import Event
    from src.services.notification_dispatcher import NotificationDispatcher
    from src.services.protocols import TokenFetcherProtocol

logger = structlog.get_logger(__name__)


class MarketCapMonitor:
    """Reports the highest market cap threshold each token newly reaches.

    The ledger lives in memory. When a repository is given it is loaded at
    start and saved after every cycle, otherwise thresholds reset on restart.
    """

    name = Pipeline.MARKET_CAP.value

    def __init__(
        self,
        fetcher: TokenFetcherProtocol,
        dispatcher: NotificationDispatcher,
        thresholds: list[int] | tuple[int, ...] = DEFAULT_THRESHOLDS,
        ledger_repo: ThresholdLedgerRepository | None = None,
        view: ListingView = ListingView.MARKET_CAP,
    ) -> None:
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.thresholds = tuple(sorted(thresholds, reverse=True))
        self.ledger_repo = ledger_repo
        self.view = view
        self.ledger = self._load_ledger()

    def _load_ledger(self) -> ThresholdLedger:
        if self.ledger_repo is None:
            return ThresholdLedger()
        try:
            return self.ledger_repo.load_ledger()
        except sqlite3.Error as exc:
            logger.error("threshold_ledger_load_failed", error=str(exc))
            return ThresholdLedger()

    def run_cycle(self) -> list[Event]:
        """Check the top market cap page against the thresholds."""
        events: list[Event] = []
        result = self.fetcher.fetch(0, self.view)

        for token in result.tokens:
            crossed = evaluate_threshold(
                self.ledger,
                token.address,
                token.market_cap,
                self.thresholds,
            )
            if crossed is None:
                continue
            logger.info(
                "threshold_crossed",
                token=token.name,
                address=token.address,
                threshold=crossed,
                market_cap=token.market_cap,
            )
            event = ThresholdCrossed(token=token, threshold=crossed)
            events.append(event)
            self.dispatcher.dispatch(event)

        if result.tokens:
            self.flush()
        return events

    def flush(self) -> None:
        """Persist the ledger when persistence is enabled."""
        if self.ledger_repo is None:
            return
        try:
            self.ledger_repo.save_ledger(self.ledger)
        except sqlite3.Error as exc:
            logger.error("state_persist_failed", namespace=self.name, error=str(exc))

    def shutdown(self) -> None:
        self.flush()
        self.dispatcher.shutdown()
