"""One-shot crawl of every listing page into token snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import requests
import structlog

from src.domains.history.core.merge import changed_tokens, merge_tokens
from src.services.token_listing_client import ListingView
from src.utils.progress import ProgressTracker
from src.utils.retry import retry_with_logging

if TYPE_CHECKING:
    from src.models.token import Token, TokenPage
    from src.repositories.token_repository import TokenRepository
    from src.services.token_listing_client import TokenListingClient

logger = structlog.get_logger(__name__)


class HistoryBackfill:
    """Crawls the full listing and merges it into one or more namespaces.

    Unlike the watchers, page fetches here are retried: a single transient
    failure would otherwise truncate the crawl.
    """

    def __init__(
        self,
        client: TokenListingClient,
        token_repo: TokenRepository,
        namespaces: list[str],
        max_attempts: int = 3,
        view: ListingView = ListingView.HISTORY,
        retry_wait: tuple[float, float] = (2, 10),
    ) -> None:
        self.client = client
        self.token_repo = token_repo
        self.namespaces = namespaces
        self.view = view
        self._fetch_page = retry_with_logging(
            max_attempts=max_attempts,
            min_wait=retry_wait[0],
            max_wait=retry_wait[1],
        )(self.client.fetch_page_strict)

    def crawl(self) -> tuple[list[Token], ProgressTracker]:
        """Fetch page 0 for the page count, then every remaining page.

        Stops at the first empty or failed page.
        """
        try:
            first: TokenPage = self._fetch_page(0, self.view)
        except (requests.RequestException, ValueError) as exc:
            logger.error("history_crawl_failed", page=0, error=str(exc))
            tracker = ProgressTracker(total_pages=0)
            tracker.record_failure(f"Page 0: {exc}")
            return [], tracker

        tracker = ProgressTracker(total_pages=first.total_pages)
        tracker.record_page(len(first.tokens))
        logger.info("history_crawl_started", total_pages=first.total_pages)

        fetched = list(first.tokens)
        for page in range(1, first.total_pages):
            try:
                result: TokenPage = self._fetch_page(page, self.view)
            except (requests.RequestException, ValueError) as exc:
                logger.error("history_crawl_failed", page=page, error=str(exc))
                tracker.record_failure(f"Page {page}: {exc}")
                break
            if result.is_empty:
                logger.info("history_crawl_reached_empty_page", page=page)
                break
            fetched.extend(result.tokens)
            tracker.record_page(len(result.tokens))
            tracker.log_progress(every_n=10)

        return fetched, tracker

    def run(self) -> dict[str, Any]:
        """Crawl and merge. Returns summary stats."""
        fetched, tracker = self.crawl()
        summary: dict[str, Any] = tracker.summary()

        for namespace in self.namespaces:
            existing = self.token_repo.get_tokens(namespace)
            merged = merge_tokens(existing, fetched)
            written = self.token_repo.upsert_tokens(namespace, changed_tokens(existing, merged))
            logger.info(
                "history_merged",
                namespace=namespace,
                existing=len(existing),
                total=len(merged),
                written=written,
            )
            summary[f"{namespace}_total"] = len(merged)
            summary[f"{namespace}_written"] = written

        return summary
