"""Progress tracking for multi-page listing crawls."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class ProgressTracker:
    """Track pages and tokens collected during a crawl."""

    total_pages: int
    pages_fetched: int = 0
    pages_failed: int = 0
    tokens_seen: int = 0
    errors: list[str] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)

    def record_page(self, token_count: int) -> None:
        """Record a successfully fetched page."""
        self.pages_fetched += 1
        self.tokens_seen += token_count

    def record_failure(self, error: str) -> None:
        """Record a page that could not be fetched."""
        self.pages_failed += 1
        self.errors.append(error)

    @property
    def processed(self) -> int:
        return self.pages_fetched + self.pages_failed

    @property
    def elapsed_seconds(self) -> float:
        """Time elapsed since start."""
        return time.monotonic() - self.start_time

    @property
    def progress_percentage(self) -> float:
        """Percentage of known pages processed."""
        if self.total_pages == 0:
            return 100.0
        return min(self.processed / self.total_pages, 1.0) * 100.0

    def log_progress(self, every_n: int = 10) -> None:
        """Log progress every N pages."""
        if self.processed % every_n == 0 or self.processed == self.total_pages:
            logger.info(
                "crawl_progress",
                pages=self.processed,
                total_pages=self.total_pages,
                tokens=self.tokens_seen,
                failed=self.pages_failed,
                percentage=f"{self.progress_percentage:.1f}%",
                elapsed=f"{self.elapsed_seconds:.1f}s",
            )

    def summary(self) -> dict[str, int | float | list[str]]:
        """Return summary statistics."""
        return {
            "total_pages": self.total_pages,
            "pages_fetched": self.pages_fetched,
            "pages_failed": self.pages_failed,
            "tokens_seen": self.tokens_seen,
            "duration_seconds": round(self.elapsed_seconds, 2),
            "errors": self.errors,
        }
