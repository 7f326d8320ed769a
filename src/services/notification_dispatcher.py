"""Background delivery of notifications, decoupled from dedup decisions."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from src.models.event import Event
    from src.services.protocols import NotifierProtocol

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Fire-and-forget delivery on a small thread pool.

    Callers record their dedup decision first and then dispatch; a failed
    delivery is logged and never retried.
    """

    def __init__(
        self,
        notifier: NotifierProtocol,
        max_workers: int = 1,
        name: str = "notify",
    ) -> None:
        self.notifier = notifier
        self.name = name
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"{name}-notify",
        )
        self._pending: set[Future[bool]] = set()
        self._lock = threading.Lock()
        self.delivered = 0
        self.failed = 0

    def _deliver(self, event: Event) -> bool:
        try:
            ok = self.notifier.notify(event)
        except Exception as exc:
            logger.error(
                "notification_dispatch_failed",
                dispatcher=self.name,
                event_type=event.event_type.value,
                address=event.token.address,
                error=str(exc),
            )
            ok = False
        with self._lock:
            if ok:
                self.delivered += 1
            else:
                self.failed += 1
        return ok

    def _forget(self, future: Future[bool]) -> None:
        with self._lock:
            self._pending.discard(future)

    def dispatch(self, event: Event) -> Future[bool]:
        """Queue an event for delivery and return its future."""
        future = self._executor.submit(self._deliver, event)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def drain(self, timeout: float | None = None) -> None:
        """Block until every queued notification has been attempted."""
        with self._lock:
            pending = set(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self, wait_for_pending: bool = True) -> None:
        """Stop accepting events; by default let queued deliveries finish."""
        with self._lock:
            pending = len(self._pending)
        logger.info("notification_dispatcher_stopping", dispatcher=self.name, pending=pending)
        self._executor.shutdown(wait=wait_for_pending, cancel_futures=not wait_for_pending)
