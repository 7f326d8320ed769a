"""Service protocols defining interfaces for dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.models.event import Event
    from src.models.token import TokenPage
    from src.services.token_listing_client import ListingView


class TokenFetcherProtocol(Protocol):
    """Fetches one listing page. Returns an empty page instead of raising."""

    def fetch(self, page: int, view: ListingView = ...) -> TokenPage: ...


class NotifierProtocol(Protocol):
    """Delivers one event. Returns whether delivery succeeded."""

    def notify(self, event: Event) -> bool: ...


class MonitorProtocol(Protocol):
    """A watcher pipeline driven by the poll scheduler."""

    name: str

    def run_cycle(self) -> list[Event]: ...

    def shutdown(self) -> None: ...
