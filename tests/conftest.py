"""Shared test fixtures for the token listing watcher."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import pytest

from src.models.token import Token, TokenPage
from src.services.database import Database

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def make_token(address: str = "0xabc", **overrides: Any) -> Token:
    """Build a Token with every field filled, overriding selected attributes."""
    data: dict[str, Any] = {
        "name": f"Token {address}",
        "address": address,
        "twitter": None,
        "telegram": None,
        "website": None,
        "create_date": "2024-06-01T12:00:00.000Z",
        "market_cap": 1_000.0,
        "creator": "0xcreator",
    }
    data.update(overrides)
    return Token(**data)


class ScriptedFetcher:
    """Fetcher double that replays a script of pages, one list per fetch call.

    Pages beyond the script come back empty, like a failed fetch.
    """

    def __init__(self, pages: list[list[Token]], total_pages: int = 1) -> None:
        self.pages = list(pages)
        self.total_pages = total_pages
        self.calls: list[tuple[int, Any]] = []

    def fetch(self, page: int, view: Any = None) -> TokenPage:
        self.calls.append((page, view))
        if not self.pages:
            return TokenPage.empty()
        return TokenPage(tokens=self.pages.pop(0), total_pages=self.total_pages)


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> str:
    """Provide a temporary database file path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def db(tmp_db_path: str) -> Database:
    """Provide an initialized temporary database."""
    database = Database(db_path=tmp_db_path)
    database.init_db()
    return database


@pytest.fixture
def token_factory() -> Callable[..., Token]:
    """Provide the make_token helper as a fixture."""
    return make_token


@pytest.fixture
def notifier() -> MagicMock:
    """Notifier double that reports every delivery as successful."""
    mock = MagicMock()
    mock.notify.return_value = True
    return mock


@pytest.fixture
def sample_api_item() -> dict[str, Any]:
    """A listing item as returned by the API."""
    return {
        "name": "Pepe Base",
        "symbol": "PEPEB",
        "twitter": "https://x.com/pepebase",
        "telegram": "https://t.me/pepebase",
        "website": None,
        "createDate": "2024-06-01T12:00:00.000Z",
        "address": "0x1111111111111111111111111111111111111111",
        "marketCap": 45210.5,
        "creator": "0x2222222222222222222222222222222222222222",
    }


@pytest.fixture
def scripted_fetcher() -> type[ScriptedFetcher]:
    """Provide the ScriptedFetcher class for building per-test scripts."""
    return ScriptedFetcher
