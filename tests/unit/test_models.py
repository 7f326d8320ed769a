"""Unit tests for pydantic models: Token, TokenPage, events and Config."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

import pytest
from pydantic import ValidationError

from src.models.config import Config, Pipeline
from src.models.event import (
    EventType,
    LinkChangeKind,
    SimilarityFlag,
    SocialLinkChange,
    SocialLinksChanged,
    ThresholdCrossed,
    TokenAppeared,
)
from src.models.token import SocialField, Token, TokenPage

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


class TestToken:
    """Tests for the Token model."""

    def test_from_api(self, sample_api_item: dict[str, Any]) -> None:
        token = Token.from_api(sample_api_item)
        assert token.address == sample_api_item["address"]
        assert token.market_cap == 45210.5
        assert token.create_date == "2024-06-01T12:00:00.000Z"
        assert token.website is None

    def test_from_api_missing_optionals(self) -> None:
        token = Token.from_api({"address": "0x1"})
        assert token.name == ""
        assert token.twitter is None
        assert token.market_cap == 0
        assert token.creator is None

    def test_from_api_without_address_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Token.from_api({"name": "No address"})

    def test_whitespace_address_rejected(self, token_factory: Callable[..., Token]) -> None:
        with pytest.raises(ValidationError):
            token_factory("   ")

    def test_non_finite_market_cap_rejected(self, token_factory: Callable[..., Token]) -> None:
        with pytest.raises(ValidationError):
            token_factory(market_cap=math.inf)

    def test_from_record_camel_case(self, sample_api_item: dict[str, Any]) -> None:
        record = {key: value for key, value in sample_api_item.items() if key != "symbol"}
        token = Token.from_record(record)
        assert token.market_cap == 45210.5
        assert token.create_date == "2024-06-01T12:00:00.000Z"

    def test_from_record_missing_field_rejected(self, token_factory: Callable[..., Token]) -> None:
        record = token_factory().to_record()
        del record["creator"]
        with pytest.raises(ValidationError):
            Token.from_record(record)

    def test_record_round_trip(self, token_factory: Callable[..., Token]) -> None:
        token = token_factory(twitter="x.com/a", website="a.io")
        assert Token.from_record(token.to_record()) == token

    def test_social_link(self, token_factory: Callable[..., Token]) -> None:
        token = token_factory(telegram="t.me/group")
        assert token.social_link(SocialField.TELEGRAM) == "t.me/group"
        assert token.social_link(SocialField.WEBSITE) is None


class TestTokenPage:
    """Tests for TokenPage."""

    def test_empty(self) -> None:
        page = TokenPage.empty()
        assert page.is_empty is True
        assert page.total_pages == 0

    def test_non_empty(self, token_factory: Callable[..., Token]) -> None:
        page = TokenPage(tokens=[token_factory()], total_pages=3)
        assert page.is_empty is False


class TestEvents:
    """Tests for event models."""

    def test_link_change_describe_changed(self) -> None:
        change = SocialLinkChange(
            field=SocialField.WEBSITE, kind=LinkChangeKind.CHANGED, old="a.com", new="b.com"
        )
        assert change.describe() == "Website changed: a.com -> b.com"

    def test_link_change_describe_added(self) -> None:
        change = SocialLinkChange(
            field=SocialField.TWITTER, kind=LinkChangeKind.ADDED, new="x.com/a"
        )
        assert change.describe() == "Twitter added: x.com/a"

    def test_event_types(self, token_factory: Callable[..., Token]) -> None:
        token = token_factory()
        assert SocialLinksChanged(token=token, changes=[]).event_type == (
            EventType.SOCIAL_LINKS_CHANGED
        )
        assert ThresholdCrossed(token=token, threshold=30_000).event_type == (
            EventType.THRESHOLD_CROSSED
        )
        assert SimilarityFlag(token=token, match=token, matched_on="name").event_type == (
            EventType.SIMILARITY_FLAG
        )
        assert TokenAppeared(token=token).event_type == EventType.TOKEN_APPEARED

    def test_appeared_not_suspicious_by_default(self, token_factory: Callable[..., Token]) -> None:
        assert TokenAppeared(token=token_factory()).suspicious is False

    def test_detected_at_is_utc(self, token_factory: Callable[..., Token]) -> None:
        event = ThresholdCrossed(token=token_factory(), threshold=30_000)
        assert event.detected_at.utcoffset() is not None


class TestConfig:
    """Tests for Config."""

    @staticmethod
    def _config(tmp_path: Path, **overrides: Any) -> Config:
        values: dict[str, Any] = {
            "token_api_url": "https://api.example.com/tokens",
            "database_path": str(tmp_path / "data" / "tokens.db"),
        }
        values.update(overrides)
        return Config(_env_file=None, **values)  # type: ignore[call-arg]

    def test_defaults(self, tmp_path: Path) -> None:
        config = self._config(tmp_path)
        assert config.market_cap_thresholds == [60_000, 50_000, 30_000]
        assert config.persist_threshold_ledger is False
        assert config.interval_for(Pipeline.SOCIALS) == (10.0, 20.0)
        assert config.interval_for(Pipeline.MARKET_CAP) == (15.0, 45.0)
        assert config.interval_for(Pipeline.LAUNCHES) == (20.0, 30.0)
        assert config.interval_for(Pipeline.FREED) == (10.0, 20.0)

    def test_database_parent_created(self, tmp_path: Path) -> None:
        self._config(tmp_path)
        assert (tmp_path / "data").is_dir()

    def test_api_url_must_be_http(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            self._config(tmp_path, token_api_url="ftp://api.example.com")

    def test_thresholds_sorted_unique_descending(self, tmp_path: Path) -> None:
        config = self._config(tmp_path, market_cap_thresholds=[30_000, 60_000, 30_000])
        assert config.market_cap_thresholds == [60_000, 30_000]

    def test_non_positive_threshold_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            self._config(tmp_path, market_cap_thresholds=[0, 30_000])

    def test_log_level_uppercased(self, tmp_path: Path) -> None:
        assert self._config(tmp_path, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            self._config(tmp_path, log_level="LOUD")

    def test_retry_attempts_bounds(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            self._config(tmp_path, max_retry_attempts=0)
        with pytest.raises(ValidationError):
            self._config(tmp_path, max_retry_attempts=11)

    def test_min_interval_above_max_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            self._config(tmp_path, freed_min_interval=30.0, freed_max_interval=20.0)

    def test_webhook_fallback(self, tmp_path: Path) -> None:
        config = self._config(
            tmp_path,
            discord_webhook_url="https://discord.test/default",
            freed_webhook_url="https://discord.test/freed",
        )
        assert config.webhook_for(Pipeline.FREED) == "https://discord.test/freed"
        assert config.webhook_for(Pipeline.SOCIALS) == "https://discord.test/default"

    def test_missing_webhook_raises(self, tmp_path: Path) -> None:
        config = self._config(tmp_path, discord_webhook_url=None, launches_webhook_url=None)
        with pytest.raises(ValueError, match="launches"):
            config.webhook_for(Pipeline.LAUNCHES)
