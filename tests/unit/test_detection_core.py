"""Unit tests for the pure detection logic of every pipeline.

Covers: social link diffing, threshold crossing, similarity history,
presence tracking and history merging. No mocking or I/O.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from src.domains.freed.core.presence import (
    PresenceTracker,
    is_recently_created,
    parse_create_date,
)
from src.domains.history.core.merge import changed_tokens, merge_tokens
from src.domains.launches.core.similarity import NAME_MATCH, TokenHistory
from src.domains.market_cap.core.thresholds import ThresholdLedger, evaluate_threshold
from src.domains.socials.core.social_diff import classify_link_change, diff_social_links
from src.models.event import LinkChangeKind
from src.models.token import SocialField

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.models.token import Token

THRESHOLDS = [30_000, 50_000, 60_000]

# ---------------------------------------------------------------------------
# 1. socials/core/social_diff.py
# ---------------------------------------------------------------------------


class TestClassifyLinkChange:
    """Tests for classify_link_change."""

    def test_unchanged(self) -> None:
        assert classify_link_change(SocialField.TWITTER, "x.com/a", "x.com/a") == (False, None)

    def test_unchanged_after_normalization(self) -> None:
        differs, change = classify_link_change(
            SocialField.WEBSITE, "https://www.site.io/", "site.io"
        )
        assert differs is False
        assert change is None

    def test_changed(self) -> None:
        differs, change = classify_link_change(SocialField.WEBSITE, "a.com", "b.com")
        assert differs is True
        assert change is not None
        assert change.kind == LinkChangeKind.CHANGED
        assert change.old == "a.com"
        assert change.new == "b.com"

    def test_added(self) -> None:
        differs, change = classify_link_change(SocialField.TELEGRAM, None, "t.me/pepe")
        assert differs is True
        assert change is not None
        assert change.kind == LinkChangeKind.ADDED
        assert change.new == "t.me/pepe"

    def test_placeholder_to_real_link_is_added(self) -> None:
        _, change = classify_link_change(SocialField.TWITTER, "https://x.com", "x.com/pepe")
        assert change is not None
        assert change.kind == LinkChangeKind.ADDED

    def test_removed_differs_without_change(self) -> None:
        assert classify_link_change(SocialField.WEBSITE, "a.com", None) == (True, None)

    def test_replaced_by_placeholder_is_silent(self) -> None:
        assert classify_link_change(SocialField.TWITTER, "x.com/pepe", "x.com") == (True, None)


class TestDiffSocialLinks:
    """Tests for diff_social_links."""

    def test_changed_website_emits_one_change(self, token_factory: Callable[..., Token]) -> None:
        old = token_factory(website="a.com")
        new = token_factory(website="b.com")
        diff = diff_social_links(old, new)
        assert diff.dirty is True
        assert len(diff.changes) == 1
        assert diff.changes[0].kind == LinkChangeKind.CHANGED
        assert diff.updated.website == "b.com"

    def test_added_website_emits_one_added(self, token_factory: Callable[..., Token]) -> None:
        diff = diff_social_links(token_factory(website=None), token_factory(website="a.com"))
        assert [change.kind for change in diff.changes] == [LinkChangeKind.ADDED]

    def test_removal_is_silent_but_updates_snapshot(
        self, token_factory: Callable[..., Token]
    ) -> None:
        diff = diff_social_links(token_factory(website="a.com"), token_factory(website=None))
        assert diff.changes == []
        assert diff.dirty is True
        assert diff.updated.website is None

    def test_no_difference(self, token_factory: Callable[..., Token]) -> None:
        stored = token_factory(twitter="https://x.com/pepe")
        diff = diff_social_links(stored, token_factory(twitter="x.com/pepe/"))
        assert diff.dirty is False
        assert diff.changes == []
        assert diff.updated is stored

    def test_multiple_fields_grouped(self, token_factory: Callable[..., Token]) -> None:
        old = token_factory(twitter="x.com/old", telegram=None, website="site.io")
        new = token_factory(twitter="x.com/new", telegram="t.me/group", website=None)
        diff = diff_social_links(old, new)
        assert [(c.field, c.kind) for c in diff.changes] == [
            (SocialField.TWITTER, LinkChangeKind.CHANGED),
            (SocialField.TELEGRAM, LinkChangeKind.ADDED),
        ]
        assert diff.updated.twitter == "x.com/new"
        assert diff.updated.telegram == "t.me/group"
        assert diff.updated.website is None

    def test_raw_value_is_stored(self, token_factory: Callable[..., Token]) -> None:
        diff = diff_social_links(
            token_factory(website=None),
            token_factory(website="HTTPS://WWW.Site.io/"),
        )
        assert diff.updated.website == "HTTPS://WWW.Site.io/"

    def test_other_attributes_kept_from_snapshot(
        self, token_factory: Callable[..., Token]
    ) -> None:
        stored = token_factory(name="Stored", market_cap=10.0, website=None)
        fetched = token_factory(name="Fetched", market_cap=99.0, website="a.com")
        diff = diff_social_links(stored, fetched)
        assert diff.updated.name == "Stored"
        assert diff.updated.market_cap == 10.0


# ---------------------------------------------------------------------------
# 2. market_cap/core/thresholds.py
# ---------------------------------------------------------------------------


def _run_sequence(values: list[float], address: str = "0xabc") -> list[int | None]:
    ledger = ThresholdLedger()
    return [evaluate_threshold(ledger, address, value, THRESHOLDS) for value in values]


class TestEvaluateThreshold:
    """Tests for evaluate_threshold."""

    def test_rising_sequence_reports_highest_milestone_only(self) -> None:
        assert _run_sequence([20_000, 55_000, 65_000]) == [None, 50_000, 60_000]

    def test_rearm_after_regression(self) -> None:
        assert _run_sequence([60_000, 10_000, 60_000]) == [60_000, None, 60_000]

    def test_first_observation_above_all_fires_highest_only(self) -> None:
        ledger = ThresholdLedger()
        assert evaluate_threshold(ledger, "0xabc", 90_000, THRESHOLDS) == 60_000
        assert ledger.notified["0xabc"] == {60_000}

    def test_steady_value_does_not_refire(self) -> None:
        assert _run_sequence([55_000, 55_000, 55_000]) == [50_000, 30_000, None]

    def test_below_every_threshold(self) -> None:
        assert _run_sequence([100, 29_999]) == [None, None]

    def test_exact_threshold_fires(self) -> None:
        assert _run_sequence([30_000]) == [30_000]

    def test_last_value_updated_every_cycle(self) -> None:
        ledger = ThresholdLedger()
        evaluate_threshold(ledger, "0xabc", 70_000, THRESHOLDS)
        evaluate_threshold(ledger, "0xabc", 5_000, THRESHOLDS)
        assert ledger.last_value("0xabc") == 5_000

    def test_unseen_address_defaults_to_zero(self) -> None:
        assert ThresholdLedger().last_value("0xnew") == 0.0

    def test_addresses_are_independent(self) -> None:
        ledger = ThresholdLedger()
        assert evaluate_threshold(ledger, "0xa", 60_000, THRESHOLDS) == 60_000
        assert evaluate_threshold(ledger, "0xb", 60_000, THRESHOLDS) == 60_000

    def test_threshold_order_in_config_does_not_matter(self) -> None:
        ledger = ThresholdLedger()
        assert evaluate_threshold(ledger, "0xa", 55_000, [60_000, 30_000, 50_000]) == 50_000


# ---------------------------------------------------------------------------
# 3. launches/core/similarity.py
# ---------------------------------------------------------------------------


class TestTokenHistory:
    """Tests for TokenHistory."""

    def test_no_match_in_empty_history(self, token_factory: Callable[..., Token]) -> None:
        assert TokenHistory().find_match(token_factory("0x1")) is None

    def test_name_match(self, token_factory: Callable[..., Token]) -> None:
        history = TokenHistory([token_factory("0x1", name="PEPE")])
        match = history.find_match(token_factory("0x2", name="PEPE"))
        assert match is not None
        assert match.token.address == "0x1"
        assert match.matched_on == NAME_MATCH

    def test_name_match_is_exact(self, token_factory: Callable[..., Token]) -> None:
        history = TokenHistory([token_factory("0x1", name="PEPE")])
        assert history.find_match(token_factory("0x2", name="pepe")) is None

    def test_normalized_link_match(self, token_factory: Callable[..., Token]) -> None:
        history = TokenHistory([token_factory("0x1", name="A", telegram="https://t.me/Group/")])
        match = history.find_match(token_factory("0x2", name="B", telegram="t.me/group"))
        assert match is not None
        assert match.matched_on == "telegram"

    def test_links_compare_within_the_same_field(
        self, token_factory: Callable[..., Token]
    ) -> None:
        history = TokenHistory([token_factory("0x1", name="A", website="site.io")])
        assert history.find_match(token_factory("0x2", name="B", twitter="site.io")) is None

    def test_placeholder_links_never_match(self, token_factory: Callable[..., Token]) -> None:
        history = TokenHistory([token_factory("0x1", name="A", twitter="https://x.com")])
        assert history.find_match(token_factory("0x2", name="B", twitter="x.com/")) is None

    def test_first_match_by_history_order(self, token_factory: Callable[..., Token]) -> None:
        history = TokenHistory(
            [
                token_factory("0x1", name="Other", website="site.io"),
                token_factory("0x2", name="Same"),
                token_factory("0x3", name="Same", website="site.io"),
            ]
        )
        match = history.find_match(token_factory("0x4", name="Same", website="site.io"))
        assert match is not None
        assert match.token.address == "0x1"
        assert match.matched_on == "website"
        assert match.position == 0

    def test_excludes_own_address(self, token_factory: Callable[..., Token]) -> None:
        token = token_factory("0x1", name="Solo")
        history = TokenHistory([token])
        assert history.find_match(token) is None

    def test_append_tracks_seen(self, token_factory: Callable[..., Token]) -> None:
        history = TokenHistory()
        history.append(token_factory("0x1"))
        assert "0x1" in history
        assert "0x2" not in history
        assert len(history) == 1
        assert history.addresses == {"0x1"}


# ---------------------------------------------------------------------------
# 4. freed/core/presence.py
# ---------------------------------------------------------------------------


class TestPresenceTracker:
    """Tests for PresenceTracker."""

    def test_initialize_seeds_without_appearances(self) -> None:
        tracker = PresenceTracker()
        assert tracker.initialize(["0x1", "0x2"]) == ["0x1", "0x2"]
        assert tracker.initialized is True
        assert tracker.seen == {"0x1", "0x2"}

    def test_initialize_with_loaded_seen(self) -> None:
        tracker = PresenceTracker(seen={"0x1"})
        assert tracker.initialize(["0x1", "0x2"]) == ["0x2"]

    def test_observe_reports_first_appearance_once(self) -> None:
        tracker = PresenceTracker(seen={"0x1"}, initialized=True)
        assert tracker.observe("0x2") is True
        assert tracker.observe("0x2") is False
        assert tracker.observe("0x1") is False


class TestRecentlyCreated:
    """Tests for parse_create_date and is_recently_created."""

    NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def test_parse_zulu(self) -> None:
        assert parse_create_date("2024-06-01T11:30:00.000Z") == datetime(
            2024, 6, 1, 11, 30, tzinfo=UTC
        )

    def test_parse_naive_is_utc(self) -> None:
        parsed = parse_create_date("2024-06-01T11:30:00")
        assert parsed is not None
        assert parsed.tzinfo == UTC

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unparseable(self, value: str | None) -> None:
        assert parse_create_date(value) is None

    def test_within_window(self) -> None:
        assert is_recently_created("2024-06-01T11:30:00Z", self.NOW, timedelta(hours=1)) is True

    def test_outside_window(self) -> None:
        assert is_recently_created("2024-05-30T11:30:00Z", self.NOW, timedelta(hours=1)) is False

    def test_missing_date_is_not_recent(self) -> None:
        assert is_recently_created(None, self.NOW, timedelta(hours=1)) is False


# ---------------------------------------------------------------------------
# 5. history/core/merge.py
# ---------------------------------------------------------------------------


class TestMergeTokens:
    """Tests for merge_tokens and changed_tokens."""

    def test_existing_entries_win(self, token_factory: Callable[..., Token]) -> None:
        existing = [token_factory("0x1", name="Old", website="old.io")]
        fetched = [token_factory("0x1", name="New", website="new.io")]
        merged = merge_tokens(existing, fetched)
        assert merged == existing

    def test_missing_creator_filled(self, token_factory: Callable[..., Token]) -> None:
        existing = [token_factory("0x1", creator=None)]
        fetched = [token_factory("0x1", creator="0xdev")]
        merged = merge_tokens(existing, fetched)
        assert merged[0].creator == "0xdev"
        assert changed_tokens(existing, merged) == merged

    def test_new_tokens_appended_in_fetched_order(
        self, token_factory: Callable[..., Token]
    ) -> None:
        existing = [token_factory("0x1")]
        fetched = [token_factory("0x3"), token_factory("0x1"), token_factory("0x2")]
        merged = merge_tokens(existing, fetched)
        assert [token.address for token in merged] == ["0x1", "0x3", "0x2"]
        assert [token.address for token in changed_tokens(existing, merged)] == ["0x3", "0x2"]

    def test_duplicate_fetched_address_keeps_first(
        self, token_factory: Callable[..., Token]
    ) -> None:
        fetched = [token_factory("0x1", name="First"), token_factory("0x1", name="Second")]
        assert [token.name for token in merge_tokens([], fetched)] == ["First"]
