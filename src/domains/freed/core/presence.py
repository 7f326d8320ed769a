"""Appearance tracking for the top page of a listing view."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta


def parse_create_date(value: str | None) -> datetime | None:
    """Parse the API's ISO-8601 creation timestamp. Naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def is_recently_created(
    create_date: str | None,
    now: datetime,
    window: timedelta,
) -> bool:
    """True when the token was created within ``window`` before ``now``."""
    created = parse_create_date(create_date)
    if created is None:
        return False
    return now - window <= created <= now + window


@dataclass
class PresenceTracker:
    """Seen set plus the first-cycle initialization flag.

    The first non-empty observation only seeds ``seen``; addresses observed
    after that are reported as appearances exactly once.
    """

    seen: set[str] = field(default_factory=set)
    initialized: bool = False

    def initialize(self, addresses: list[str]) -> list[str]:
        """Seed the seen set. Returns the addresses that were not yet known."""
        added = [address for address in addresses if address not in self.seen]
        self.seen.update(added)
        self.initialized = True
        return added

    def observe(self, address: str) -> bool:
        """Mark an address seen. Returns True if this is its first appearance."""
        if address in self.seen:
            return False
        self.seen.add(address)
        return True
