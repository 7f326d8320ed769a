"""Notification events emitted by the watcher pipelines."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from src.models.token import SocialField, Token


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class EventType(StrEnum):
    """Kinds of notification events."""

    SOCIAL_LINKS_CHANGED = "social_links_changed"
    THRESHOLD_CROSSED = "threshold_crossed"
    SIMILARITY_FLAG = "similarity_flag"
    TOKEN_APPEARED = "token_appeared"


class LinkChangeKind(StrEnum):
    """How a social link differs from the stored snapshot."""

    ADDED = "added"
    CHANGED = "changed"


class SocialLinkChange(BaseModel):
    """A single notify-worthy social link difference."""

    field: SocialField
    kind: LinkChangeKind
    old: str | None = None
    new: str

    def describe(self) -> str:
        label = self.field.value.capitalize()
        if self.kind == LinkChangeKind.CHANGED:
            return f"{label} changed: {self.old} -> {self.new}"
        return f"{label} added: {self.new}"


class SocialLinksChanged(BaseModel):
    """All social link changes detected for one token in one cycle."""

    event_type: Literal[EventType.SOCIAL_LINKS_CHANGED] = EventType.SOCIAL_LINKS_CHANGED
    token: Token
    changes: list[SocialLinkChange]
    detected_at: datetime = Field(default_factory=_utc_now)


class ThresholdCrossed(BaseModel):
    """A token's market cap reached a configured threshold."""

    event_type: Literal[EventType.THRESHOLD_CROSSED] = EventType.THRESHOLD_CROSSED
    token: Token
    threshold: int
    detected_at: datetime = Field(default_factory=_utc_now)


class SimilarityFlag(BaseModel):
    """A newly listed token resembles a previously seen one."""

    event_type: Literal[EventType.SIMILARITY_FLAG] = EventType.SIMILARITY_FLAG
    token: Token
    match: Token
    matched_on: str
    detected_at: datetime = Field(default_factory=_utc_now)


class TokenAppeared(BaseModel):
    """A token showed up on the watched page for the first time."""

    event_type: Literal[EventType.TOKEN_APPEARED] = EventType.TOKEN_APPEARED
    token: Token
    suspicious: bool = False
    detected_at: datetime = Field(default_factory=_utc_now)


Event = SocialLinksChanged | ThresholdCrossed | SimilarityFlag | TokenAppeared
