"""Pydantic data models for the token listing watcher."""

from src.models.config import Config, Pipeline
from src.models.event import (
    Event,
    EventType,
    LinkChangeKind,
    SimilarityFlag,
    SocialLinkChange,
    SocialLinksChanged,
    ThresholdCrossed,
    TokenAppeared,
)
from src.models.token import SocialField, Token, TokenPage

__all__ = [
    "Config",
    "Event",
    "EventType",
    "LinkChangeKind",
    "Pipeline",
    "SimilarityFlag",
    "SocialField",
    "SocialLinkChange",
    "SocialLinksChanged",
    "ThresholdCrossed",
    "Token",
    "TokenAppeared",
    "TokenPage",
]
