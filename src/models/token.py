"""Token listing model as delivered by the listing API."""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, field_validator


class SocialField(StrEnum):
    """Social link fields carried by every token listing."""

    TWITTER = "twitter"
    TELEGRAM = "telegram"
    WEBSITE = "website"


# camelCase keys used by the listing API and legacy tokens.json archives
_API_KEY_MAP = {
    "marketCap": "market_cap",
    "createDate": "create_date",
}


class Token(BaseModel):
    """A single token listing keyed by its contract address.

    Every attribute is required; the optional ones accept None so that a
    stored null stays distinguishable from a missing key.
    """

    name: str
    address: str
    twitter: str | None
    telegram: str | None
    website: str | None
    create_date: str | None
    market_cap: float
    creator: str | None

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        """Address is the only stable key and must be non-empty."""
        value = value.strip()
        if not value:
            msg = "address must not be empty"
            raise ValueError(msg)
        return value

    @field_validator("market_cap")
    @classmethod
    def validate_market_cap(cls, value: float) -> float:
        """Market cap must be a finite number."""
        if not math.isfinite(value):
            msg = "market_cap must be finite"
            raise ValueError(msg)
        return value

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Token:
        """Build a Token from an API item, tolerating absent optional keys."""
        return cls(
            name=item.get("name") or "",
            address=item.get("address") or "",
            twitter=item.get("twitter"),
            telegram=item.get("telegram"),
            website=item.get("website"),
            create_date=item.get("createDate"),
            market_cap=item.get("marketCap") or 0,
            creator=item.get("creator"),
        )

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Token:
        """Build a Token from a flat stored record.

        Accepts both snake_case and the API's camelCase keys, but every field
        must be present.
        """
        data = {_API_KEY_MAP.get(key, key): value for key, value in record.items()}
        return cls.model_validate(data)

    def social_link(self, field: SocialField) -> str | None:
        """Return the raw value of a social link field."""
        return getattr(self, field.value)  # type: ignore[no-any-return]

    def to_record(self) -> dict[str, Any]:
        """Flat key/value representation used for persistence."""
        return self.model_dump()


class TokenPage(BaseModel):
    """One page of listings plus the total page count reported by the API."""

    tokens: list[Token] = []
    total_pages: int = 0

    @classmethod
    def empty(cls) -> TokenPage:
        """The result of a failed fetch: no tokens, no pages."""
        return cls(tokens=[], total_pages=0)

    @property
    def is_empty(self) -> bool:
        return not self.tokens
