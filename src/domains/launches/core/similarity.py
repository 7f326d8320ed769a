"""Similarity matching of new listings against every token seen before.

``TokenHistory`` is append-only. Lookups go through indexes keyed by exact
name and by (field, normalized link); the earliest position wins, which is
the same answer a front-to-back scan of the history would give.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.url_normalization import normalize_link
from src.models.token import SocialField, Token

NAME_MATCH = "name"


@dataclass(frozen=True)
class SimilarityMatch:
    """A historical token that resembles a new one, and the attribute that matched."""

    token: Token
    matched_on: str
    position: int


class TokenHistory:
    """Append-only list of every token ever observed, with lookup indexes."""

    def __init__(self, tokens: list[Token] | None = None) -> None:
        self._tokens: list[Token] = []
        self._seen: set[str] = set()
        self._by_name: dict[str, list[int]] = {}
        self._by_link: dict[tuple[SocialField, str], list[int]] = {}
        for token in tokens or []:
            self.append(token)

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, address: object) -> bool:
        return address in self._seen

    @property
    def tokens(self) -> list[Token]:
        return list(self._tokens)

    @property
    def addresses(self) -> set[str]:
        return set(self._seen)

    def append(self, token: Token) -> int:
        """Append a token and index it. Returns its position."""
        position = len(self._tokens)
        self._tokens.append(token)
        self._seen.add(token.address)
        self._by_name.setdefault(token.name, []).append(position)
        for link_field in SocialField:
            normalized = normalize_link(token.social_link(link_field))
            if normalized:
                self._by_link.setdefault((link_field, normalized), []).append(position)
        return position

    def _first_other(self, positions: list[int], address: str) -> int | None:
        for position in positions:
            if self._tokens[position].address != address:
                return position
        return None

    def find_match(self, token: Token) -> SimilarityMatch | None:
        """Find the earliest historical token sharing a name or a normalized link."""
        candidates: list[tuple[int, str]] = []

        position = self._first_other(self._by_name.get(token.name, []), token.address)
        if position is not None:
            candidates.append((position, NAME_MATCH))

        for link_field in SocialField:
            normalized = normalize_link(token.social_link(link_field))
            if not normalized:
                continue
            position = self._first_other(
                self._by_link.get((link_field, normalized), []), token.address
            )
            if position is not None:
                candidates.append((position, link_field.value))

        if not candidates:
            return None
        # Ties resolve in check order: name, twitter, telegram, website
        position, matched_on = min(candidates, key=lambda candidate: candidate[0])
        return SimilarityMatch(
            token=self._tokens[position],
            matched_on=matched_on,
            position=position,
        )
