"""Merging freshly crawled listings into a stored token history."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.models.token import Token


def merge_tokens(existing: list[Token], fetched: list[Token]) -> list[Token]:
    """Merge fetched tokens into existing ones, keyed by address.

    Existing entries win, except that a missing creator is filled in from
    the fetched record. Unknown addresses are appended in fetched order.
    """
    merged: dict[str, Token] = {token.address: token for token in existing}

    for token in fetched:
        current = merged.get(token.address)
        if current is None:
            merged[token.address] = token
        elif not current.creator and token.creator:
            merged[token.address] = current.model_copy(update={"creator": token.creator})

    return list(merged.values())


def changed_tokens(existing: list[Token], merged: list[Token]) -> list[Token]:
    """Return merged tokens that are new or differ from their existing entry."""
    before = {token.address: token for token in existing}
    return [token for token in merged if before.get(token.address) != token]
