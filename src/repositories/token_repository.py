"""Token snapshot repository for database CRUD operations."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from src.models.token import Token

if TYPE_CHECKING:
    import sqlite3

    from src.services.database import Database

logger = structlog.get_logger(__name__)

_TOKEN_COLUMNS = (
    "name",
    "address",
    "twitter",
    "telegram",
    "website",
    "create_date",
    "market_cap",
    "creator",
)


def _row_to_token(row: sqlite3.Row) -> Token:
    return Token.from_record({column: row[column] for column in _TOKEN_COLUMNS})


class TokenRepository:
    """Repository for per-namespace token snapshots.

    Each pipeline reads and writes its own namespace. Upserts are
    last-write-wins on (namespace, address); a token keeps the position it
    was first inserted at.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    def upsert_tokens(self, namespace: str, tokens: list[Token]) -> int:
        """Insert or update tokens in a namespace. Returns number of rows written."""
        if not tokens:
            return 0

        now = datetime.now(UTC).isoformat()
        with self.db.transaction() as cursor:
            row = cursor.execute(
                "SELECT COALESCE(MAX(position), -1) AS last FROM tokens WHERE namespace = ?",
                (namespace,),
            ).fetchone()
            next_position = row["last"] + 1
            for token in tokens:
                cursor.execute(
                    """INSERT INTO tokens
                       (namespace, address, name, twitter, telegram, website,
                        create_date, market_cap, creator, position, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(namespace, address) DO UPDATE SET
                           name = excluded.name,
                           twitter = excluded.twitter,
                           telegram = excluded.telegram,
                           website = excluded.website,
                           create_date = excluded.create_date,
                           market_cap = excluded.market_cap,
                           creator = excluded.creator,
                           updated_at = excluded.updated_at""",
                    (
                        namespace,
                        token.address,
                        token.name,
                        token.twitter,
                        token.telegram,
                        token.website,
                        token.create_date,
                        token.market_cap,
                        token.creator,
                        next_position,
                        now,
                    ),
                )
                next_position += 1

        logger.debug("tokens_upserted", namespace=namespace, count=len(tokens))
        return len(tokens)

    def get_tokens(self, namespace: str) -> list[Token]:
        """Get all tokens in a namespace in first-insertion order."""
        rows = self.db.fetchall(
            "SELECT * FROM tokens WHERE namespace = ? ORDER BY position",
            (namespace,),
        )
        return [_row_to_token(row) for row in rows]

    def get_snapshot(self, namespace: str) -> dict[str, Token]:
        """Get the namespace as an address -> token mapping."""
        return {token.address: token for token in self.get_tokens(namespace)}

    def get_token(self, namespace: str, address: str) -> Token | None:
        """Get a single token by address."""
        row = self.db.fetchone(
            "SELECT * FROM tokens WHERE namespace = ? AND address = ?",
            (namespace, address),
        )
        return _row_to_token(row) if row else None

    def find_token(self, address: str) -> list[tuple[str, Token]]:
        """Find an address in every namespace. Returns (namespace, token) pairs."""
        rows = self.db.fetchall(
            "SELECT * FROM tokens WHERE address = ? ORDER BY namespace",
            (address,),
        )
        return [(row["namespace"], _row_to_token(row)) for row in rows]

    def count_tokens(self, namespace: str) -> int:
        """Count tokens stored in a namespace."""
        row = self.db.fetchone(
            "SELECT COUNT(*) AS total FROM tokens WHERE namespace = ?",
            (namespace,),
        )
        return row["total"] if row else 0
