"""Seen-address repository backing the persisted dedup sets."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from src.models.token import Token
    from src.services.database import Database

logger = structlog.get_logger(__name__)


class SeenTokenRepository:
    """Repository for addresses a pipeline has already observed or reported."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get_addresses(self, namespace: str) -> set[str]:
        """Get every address recorded in a namespace."""
        rows = self.db.fetchall(
            "SELECT address FROM seen_tokens WHERE namespace = ?",
            (namespace,),
        )
        return {row["address"] for row in rows}

    def add(self, namespace: str, token: Token) -> None:
        """Record one address. Already recorded addresses are left untouched."""
        self.add_many(namespace, [token])

    def add_many(self, namespace: str, tokens: list[Token]) -> int:
        """Record several addresses in one transaction. Returns rows inserted."""
        if not tokens:
            return 0
        now = datetime.now(UTC).isoformat()
        with self.db.transaction() as cursor:
            inserted = 0
            for token in tokens:
                cursor.execute(
                    """INSERT OR IGNORE INTO seen_tokens (namespace, address, name, seen_at)
                       VALUES (?, ?, ?, ?)""",
                    (namespace, token.address, token.name, now),
                )
                inserted += cursor.rowcount
        logger.debug("seen_tokens_recorded", namespace=namespace, inserted=inserted)
        return inserted

    def is_seen(self, namespace: str, address: str) -> bool:
        """Check if an address is recorded in a namespace."""
        row = self.db.fetchone(
            "SELECT 1 FROM seen_tokens WHERE namespace = ? AND address = ?",
            (namespace, address),
        )
        return row is not None

    def count(self, namespace: str) -> int:
        """Count addresses recorded in a namespace."""
        row = self.db.fetchone(
            "SELECT COUNT(*) AS total FROM seen_tokens WHERE namespace = ?",
            (namespace,),
        )
        return row["total"] if row else 0
