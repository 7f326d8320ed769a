"""Optional persistence for the market cap threshold ledger."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from src.domains.market_cap.core.thresholds import ThresholdLedger

if TYPE_CHECKING:
    from src.services.database import Database

logger = structlog.get_logger(__name__)


class ThresholdLedgerRepository:
    """Repository for notified thresholds and last observed market caps."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def load_ledger(self) -> ThresholdLedger:
        """Rebuild a ledger from stored rows. Empty tables yield an empty ledger."""
        ledger = ThresholdLedger()
        for row in self.db.fetchall("SELECT address, threshold FROM threshold_notifications"):
            ledger.record(row["address"], row["threshold"])
        for row in self.db.fetchall("SELECT address, last_value FROM threshold_values"):
            ledger.last_values[row["address"]] = row["last_value"]
        logger.info(
            "threshold_ledger_loaded",
            tokens=len(ledger.last_values),
            notifications=sum(len(values) for values in ledger.notified.values()),
        )
        return ledger

    def save_ledger(self, ledger: ThresholdLedger) -> None:
        """Persist the full ledger in one transaction."""
        now = datetime.now(UTC).isoformat()
        with self.db.transaction() as cursor:
            for address, thresholds in ledger.notified.items():
                for threshold in thresholds:
                    cursor.execute(
                        """INSERT OR IGNORE INTO threshold_notifications
                           (address, threshold, notified_at) VALUES (?, ?, ?)""",
                        (address, threshold, now),
                    )
            for address, value in ledger.last_values.items():
                cursor.execute(
                    """INSERT INTO threshold_values (address, last_value, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT(address) DO UPDATE SET
                           last_value = excluded.last_value,
                           updated_at = excluded.updated_at""",
                    (address, value, now),
                )
