"""SQLite database service."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Generator

logger = structlog.get_logger(__name__)


class Database:
    """SQLite database service with schema management.

    One instance per pipeline. The connection is opened lazily and may be
    handed to the pipeline's worker thread; it is never used concurrently.
    """

    def __init__(self, db_path: str = "data/tokens.db") -> None:
        self.db_path = db_path
        self._ensure_directory()
        self._connection: sqlite3.Connection | None = None

    def _ensure_directory(self) -> None:
        """Ensure the parent directory of the database file exists."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA journal_mode=WAL")
            self._connection.execute("PRAGMA busy_timeout=5000")
        return self._connection

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """Context manager for database transactions."""
        conn = self.connection
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def execute(self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> sqlite3.Cursor:
        """Execute a single SQL statement."""
        return self.connection.execute(sql, params)

    def fetchone(
        self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()
    ) -> sqlite3.Row | None:
        """Execute and fetch one row."""
        cursor = self.execute(sql, params)
        return cursor.fetchone()  # type: ignore[no-any-return]

    def fetchall(
        self, sql: str, params: tuple[Any, ...] | dict[str, Any] = ()
    ) -> list[sqlite3.Row]:
        """Execute and fetch all rows."""
        cursor = self.execute(sql, params)
        return cursor.fetchall()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def init_db(self) -> None:
        """Initialize database schema. Creates all tables and indexes."""
        logger.info("initializing_database", path=self.db_path)

        with self.transaction() as cursor:
            # Last known state per token, one snapshot per namespace
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tokens (
                    namespace TEXT NOT NULL,
                    address TEXT NOT NULL,
                    name TEXT NOT NULL,
                    twitter TEXT,
                    telegram TEXT,
                    website TEXT,
                    create_date TEXT,
                    market_cap REAL NOT NULL,
                    creator TEXT,
                    position INTEGER NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (namespace, address)
                )
            """)
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_tokens_namespace_position"
                " ON tokens(namespace, position)"
            )

            # Addresses already observed (or already flagged) by a pipeline
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS seen_tokens (
                    namespace TEXT NOT NULL,
                    address TEXT NOT NULL,
                    name TEXT,
                    seen_at TEXT NOT NULL,
                    PRIMARY KEY (namespace, address)
                )
            """)

            # Market cap thresholds already reported per token
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS threshold_notifications (
                    address TEXT NOT NULL,
                    threshold INTEGER NOT NULL,
                    notified_at TEXT NOT NULL,
                    PRIMARY KEY (address, threshold)
                )
            """)

            # Last observed market cap per token
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS threshold_values (
                    address TEXT PRIMARY KEY,
                    last_value REAL NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

        logger.info("database_initialized", path=self.db_path)
