"""SQLite result sink."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

from statflow.results.base import ResultSink
from statflow.results.models import AnalyticEntry, LogEntry, StatisticEntry

logger = logging.getLogger(__name__)

# SQL schema for tables
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    log TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS analytics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    log_id INTEGER NOT NULL REFERENCES logs(id),
    title TEXT NOT NULL,
    note TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS statistics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    analytic_id INTEGER NOT NULL REFERENCES analytics(id),
    title TEXT NOT NULL,
    output_data TEXT NOT NULL,
    components TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_statistics_analytic ON statistics(analytic_id);
"""


class SQLiteResultSink(ResultSink):
    """
    SQLite-based result store.

    Each call opens its own short-lived connection, so the sink can be shared
    between runs without holding a handle open.
    """

    def __init__(self, db_path: Path):
        """
        Initialize sink.

        Parameters
        ----------
        db_path : Path
            Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._ensure_db()

    def _ensure_db(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        logger.info(f"SQLite result store ready at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _insert(self, sql: str, params: tuple) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(sql, params)
            conn.commit()
            return int(cursor.lastrowid)

    # -------------------------------------------------------------------------
    # ResultSink implementation
    # -------------------------------------------------------------------------

    async def add_log(self, entry: LogEntry) -> int:
        return self._insert(
            "INSERT INTO logs (log, created_at) VALUES (?, ?)",
            (entry.log, datetime.now().isoformat()),
        )

    async def add_analytic(self, log_id: int, entry: AnalyticEntry) -> int:
        return self._insert(
            "INSERT INTO analytics (log_id, title, note, created_at) VALUES (?, ?, ?, ?)",
            (log_id, entry.title, entry.note, datetime.now().isoformat()),
        )

    async def add_statistic(self, analytic_id: int, entry: StatisticEntry) -> None:
        self._insert(
            """
            INSERT INTO statistics (analytic_id, title, output_data, components, description, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                analytic_id,
                entry.title,
                entry.output_data,
                entry.components,
                entry.description,
                datetime.now().isoformat(),
            ),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_analytic(self, analytic_id: int) -> Optional[dict]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT id, log_id, title, note, created_at FROM analytics WHERE id = ?",
                (analytic_id,),
            ).fetchone()
        return dict(row) if row else None

    def list_statistics(self, analytic_id: int) -> list[StatisticEntry]:
        """Statistic entries of an analytic, in insertion order."""
        with self._get_connection() as conn:
            rows = conn.execute(
                """
                SELECT title, output_data, components, description
                FROM statistics
                WHERE analytic_id = ?
                ORDER BY id ASC
                """,
                (analytic_id,),
            ).fetchall()
        return [
            StatisticEntry(
                title=row["title"],
                output_data=row["output_data"],
                components=row["components"],
                description=row["description"],
            )
            for row in rows
        ]

    def latest_analytic_id(self) -> Optional[int]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT MAX(id) FROM analytics").fetchone()
        return row[0] if row and row[0] is not None else None
