"""
Database schema initialization for ActionQ.

Holds the SQL schema for data records, tags, notifications and stored
analysis results, kept apart from the connection plumbing in database.py.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from actionq.observability.logging import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS data_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        type TEXT NOT NULL,
        content TEXT NOT NULL,
        metadata TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );

    -- Append-only: the same tag may be attached to a record more than once
    CREATE TABLE IF NOT EXISTS tags (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        record_id INTEGER NOT NULL REFERENCES data_records(id),
        tag_name TEXT NOT NULL,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        record_id INTEGER NOT NULL REFERENCES data_records(id),
        channel TEXT NOT NULL,
        message TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'sent', 'failed')),
        created_at TEXT NOT NULL,
        sent_at TEXT
    );

    CREATE TABLE IF NOT EXISTS analysis_results (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        record_id INTEGER NOT NULL REFERENCES data_records(id),
        analysis TEXT,
        suggestions TEXT,
        confidence REAL,
        created_at TEXT NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_tags_record ON tags(record_id);
    CREATE INDEX IF NOT EXISTS idx_notifications_record ON notifications(record_id);
    CREATE INDEX IF NOT EXISTS idx_notifications_status ON notifications(status);
"""

REQUIRED_TABLES: dict[str, list[str]] = {
    "data_records": ["id", "type", "content", "metadata", "created_at", "updated_at"],
    "tags": ["id", "record_id", "tag_name", "created_at"],
    "notifications": ["id", "record_id", "channel", "message", "status", "created_at", "sent_at"],
    "analysis_results": ["id", "record_id", "analysis", "suggestions", "confidence"],
}


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS.

    Side Effects:
    - Creates the parent directory if needed
    - Creates tables and indexes that don't exist yet
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()

    logger.info("Database initialized at %s", db_path)


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Raises:
        ValueError: If tables or columns are missing
    """
    cursor = conn.cursor()
    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(REQUIRED_TABLES) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {sorted(missing_tables)}")

    for table, required_cols in REQUIRED_TABLES.items():
        # Identifiers come from REQUIRED_TABLES above, never from input
        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}
        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table {table} missing columns: {sorted(missing_cols)}")

    return True
