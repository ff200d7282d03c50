"""Storage - database models and the record-store repository"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from actionq.infrastructure.database import db_transaction, get_db_connection


class BaseRepository:
    """Base class for repositories with shared query helpers."""

    @contextmanager
    def _get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        with get_db_connection() as conn:
            yield conn

    def query_one(self, query: str, params: tuple[Any, ...] | None = None) -> dict[str, Any] | None:
        with self._get_conn() as conn:
            row = conn.execute(query, params or ()).fetchone()
        return dict(row) if row is not None else None

    def query_all(self, query: str, params: tuple[Any, ...] | None = None) -> list[dict[str, Any]]:
        with self._get_conn() as conn:
            rows = conn.execute(query, params or ()).fetchall()
        return [dict(row) for row in rows]

    def execute(self, query: str, params: tuple[Any, ...] | None = None) -> sqlite3.Cursor:
        """
        Execute a write query (INSERT, UPDATE, DELETE) in its own transaction

        Returns:
            The cursor, for lastrowid / rowcount

        Side Effects:
            - Commits on success, rolls back on error (via db_transaction)
        """
        with db_transaction() as conn:
            return conn.execute(query, params or ())


__all__ = ["BaseRepository"]
