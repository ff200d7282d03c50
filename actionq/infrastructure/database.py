"""Centralized database configuration

ActionQ keeps records, tags and notification rows in ONE SQLite database,
actionq/data/actionq.db by default (override with ACTIONQ_DB_PATH).

Provides:
- Connection pooling (reuses connections across actions in a batch)
- Single source of truth for the database path
- Lock-contention retry for concurrent batches
- Transaction context manager
- Schema initialization entry point
"""

from __future__ import annotations

import atexit
import os
import random
import sqlite3
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import lru_cache, wraps
from pathlib import Path
from queue import Empty, Queue
from threading import Lock
from typing import Any, TypeVar

from actionq.config import (
    DATA_DIR,
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
)
from actionq.observability.logging import get_logger
from actionq.observability.telemetry import counter

F = TypeVar("F", bound=Callable[..., Any])

DB_PATH = DATA_DIR / "actionq.db"

logger = get_logger(__name__)


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Decorator to retry database operations on SQLITE_BUSY errors

    Concurrent batches for different subjects write through the same database,
    so "database is locked" errors are expected under load. Retries use
    exponential backoff with jitter. Any other OperationalError propagates
    immediately.

    Usage:
        @retry_on_db_lock()
        def add_tag(...):
            with db_transaction() as conn:
                conn.execute("INSERT INTO tags ...")

    Side Effects:
        - Sleeps between retries
        - Logs a warning per retry and an error when retries are exhausted
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except sqlite3.OperationalError as e:
                    message = str(e).lower()
                    if "locked" not in message and "busy" not in message:
                        raise

                    if attempt >= max_retries:
                        logger.error(
                            "Database lock retry exhausted after %d attempts: %s",
                            max_retries,
                            e,
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)
                    sleep_time = delay + random.uniform(0, delay * DB_RETRY_JITTER)

                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        sleep_time,
                        e,
                    )
                    counter("database.lock_retry")
                    time.sleep(sleep_time)

            raise AssertionError("unreachable")

        return wrapper  # type: ignore[return-value]

    return decorator


class DatabaseConnectionPool:
    """
    Fixed-size SQLite connection pool

    Connections are opened on demand up to pool_size, with WAL journaling and
    foreign keys enabled, and return rows as sqlite3.Row. When every
    connection is checked out, callers wait up to `timeout` seconds for one
    to come back.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = DB_POOL_SIZE,
        timeout: float = DB_POOL_TIMEOUT,
    ):
        self.db_path = db_path
        self.pool_size = max(1, pool_size)
        self.timeout = timeout
        self.closed = False
        self._idle: Queue[sqlite3.Connection] = Queue()
        self._opened = 0
        self._lock = Lock()

        atexit.register(self.close_all)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=DB_CONNECT_TIMEOUT,
            check_same_thread=False,
        )
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        # Tags and notifications reference data_records(id)
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """
        Check out a connection

        Raises:
            RuntimeError: If the pool is closed, or no connection came back
                within the timeout
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")

        try:
            return self._idle.get_nowait()
        except Empty:
            pass

        with self._lock:
            can_open = self._opened < self.pool_size
            if can_open:
                self._opened += 1

        if can_open:
            try:
                return self._open()
            except sqlite3.Error:
                with self._lock:
                    self._opened -= 1
                raise

        try:
            return self._idle.get(block=True, timeout=self.timeout)
        except Empty:
            logger.error(
                "Connection pool exhausted (pool_size=%d, waited %.2fs)",
                self.pool_size,
                self.timeout,
            )
            counter("database.pool_exhausted")
            raise RuntimeError(
                f"Database connection pool exhausted (pool_size={self.pool_size})"
            ) from None

    def return_connection(self, conn: sqlite3.Connection) -> None:
        """Put a connection back; after close_all() it is closed instead."""
        if self.closed:
            conn.close()
            with self._lock:
                self._opened -= 1
            return
        self._idle.put_nowait(conn)

    def close_all(self) -> None:
        """
        Close all idle connections

        Side Effects:
            - Marks the pool closed; checked-out connections close on return
        """
        self.closed = True
        while True:
            try:
                conn = self._idle.get_nowait()
            except Empty:
                break
            conn.close()
            with self._lock:
                self._opened -= 1


def get_db_path() -> Path:
    """
    Get database path (environment-aware)

    Checks ACTIONQ_DB_PATH first, falls back to the default location.
    """
    if env_path := os.getenv("ACTIONQ_DB_PATH"):
        return Path(env_path)

    return DB_PATH


@lru_cache(maxsize=1)
def get_pool() -> DatabaseConnectionPool:
    """Process-wide connection pool for the current database path."""
    return DatabaseConnectionPool(get_db_path(), pool_size=DB_POOL_SIZE)


def reset_pool() -> None:
    """
    Close and forget the process-wide pool.

    Call after changing ACTIONQ_DB_PATH (tests, CLI --db option).
    """
    if get_pool.cache_info().currsize:
        get_pool().close_all()
    get_pool.cache_clear()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Get pooled database connection (context manager)

    Usage:
        with get_db_connection() as conn:
            rows = conn.execute("SELECT * FROM tags WHERE record_id = ?", (1,)).fetchall()

    Raises:
        FileNotFoundError: If the database has not been initialized
    """
    db_path = get_db_path()

    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}\nRun: actionq-init-db")

    pool = get_pool()
    conn = pool.get_connection()
    try:
        yield conn
    finally:
        pool.return_connection(conn)


@contextmanager
def db_transaction() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database transactions

    Commits on success, rolls back on any exception and re-raises it.
    """
    with get_db_connection() as conn:
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def init_database() -> Path:
    """
    Initialize database with schema (idempotent)

    Returns:
        Path of the initialized database file
    """
    from actionq.infrastructure.database_schema import init_database as _init_database

    db_path = get_db_path()
    _init_database(db_path)
    return db_path


def validate_schema() -> bool:
    """
    Validate database has expected schema

    Raises:
        ValueError: If tables are missing
    """
    from actionq.infrastructure.database_schema import validate_schema as _validate_schema

    with get_db_connection() as conn:
        return _validate_schema(conn)
