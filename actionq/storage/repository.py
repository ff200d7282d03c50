"""
Record store - the narrow write surface actions are applied through.

RecordStore is the protocol the router and notification tracker depend on.
SQLiteRecordStore implements it on the central database (see
actionq/infrastructure/database.py) and adds the read operations used by the
CLI and tests.

Every failure surfaces as PersistenceError, including writes that address a
record id that does not exist.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable
from functools import wraps
from typing import Any, Protocol, TypeVar, runtime_checkable

from actionq.actions.errors import PersistenceError
from actionq.infrastructure.database import db_transaction, retry_on_db_lock
from actionq.notifications.models import Notification, NotificationStatus
from actionq.observability.logging import get_logger
from actionq.storage import BaseRepository
from actionq.storage.models import DataRecord, Tag, utc_now

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@runtime_checkable
class RecordStore(Protocol):
    """Write operations the action core needs from persistent storage."""

    def update_status(self, record_id: int, status: str) -> None: ...

    def add_tag(self, record_id: int, tag: str) -> Tag: ...

    def create_notification(self, record_id: int, channel: str, message: str) -> Notification: ...

    def update_notification_status(
        self, notification_id: int, status: NotificationStatus
    ) -> Notification: ...


def store_operation(operation: str) -> Callable[[F], F]:
    """Translate database failures raised by the wrapped call into PersistenceError."""

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except PersistenceError:
                raise
            except (sqlite3.Error, FileNotFoundError, RuntimeError) as exc:
                logger.error("Record store %s failed: %s", operation, exc)
                raise PersistenceError(f"{operation} failed: {exc}", operation=operation) from exc

        return wrapper  # type: ignore[return-value]

    return decorator


class SQLiteRecordStore(BaseRepository):
    """RecordStore backed by the central SQLite database."""

    # --- writes used by actions -------------------------------------------

    @store_operation("update_status")
    @retry_on_db_lock()
    def update_status(self, record_id: int, status: str) -> None:
        """
        Set metadata.status on a data record.

        Side Effects:
            - Rewrites data_records.metadata (JSON) and updated_at
        """
        with db_transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE data_records
                SET metadata = json_set(COALESCE(NULLIF(metadata, ''), '{}'), '$.status', ?),
                    updated_at = ?
                WHERE id = ?
                """,
                (status, utc_now().isoformat(), record_id),
            )
            if cursor.rowcount == 0:
                raise PersistenceError(f"record {record_id} not found", operation="update_status")

        logger.info("Updated status of record %s to %r", record_id, status)

    @store_operation("add_tag")
    @retry_on_db_lock()
    def add_tag(self, record_id: int, tag: str) -> Tag:
        """
        Append a tag row. Duplicates are kept (no dedup).

        Side Effects:
            - Inserts into tags
        """
        created_at = utc_now()
        with db_transaction() as conn:
            self._require_record(conn, record_id, "add_tag")
            cursor = conn.execute(
                "INSERT INTO tags (record_id, tag_name, created_at) VALUES (?, ?, ?)",
                (record_id, tag, created_at.isoformat()),
            )
            tag_id = cursor.lastrowid

        logger.info("Tagged record %s with %r", record_id, tag)
        return Tag(id=tag_id, record_id=record_id, tag_name=tag, created_at=created_at)

    @store_operation("create_notification")
    @retry_on_db_lock()
    def create_notification(self, record_id: int, channel: str, message: str) -> Notification:
        """
        Insert a pending notification row.

        Side Effects:
            - Inserts into notifications with status 'pending'
        """
        created_at = utc_now()
        with db_transaction() as conn:
            self._require_record(conn, record_id, "create_notification")
            cursor = conn.execute(
                """
                INSERT INTO notifications (record_id, channel, message, status, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (record_id, channel, message, NotificationStatus.PENDING.value, created_at.isoformat()),
            )
            notification_id = cursor.lastrowid

        return Notification(
            id=notification_id,
            record_id=record_id,
            channel=channel,
            message=message,
            status=NotificationStatus.PENDING,
            created_at=created_at,
        )

    @store_operation("update_notification_status")
    @retry_on_db_lock()
    def update_notification_status(
        self, notification_id: int, status: NotificationStatus
    ) -> Notification:
        """
        Move a notification to a new status; sent_at is set only for 'sent'.

        Side Effects:
            - Updates notifications.status and sent_at
        """
        status = NotificationStatus(status)
        sent_at = utc_now().isoformat() if status is NotificationStatus.SENT else None

        with db_transaction() as conn:
            cursor = conn.execute(
                "UPDATE notifications SET status = ?, sent_at = ? WHERE id = ?",
                (status.value, sent_at, notification_id),
            )
            if cursor.rowcount == 0:
                raise PersistenceError(
                    f"notification {notification_id} not found",
                    operation="update_notification_status",
                )
            row = conn.execute(
                "SELECT * FROM notifications WHERE id = ?", (notification_id,)
            ).fetchone()

        return Notification.from_db_row(dict(row))

    # --- records and reads ------------------------------------------------

    @store_operation("create_record")
    @retry_on_db_lock()
    def create_record(
        self, record_type: str, content: str, metadata: dict[str, Any] | str | None = None
    ) -> DataRecord:
        if isinstance(metadata, dict):
            metadata = json.dumps(metadata)
        now = utc_now()
        cursor = self.execute(
            """
            INSERT INTO data_records (type, content, metadata, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (record_type, content, metadata, now.isoformat(), now.isoformat()),
        )
        return DataRecord(
            id=cursor.lastrowid,
            type=record_type,
            content=content,
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )

    @store_operation("get_record")
    def get_record(self, record_id: int) -> DataRecord | None:
        row = self.query_one("SELECT * FROM data_records WHERE id = ?", (record_id,))
        return DataRecord.from_db_row(row) if row else None

    @store_operation("get_tags_by_record")
    def get_tags_by_record(self, record_id: int) -> list[Tag]:
        rows = self.query_all(
            "SELECT * FROM tags WHERE record_id = ? ORDER BY id", (record_id,)
        )
        return [Tag.from_db_row(row) for row in rows]

    @store_operation("get_notification")
    def get_notification(self, notification_id: int) -> Notification | None:
        row = self.query_one("SELECT * FROM notifications WHERE id = ?", (notification_id,))
        return Notification.from_db_row(row) if row else None

    @store_operation("list_notifications")
    def list_notifications(self, record_id: int) -> list[Notification]:
        rows = self.query_all(
            "SELECT * FROM notifications WHERE record_id = ? ORDER BY id", (record_id,)
        )
        return [Notification.from_db_row(row) for row in rows]

    @store_operation("get_pending_notifications")
    def get_pending_notifications(self) -> list[Notification]:
        rows = self.query_all(
            "SELECT * FROM notifications WHERE status = ? ORDER BY id",
            (NotificationStatus.PENDING.value,),
        )
        return [Notification.from_db_row(row) for row in rows]

    @store_operation("save_analysis_result")
    @retry_on_db_lock()
    def save_analysis_result(
        self,
        record_id: int,
        analysis: str,
        suggestions: list[str],
        confidence: float | None,
    ) -> int:
        """Persist the analysis summary that produced a batch; returns the row id."""
        cursor = self.execute(
            """
            INSERT INTO analysis_results (record_id, analysis, suggestions, confidence, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (record_id, analysis, json.dumps(suggestions), confidence, utc_now().isoformat()),
        )
        return cursor.lastrowid

    @staticmethod
    def _require_record(conn: sqlite3.Connection, record_id: int, operation: str) -> None:
        row = conn.execute("SELECT 1 FROM data_records WHERE id = ?", (record_id,)).fetchone()
        if row is None:
            raise PersistenceError(f"record {record_id} not found", operation=operation)
