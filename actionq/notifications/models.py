"""
Notification record and its delivery lifecycle.

    pending ──► sent     (sender succeeded; sent_at set)
        └─────► failed   (sender raised)

A row is created pending at the moment delivery is attempted and moves to a
terminal status synchronously once the attempt completes. Nothing retries a
row after it is terminal.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from actionq.storage.models import parse_timestamp, utc_now


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not NotificationStatus.PENDING


class Notification(BaseModel):
    """One attempted delivery of a message about a subject record."""

    model_config = ConfigDict(frozen=True)

    id: int
    record_id: int
    channel: str
    message: str
    status: NotificationStatus = NotificationStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    sent_at: datetime | None = None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Notification:
        return cls(
            id=row["id"],
            record_id=row["record_id"],
            channel=row["channel"],
            message=row["message"],
            status=NotificationStatus(row["status"]),
            created_at=parse_timestamp(row["created_at"]),
            sent_at=parse_timestamp(row.get("sent_at")),
        )
