"""
Storage models for subject records and tags.

Rows are stored with ISO-8601 timestamps; from_db_row() converts a sqlite3.Row
(as dict) back into the model.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class DataRecord(BaseModel):
    """A piece of analyzed content; actions address it by id."""

    model_config = ConfigDict(frozen=True)

    id: int
    type: str
    content: str
    metadata: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status(self) -> str | None:
        """Status written by update_status actions (stored at metadata.status)."""
        if not self.metadata:
            return None
        try:
            data = json.loads(self.metadata)
        except json.JSONDecodeError:
            return None
        return data.get("status") if isinstance(data, dict) else None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> DataRecord:
        return cls(
            id=row["id"],
            type=row["type"],
            content=row["content"],
            metadata=row.get("metadata"),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
        )


class Tag(BaseModel):
    """A label attached to a subject record."""

    model_config = ConfigDict(frozen=True)

    id: int
    record_id: int
    tag_name: str
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Tag:
        return cls(
            id=row["id"],
            record_id=row["record_id"],
            tag_name=row["tag_name"],
            created_at=parse_timestamp(row["created_at"]),
        )
