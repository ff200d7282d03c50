"""
Pytest configuration shared across unit and integration tests

Provides an in-memory record store, scriptable channel senders, and a
temporary SQLite database wired through ACTIONQ_DB_PATH.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from actionq.actions.errors import DeliveryError, PersistenceError
from actionq.actions.router import ActionRouter
from actionq.notifications.channels import ChannelRegistry
from actionq.notifications.models import Notification, NotificationStatus
from actionq.notifications.tracker import NotificationTracker
from actionq.observability.telemetry import reset_telemetry
from actionq.storage.models import Tag


class FakeRecordStore:
    """In-memory RecordStore; operations listed in fail_on raise PersistenceError."""

    def __init__(self, record_ids: tuple[int, ...] = (1, 2, 3)):
        self.statuses: dict[int, str | None] = {record_id: None for record_id in record_ids}
        self.tags: list[Tag] = []
        self.notifications: dict[int, Notification] = {}
        self.status_history: list[tuple[int, NotificationStatus]] = []
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self._next_id = 1

    def _check(self, operation: str, record_id: int | None = None) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise PersistenceError(f"{operation} failed: disk I/O error", operation=operation)
        if record_id is not None and record_id not in self.statuses:
            raise PersistenceError(f"record {record_id} not found", operation=operation)

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def update_status(self, record_id: int, status: str) -> None:
        self._check("update_status", record_id)
        self.statuses[record_id] = status

    def add_tag(self, record_id: int, tag: str) -> Tag:
        self._check("add_tag", record_id)
        created = Tag(id=self._new_id(), record_id=record_id, tag_name=tag)
        self.tags.append(created)
        return created

    def create_notification(self, record_id: int, channel: str, message: str) -> Notification:
        self._check("create_notification", record_id)
        notification = Notification(
            id=self._new_id(), record_id=record_id, channel=channel, message=message
        )
        self.notifications[notification.id] = notification
        self.status_history.append((notification.id, notification.status))
        return notification

    def update_notification_status(
        self, notification_id: int, status: NotificationStatus
    ) -> Notification:
        self._check("update_notification_status")
        updated = self.notifications[notification_id].model_copy(update={"status": status})
        self.notifications[notification_id] = updated
        self.status_history.append((notification_id, status))
        return updated

    @property
    def mutation_count(self) -> int:
        return len(self.calls)


class RecordingSender:
    """Channel sender that records every call and succeeds."""

    def __init__(self, name: str):
        self.name = name
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def send(self, message: str, params: Mapping[str, Any]) -> None:
        self.calls.append((message, dict(params)))


class FailingSender:
    """Channel sender that always raises the configured error."""

    def __init__(self, name: str, error: Exception | None = None):
        self.name = name
        self.error = error or DeliveryError(f"{name} endpoint unreachable", channel=name)
        self.calls = 0

    def send(self, message: str, params: Mapping[str, Any]) -> None:
        self.calls += 1
        raise self.error


@pytest.fixture(autouse=True)
def clean_telemetry():
    reset_telemetry()
    yield
    reset_telemetry()


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def senders() -> dict[str, RecordingSender]:
    return {name: RecordingSender(name) for name in ("email", "sms", "webhook")}


@pytest.fixture
def registry(senders) -> ChannelRegistry:
    return ChannelRegistry(senders.values())


@pytest.fixture
def tracker(fake_store, registry) -> NotificationTracker:
    return NotificationTracker(fake_store, registry)


@pytest.fixture
def router(fake_store, tracker) -> ActionRouter:
    return ActionRouter(fake_store, tracker)


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """Fresh schema in a temporary database file; the pool is reset around the test."""
    from actionq.infrastructure.database import init_database, reset_pool

    db_path = tmp_path / "actionq.db"
    monkeypatch.setenv("ACTIONQ_DB_PATH", str(db_path))
    reset_pool()
    init_database()
    yield db_path
    reset_pool()


@pytest.fixture
def sqlite_store(sqlite_db):
    from actionq.storage.repository import SQLiteRecordStore

    return SQLiteRecordStore()


@pytest.fixture
def make_failing_sender():
    """Factory for FailingSender(name, error=None)."""
    return FailingSender
