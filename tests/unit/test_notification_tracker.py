"""
Tests for NotificationTracker

Validates:
1. pending -> sent on sender success
2. pending -> failed on sender failure, with the delivery error surfaced
3. A failed status update never masks the original delivery error
4. No row when the channel is unknown or the pending row can't be created
"""

from __future__ import annotations

import pytest

from actionq.actions.errors import DeliveryError, PersistenceError, UnsupportedChannelError
from actionq.notifications.channels import ChannelRegistry
from actionq.notifications.models import NotificationStatus
from actionq.notifications.tracker import NotificationTracker
from actionq.observability.telemetry import get_counter

PENDING = NotificationStatus.PENDING
SENT = NotificationStatus.SENT
FAILED = NotificationStatus.FAILED


def test_deliver_success_transitions_pending_to_sent(tracker, fake_store, senders):
    notification = tracker.deliver(1, "webhook", "build finished", {"url": "https://hooks.example.com"})

    assert notification.status == SENT
    assert notification.status.is_terminal
    assert fake_store.status_history == [(notification.id, PENDING), (notification.id, SENT)]
    assert senders["webhook"].calls == [("build finished", {"url": "https://hooks.example.com"})]
    assert get_counter("notification.sent.webhook") == 1


def test_deliver_failure_marks_failed_and_raises(fake_store, make_failing_sender):
    sender = make_failing_sender("webhook")
    tracker = NotificationTracker(fake_store, ChannelRegistry([sender]))

    with pytest.raises(DeliveryError) as exc_info:
        tracker.deliver(1, "webhook", "build failed", {"url": "https://hooks.example.com"})

    (notification_id,) = fake_store.notifications
    assert fake_store.notifications[notification_id].status.is_terminal
    assert exc_info.value.kind == "delivery_failure"
    assert exc_info.value.notification_id == notification_id
    assert fake_store.status_history == [(notification_id, PENDING), (notification_id, FAILED)]
    assert sender.calls == 1


def test_unexpected_sender_exception_is_wrapped(fake_store, make_failing_sender):
    sender = make_failing_sender("email", error=KeyError("to"))
    tracker = NotificationTracker(fake_store, ChannelRegistry([sender]))

    with pytest.raises(DeliveryError) as exc_info:
        tracker.deliver(1, "email", "hello")

    assert isinstance(exc_info.value.__cause__, KeyError)
    assert [status for _, status in fake_store.status_history] == [PENDING, FAILED]


def test_failed_status_update_does_not_mask_delivery_error(fake_store, make_failing_sender):
    original = DeliveryError("SMTP 554 rejected", channel="email")
    tracker = NotificationTracker(
        fake_store, ChannelRegistry([make_failing_sender("email", error=original)])
    )
    fake_store.fail_on.add("update_notification_status")

    with pytest.raises(DeliveryError) as exc_info:
        tracker.deliver(1, "email", "hello", {"to": "a@example.com"})

    assert exc_info.value is original
    assert not isinstance(exc_info.value, PersistenceError)
    assert get_counter("notification.status_update_failed") == 1


def test_unknown_channel_creates_no_row(tracker, fake_store):
    with pytest.raises(UnsupportedChannelError) as exc_info:
        tracker.deliver(1, "carrier-pigeon", "hello")

    assert exc_info.value.channel == "carrier-pigeon"
    assert fake_store.notifications == {}


def test_create_failure_sends_nothing(tracker, fake_store, senders):
    fake_store.fail_on.add("create_notification")

    with pytest.raises(PersistenceError):
        tracker.deliver(1, "sms", "hello")

    assert senders["sms"].calls == []


def test_sent_status_update_failure_is_persistence_error(tracker, fake_store, senders):
    fake_store.fail_on.add("update_notification_status")

    with pytest.raises(PersistenceError):
        tracker.deliver(1, "sms", "hello")

    assert len(senders["sms"].calls) == 1
