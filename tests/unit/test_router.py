"""
Tests for ActionRouter

Validates:
1. (type, target) resolution, including unresolved combinations
2. Parameter validation happens before any side effect
3. Each handler reaches the right store/tracker operation
"""

from __future__ import annotations

import pytest

from actionq.actions.errors import (
    DeliveryError,
    ParameterValidationError,
    PersistenceError,
    UnresolvedActionError,
)
from actionq.actions.models import Action
from actionq.notifications.models import NotificationStatus


def make_action(action_type, target="", **params):
    return Action(type=action_type, target=target, params=params)


def test_update_status(router, fake_store):
    result = router.route(make_action("database", "update_status", record_id=1, status="reviewed"))

    assert result.operation == "update_status"
    assert fake_store.statuses[1] == "reviewed"


def test_database_add_tag(router, fake_store):
    result = router.route(make_action("database", "add_tag", record_id=2, tag="urgent"))

    assert result.tag is not None
    assert [(t.record_id, t.tag_name) for t in fake_store.tags] == [(2, "urgent")]


def test_tag_family_accepts_free_text_target(router, fake_store):
    router.route(make_action("tag", "add a label", record_id=3, tag="billing"))

    assert [(t.record_id, t.tag_name) for t in fake_store.tags] == [(3, "billing")]


def test_notification_routes_to_tracker(router, fake_store, senders):
    result = router.route(
        make_action("notification", "send", record_id=1, message="hi", channel="sms", phone="555")
    )

    assert result.operation == "notify"
    assert result.notification.status == NotificationStatus.SENT
    assert senders["sms"].calls == [("hi", {"phone": "555"})]


@pytest.mark.parametrize(
    ("action_type", "target", "discriminator"),
    [
        ("restart", "web-1", "type"),
        ("", "update_status", "type"),
        ("database", "drop_table", "target"),
        ("database", "", "target"),
    ],
)
def test_unresolved_action_has_no_side_effects(router, fake_store, action_type, target, discriminator):
    with pytest.raises(UnresolvedActionError) as exc_info:
        router.route(make_action(action_type, target, record_id=1, status="x", tag="y"))

    assert exc_info.value.discriminator == discriminator
    assert exc_info.value.kind == "unresolved_action"
    assert "no such action" in str(exc_info.value)
    assert fake_store.mutation_count == 0


@pytest.mark.parametrize(
    "params",
    [
        {"status": "reviewed"},
        {"record_id": 1},
        {"record_id": "1", "status": "reviewed"},
        {"record_id": 1, "status": 5},
    ],
)
def test_update_status_validation(router, fake_store, params):
    with pytest.raises(ParameterValidationError) as exc_info:
        router.route(Action(type="database", target="update_status", params=params))

    assert exc_info.value.target == "update_status"
    assert fake_store.mutation_count == 0


@pytest.mark.parametrize("missing", ["record_id", "message", "channel"])
def test_notification_validation_creates_no_row(router, fake_store, senders, missing):
    params = {"record_id": 1, "message": "hi", "channel": "email", "to": "a@example.com"}
    del params[missing]

    with pytest.raises(ParameterValidationError) as exc_info:
        router.route(Action(type="notification", target="send", params=params))

    assert missing in exc_info.value.fields
    assert fake_store.notifications == {}
    assert senders["email"].calls == []


def test_unsupported_channel_creates_no_row(router, fake_store):
    with pytest.raises(DeliveryError, match="unsupported channel"):
        router.route(make_action("notification", "send", record_id=1, message="hi", channel="pager"))

    assert fake_store.notifications == {}


def test_store_failure_surfaces_as_persistence_error(router, fake_store):
    fake_store.fail_on.add("update_status")

    with pytest.raises(PersistenceError):
        router.route(make_action("database", "update_status", record_id=1, status="x"))


def test_add_tag_twice_appends_two_rows(router, fake_store):
    action = make_action("database", "add_tag", record_id=1, tag="dup")

    router.route(action)
    router.route(action)

    assert [t.tag_name for t in fake_store.tags] == ["dup", "dup"]
