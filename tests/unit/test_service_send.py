"""
Tests for the activity writer and the digest queue writer

Validates:
1. Anonymous writes with no recipient are a silent no-op
2. Actor and recipient attribution
3. Parameter lists survive storage
4. No deduplication of identical events
5. store_mail never validates the recipient
"""

from __future__ import annotations

import sqlite3

import pytest

from feedq.activity import ActivityEvent, ActivityRepository, MailQueueRepository
from feedq.infrastructure.database import get_db_connection
from feedq.observability.telemetry import get_counter


def _send(service, affected_user="", **overrides):
    fields = {
        "app": "files",
        "subject": "shared_with_by",
        "subject_params": ["report.pdf", "alice"],
        "message": "",
        "message_params": [],
        "file": "/report.pdf",
        "link": "",
        "affected_user": affected_user,
        "type": "shared",
        "priority": 30,
    }
    fields.update(overrides)
    return service.send(**fields)


def _all_rows():
    with get_db_connection() as conn:
        return [dict(r) for r in conn.execute("SELECT * FROM activity ORDER BY activity_id")]


def test_anonymous_send_without_recipient_writes_nothing(make_service):
    service = make_service(None)

    assert _send(service) is False
    assert _all_rows() == []
    assert get_counter("activity.skipped_anonymous") == 1


def test_anonymous_send_with_recipient_keeps_actor_empty(make_service):
    service = make_service(None)

    assert _send(service, affected_user="bob") is True

    [row] = _all_rows()
    assert row["user"] == ""
    assert row["affecteduser"] == "bob"


def test_send_defaults_recipient_to_actor(make_service):
    service = make_service("alice")

    assert _send(service) is True

    [row] = _all_rows()
    assert row["user"] == "alice"
    assert row["affecteduser"] == "alice"


def test_send_stamps_server_time(make_service, clock):
    service = make_service("alice")
    started = clock.now
    clock.advance(5)

    _send(service, affected_user="bob")

    [row] = _all_rows()
    assert row["timestamp"] == started + 5


def test_parameters_round_trip(make_service):
    service = make_service("alice")
    subject_params = ["a/b c.txt", 3, None, {"nested": ["x"]}, "ünïcode"]
    message_params = [1.5, True]

    _send(service, affected_user="bob", subject_params=subject_params, message_params=message_params)

    record = ActivityRepository().get_by_id(_all_rows()[0]["activity_id"])
    assert record.subject_params == subject_params
    assert record.message_params == message_params


def test_identical_sends_insert_two_rows(make_service):
    service = make_service("alice")

    _send(service, affected_user="bob")
    _send(service, affected_user="bob")

    assert len(_all_rows()) == 2
    assert get_counter("activity.sent") == 2


def test_send_event_stores_object_scope(make_service):
    service = make_service("alice")
    event = ActivityEvent(
        app="files",
        subject="created_self",
        subject_params=["/notes.md"],
        affected_user="alice",
        type="file_created",
        object_type="files",
        object_id=12,
    )

    assert service.send_event(event) is True

    [row] = _all_rows()
    assert (row["object_type"], row["object_id"]) == ("files", 12)


def test_activity_event_rejects_blank_type():
    with pytest.raises(ValueError):
        ActivityEvent(app="files", subject="s", type="  ")


def test_store_errors_propagate(make_service):
    service = make_service("alice")
    with get_db_connection() as conn:
        conn.execute("DROP TABLE activity")
        conn.commit()

    with pytest.raises(sqlite3.OperationalError):
        _send(service, affected_user="bob")


def test_store_mail_queues_item(make_service, clock):
    service = make_service("alice")

    assert service.store_mail("files", "shared_with_by", ["x.txt"], "bob", "shared", clock.now + 60)

    [entry] = MailQueueRepository().get_items_for_user("bob", clock.now)
    assert entry.app == "files"
    assert entry.subject_params == ["x.txt"]
    assert entry.timestamp == clock.now
    assert entry.latest_send == clock.now + 60


def test_store_mail_accepts_empty_recipient(make_service):
    service = make_service(None)

    assert service.store_mail("files", "s", [], "", "shared", 0) is True

    with get_db_connection() as conn:
        count = conn.execute("SELECT COUNT(*) FROM activity_mq").fetchone()[0]
    assert count == 1
