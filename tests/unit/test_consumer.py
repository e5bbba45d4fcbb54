"""
Tests for ActivityConsumer

Validates:
1. Stream and email settings decide where an event goes
2. Own actions are mailed only with "selfemail"
3. Digest deadline is now + batchtime
"""

from __future__ import annotations

import pytest

from feedq.activity import ActivityConsumer, ActivityEvent, MailQueueRepository, UserSettings
from feedq.activity.settings import CATEGORY_SETTING
from feedq.activity.types import METHOD_MAIL, METHOD_STREAM
from feedq.config import DEFAULT_BATCH_SECONDS
from feedq.infrastructure.database import get_db_connection


@pytest.fixture
def settings(manager):
    return UserSettings(manager)


def _event(affected_user="bob", type="shared"):
    return ActivityEvent(
        app="files_sharing",
        subject="shared_with_by",
        subject_params=["report.pdf", "alice"],
        affected_user=affected_user,
        type=type,
    )


def _stream_count():
    with get_db_connection() as conn:
        return conn.execute("SELECT COUNT(*) FROM activity").fetchone()[0]


def test_default_shared_event_goes_to_stream_and_mail(make_service, settings, clock):
    consumer = ActivityConsumer(make_service("alice"), settings)

    result = consumer.receive(_event())

    assert result.streamed and result.queued
    assert _stream_count() == 1
    [item] = MailQueueRepository().get_items_for_user("bob", int(clock.now))
    assert item.latest_send == int(clock.now) + DEFAULT_BATCH_SECONDS


def test_batchtime_setting_moves_deadline(make_service, settings, clock):
    settings.set_user_setting("bob", CATEGORY_SETTING, "batchtime", 60)
    ActivityConsumer(make_service("alice"), settings).receive(_event())

    [item] = MailQueueRepository().get_items_for_user("bob", int(clock.now))
    assert item.latest_send == int(clock.now) + 60


def test_stream_only_type_is_not_mailed(make_service, settings):
    settings.set_user_setting("bob", METHOD_MAIL, "file_restored", True)

    result = ActivityConsumer(make_service("alice"), settings).receive(_event(type="file_restored"))

    assert result.streamed is True
    assert result.queued is False


def test_disabled_stream_setting(make_service, settings):
    settings.set_user_setting("bob", METHOD_STREAM, "shared", False)

    result = ActivityConsumer(make_service("alice"), settings).receive(_event())

    assert result.streamed is False
    assert result.queued is True
    assert _stream_count() == 0


def test_own_actions_mailed_only_with_selfemail(make_service, settings, clock):
    consumer = ActivityConsumer(make_service("bob"), settings)
    settings.set_user_setting("bob", METHOD_MAIL, "shared", True)

    assert consumer.receive(_event(affected_user="")).queued is False

    settings.set_user_setting("bob", CATEGORY_SETTING, "selfemail", True)
    assert consumer.receive(_event(affected_user="")).queued is True


def test_anonymous_event_without_recipient_is_dropped(make_service, settings):
    result = ActivityConsumer(make_service(None), settings).receive(_event(affected_user=""))

    assert (result.streamed, result.queued) == (False, False)
    assert _stream_count() == 0
