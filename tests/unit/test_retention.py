"""
Tests for activity retention

Validates:
1. expire() clamps the window to at least one day
2. delete_activities() with typed conditions and the mapping form
3. Malformed conditions delete nothing
4. Cleanup stats and the feedq-expire CLI
"""

from __future__ import annotations

import json

import pytest

from feedq.activity import Between, Compare, Equals
from feedq.config import SECONDS_PER_DAY
from feedq.infrastructure.database import get_db_connection
from feedq.observability.telemetry import get_counter
from feedq.storage.retention import cleanup_old_activities, get_retention_stats, main


def _insert(timestamp, affected_user="bob", type="shared", app="files"):
    with get_db_connection() as conn:
        conn.execute(
            """
            INSERT INTO activity (app, subject, user, affecteduser, timestamp, type)
            VALUES (?, 's', 'alice', ?, ?, ?)
            """,
            (app, affected_user, timestamp, type),
        )
        conn.commit()


def _timestamps():
    with get_db_connection() as conn:
        rows = conn.execute("SELECT timestamp FROM activity ORDER BY timestamp").fetchall()
    return [r[0] for r in rows]


@pytest.fixture
def aged_rows(db, clock):
    """Rows at 0.5, 1.5, 3 and 10 days old."""
    now = int(clock.now)
    ages = [SECONDS_PER_DAY // 2, SECONDS_PER_DAY * 3 // 2, SECONDS_PER_DAY * 3, SECONDS_PER_DAY * 10]
    for age in ages:
        _insert(now - age)
    return [now - age for age in ages]


def test_expire_removes_rows_older_than_window(make_service, aged_rows):
    deleted = make_service("admin").expire(2)

    assert deleted == 2
    assert _timestamps() == sorted(aged_rows[:2])
    assert get_counter("activity.expired") == 2


@pytest.mark.parametrize("days", [0, -5])
def test_expire_clamps_to_one_day(make_service, aged_rows, days):
    deleted = make_service("admin").expire(days)

    assert deleted == 3
    assert _timestamps() == [aged_rows[0]]


def test_expire_zero_matches_expire_one(make_service, aged_rows):
    make_service("admin").expire(0)
    after_zero = _timestamps()

    with get_db_connection() as conn:
        conn.execute("DELETE FROM activity")
        conn.commit()
    for ts in aged_rows:
        _insert(ts)

    make_service("admin").expire(1)
    assert _timestamps() == after_zero


def test_delete_with_mapping_is_strictly_less_than(make_service, db):
    for ts in (100, 199, 200, 201):
        _insert(ts)

    deleted = make_service("admin").delete_activities({"timestamp": (200, "<")})

    assert deleted == 2
    assert _timestamps() == [200, 201]


def test_delete_with_equality_mapping(make_service, db):
    _insert(1, affected_user="bob")
    _insert(2, affected_user="carol")

    assert make_service("admin").delete_activities({"affecteduser": "carol"}) == 1
    assert _timestamps() == [1]


def test_delete_with_typed_conditions(make_service, db):
    for ts in (10, 20, 30, 40):
        _insert(ts, app="files" if ts != 30 else "other")

    deleted = make_service("admin").delete_activities(
        [Between("timestamp", 15, 35), Equals("app", "files")]
    )

    assert deleted == 1
    assert _timestamps() == [10, 30, 40]


def test_delete_with_invalid_operator_deletes_nothing(make_service, db):
    _insert(1)

    with pytest.raises(ValueError):
        make_service("admin").delete_activities({"timestamp": (5, "< 0 OR 1 =")})

    assert _timestamps() == [1]


def test_delete_with_unknown_column_deletes_nothing(make_service, db):
    _insert(1)

    with pytest.raises(ValueError):
        make_service("admin").delete_activities({"1=1 OR timestamp": 1})

    assert _timestamps() == [1]


def test_delete_without_conditions_deletes_everything(make_service, db):
    _insert(1)
    _insert(2)

    assert make_service("admin").delete_activities([]) == 2
    assert _timestamps() == []


def test_compare_condition_through_service(make_service, db):
    _insert(5)
    _insert(50)

    assert make_service("admin").delete_activities([Compare("timestamp", ">=", 50)]) == 1
    assert _timestamps() == [5]


def test_cleanup_dry_run_counts_without_deleting(make_service, aged_rows):
    stats = cleanup_old_activities(days=2, dry_run=True, service=make_service("admin"))

    assert stats == {"activities_found": 2, "activities_deleted": 0}
    assert len(_timestamps()) == 4


def test_cleanup_deletes(make_service, aged_rows):
    stats = cleanup_old_activities(days=2, service=make_service("admin"))

    assert stats == {"activities_found": 2, "activities_deleted": 2}
    assert len(_timestamps()) == 2


def test_retention_stats(db):
    stats = get_retention_stats(days=30)

    assert stats["total_activities"] == 0
    assert stats["oldest_timestamp"] is None
    assert stats["activities_past_retention"] == 0
    assert stats["pending_mail_items"] == 0


def test_cli_dry_run(db, capsys):
    _insert(1)

    assert main(["cleanup", "--days", "1", "--dry-run"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output == {"activities_found": 1, "activities_deleted": 0}
    assert _timestamps() == [1]


def test_cli_cleanup(db, capsys):
    _insert(1)

    assert main(["cleanup", "--days", "1"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["activities_deleted"] == 1
    assert _timestamps() == []
