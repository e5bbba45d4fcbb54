"""Tests for the connection pool and schema setup"""

from __future__ import annotations

import logging
import sqlite3

import pytest

from feedq.infrastructure.database import (
    DatabaseConnectionPool,
    get_db_connection,
    get_pool,
    get_pool_stats,
    init_database,
    reset_pool,
    validate_schema,
)
from feedq.observability.logging import get_logger
from feedq.observability.telemetry import get_counter
from feedq.utils.error_sanitizer import sanitize_error_message


def test_missing_database_file(tmp_path, monkeypatch):
    monkeypatch.setenv("FEEDQ_DB_PATH", str(tmp_path / "absent.db"))
    reset_pool()

    with pytest.raises(FileNotFoundError):
        with get_db_connection():
            pass


def test_init_database_is_idempotent(db):
    init_database()
    init_database()

    assert validate_schema() is True


def test_empty_affected_user_violates_schema(db):
    with get_db_connection() as conn:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO activity (app, subject, affecteduser) VALUES ('files', 's', '')"
            )
        conn.rollback()


def test_connections_return_to_pool(db):
    with get_db_connection():
        assert get_pool_stats()["in_use"] == 1

    assert get_pool_stats()["in_use"] == 0


def test_exhausted_pool_raises_after_timeout(db):
    pool = DatabaseConnectionPool(db, pool_size=1, timeout=0.01)
    held = pool.get_connection()

    with pytest.raises(RuntimeError, match="exhausted"):
        pool.get_connection()

    assert get_counter("database.pool_exhausted") == 1
    pool.return_connection(held)
    assert pool.get_connection() is held
    pool.close_all()


def test_connection_returned_after_close_is_closed(db):
    pool = DatabaseConnectionPool(db, pool_size=1)
    conn = pool.get_connection()
    pool.close_all()

    pool.return_connection(conn)

    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")
    with pytest.raises(RuntimeError, match="closed"):
        pool.get_connection()


def test_reset_pool_rereads_path(db, tmp_path, monkeypatch):
    first = get_pool()
    other = tmp_path / "other.db"
    monkeypatch.setenv("FEEDQ_DB_PATH", str(other))

    reset_pool()
    init_database()

    assert first.closed is True
    assert get_pool().db_path == other


@pytest.mark.parametrize(
    "message",
    [
        "no such table: activity",
        "sqlite3.OperationalError: database is locked",
        "error in feedq.activity.repository",
        "File \"/srv/app/feedq/activity/service.py\", line 3",
    ],
)
def test_sensitive_errors_are_replaced(message):
    assert sanitize_error_message(message, 500) == "An internal error occurred. Please try again later."
    assert sanitize_error_message(message, 400) == (
        "Invalid request. Please check your input and try again."
    )


def test_short_client_errors_pass_through():
    assert sanitize_error_message("Unknown activity column: 'x'", 400) == (
        "Unknown activity column: 'x'"
    )


def test_loggers_share_one_feedq_handler(monkeypatch):
    monkeypatch.setenv("FEEDQ_LOG_LEVEL", "debug")

    first = get_logger("feedq.activity.service")
    second = get_logger("scripts.tool")

    root = logging.getLogger("feedq")
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG
    assert first.name == "feedq.activity.service"
    assert second.name == "feedq.scripts.tool"
