"""
Database schema initialization for FeedQ.

Two tables: the activity stream (`activity`) and the digest mail queue
(`activity_mq`).
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from feedq.observability.logging import get_logger

logger = get_logger(__name__)

ACTIVITY_COLUMNS: tuple[str, ...] = (
    "activity_id",
    "app",
    "subject",
    "subjectparams",
    "message",
    "messageparams",
    "file",
    "link",
    "user",
    "affecteduser",
    "timestamp",
    "priority",
    "type",
    "object_type",
    "object_id",
)

MAIL_QUEUE_COLUMNS: tuple[str, ...] = (
    "mail_id",
    "amq_appid",
    "amq_subject",
    "amq_subjectparams",
    "amq_affecteduser",
    "amq_timestamp",
    "amq_type",
    "amq_latest_send",
)


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Args:
        db_path: Path to the database file

    Side Effects:
    - Creates activity and activity_mq tables if they don't exist
    - Creates indexes for the stream and digest queries
    - Creates the parent directory if needed
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)

    conn.executescript("""
        CREATE TABLE IF NOT EXISTS activity (
            activity_id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp INTEGER NOT NULL DEFAULT 0,
            priority INTEGER NOT NULL DEFAULT 0,
            type TEXT NOT NULL DEFAULT '',
            user TEXT NOT NULL DEFAULT '',
            affecteduser TEXT NOT NULL CHECK (affecteduser <> ''),
            app TEXT NOT NULL,
            subject TEXT NOT NULL,
            subjectparams TEXT NOT NULL DEFAULT '[]',
            message TEXT NOT NULL DEFAULT '',
            messageparams TEXT NOT NULL DEFAULT '[]',
            file TEXT NOT NULL DEFAULT '',
            link TEXT NOT NULL DEFAULT '',
            object_type TEXT NOT NULL DEFAULT '',
            object_id INTEGER NOT NULL DEFAULT 0
        );

        -- Stream query: affecteduser + type filter, newest first
        CREATE INDEX IF NOT EXISTS idx_activity_user_time
        ON activity(affecteduser, timestamp);

        CREATE INDEX IF NOT EXISTS idx_activity_object
        ON activity(object_type, object_id);

        -- Retention: expire() deletes by timestamp
        CREATE INDEX IF NOT EXISTS idx_activity_time
        ON activity(timestamp);

        CREATE TABLE IF NOT EXISTS activity_mq (
            mail_id INTEGER PRIMARY KEY AUTOINCREMENT,
            amq_timestamp INTEGER NOT NULL DEFAULT 0,
            amq_latest_send INTEGER NOT NULL DEFAULT 0,
            amq_type TEXT NOT NULL,
            amq_affecteduser TEXT NOT NULL,
            amq_appid TEXT NOT NULL,
            amq_subject TEXT NOT NULL,
            amq_subjectparams TEXT NOT NULL DEFAULT '[]'
        );

        CREATE INDEX IF NOT EXISTS idx_activity_mq_user_time
        ON activity_mq(amq_affecteduser, amq_timestamp);

        CREATE INDEX IF NOT EXISTS idx_activity_mq_latest_send
        ON activity_mq(amq_latest_send);
    """)

    conn.commit()
    conn.close()

    logger.info("Database initialized: %s", db_path)


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Args:
        conn: Active database connection

    Returns:
        True if valid

    Raises:
        ValueError: If tables are missing
    """
    required_tables = {
        "activity": list(ACTIVITY_COLUMNS),
        "activity_mq": list(MAIL_QUEUE_COLUMNS),
    }

    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(required_tables.keys()) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {missing_tables}")

    for table, required_cols in required_tables.items():
        # Table names come from the dict above; identifiers cannot be bound
        if not table.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table}")

        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}

        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table '{table}' missing columns: {missing_cols}")

    return True
