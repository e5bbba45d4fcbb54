"""
Activity and mail-queue repositories - SQL for the activity and activity_mq tables.

Follows the database patterns in feedq/infrastructure/database.py.
Statements use positional `?` placeholders; WHERE clauses come from
FilterQuery so placeholder and parameter order are built together.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from feedq.activity.models import ActivityRecord, MailQueueEntry, encode_params
from feedq.activity.types import FilterQuery
from feedq.observability.logging import get_logger
from feedq.storage import BaseRepository

logger = get_logger(__name__)


class ActivityRepository(BaseRepository):
    """Reads and writes rows of the activity table."""

    def __init__(self) -> None:
        super().__init__("activity")

    def insert(
        self,
        *,
        app: str,
        subject: str,
        subject_params: list[Any],
        message: str,
        message_params: list[Any],
        file: str,
        link: str,
        user: str,
        affected_user: str,
        timestamp: int,
        priority: int,
        type: str,
        object_type: str,
        object_id: int,
    ) -> int | None:
        """
        Insert one activity row.

        Returns:
            The new activity_id

        Side Effects:
            - Inserts row into activity table
            - Commits transaction
        """
        return self.execute(
            """
            INSERT INTO activity (
                app, subject, subjectparams, message, messageparams,
                file, link, user, affecteduser, timestamp,
                priority, type, object_type, object_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                app,
                subject,
                encode_params(subject_params),
                message,
                encode_params(message_params),
                file,
                link,
                user,
                affected_user,
                int(timestamp),
                int(priority),
                type,
                object_type,
                int(object_id),
            ),
        )

    def iter_activities(self, query: FilterQuery, limit: int, offset: int) -> Iterator[dict[str, Any]]:
        """
        Stream matching rows newest first, one row at a time.

        Args:
            query: Non-empty predicate list
            limit: Page size
            offset: Rows to skip
        """
        sql = (
            f"SELECT * FROM {self.table_name} "
            f"WHERE {query.where_clause()} "
            "ORDER BY timestamp DESC, activity_id DESC "
            "LIMIT ? OFFSET ?"
        )
        for row in self.iter_rows(sql, (*query.parameters(), int(limit), int(offset))):
            yield dict(row)

    def get_by_id(self, activity_id: int) -> ActivityRecord | None:
        row = self.query_one(
            f"SELECT * FROM {self.table_name} WHERE activity_id = ?",
            (activity_id,),
        )
        if not row:
            return None
        return ActivityRecord.from_db_row(dict(row))

    def delete_where(self, query: FilterQuery) -> int:
        """
        Delete rows matching every predicate; an empty query deletes all rows.

        Side Effects:
            - Removes rows from activity table
            - Commits transaction
        """
        sql = f"DELETE FROM {self.table_name}"
        if query:
            sql += f" WHERE {query.where_clause()}"
        return self.execute_rowcount(sql, query.parameters())


class MailQueueRepository(BaseRepository):
    """Pending digest items in activity_mq."""

    def __init__(self) -> None:
        super().__init__("activity_mq")

    def insert(
        self,
        *,
        app: str,
        subject: str,
        subject_params: list[Any],
        affected_user: str,
        timestamp: int,
        type: str,
        latest_send: int,
    ) -> int | None:
        return self.execute(
            """
            INSERT INTO activity_mq (
                amq_appid, amq_subject, amq_subjectparams, amq_affecteduser,
                amq_timestamp, amq_type, amq_latest_send
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                app,
                subject,
                encode_params(subject_params),
                affected_user,
                int(timestamp),
                type,
                int(latest_send),
            ),
        )

    def get_affected_users(self, limit: int, latest_send: int) -> list[str]:
        """
        Users with at least one item whose send deadline is before latest_send.

        Ordered by each user's earliest deadline.
        """
        rows = self.query_all(
            """
            SELECT amq_affecteduser, MIN(amq_latest_send) AS amq_trigger_time
            FROM activity_mq
            WHERE amq_latest_send < ?
            GROUP BY amq_affecteduser
            ORDER BY amq_trigger_time ASC
            LIMIT ?
            """,
            (int(latest_send), int(limit)),
        )
        return [row["amq_affecteduser"] for row in rows]

    def get_items_for_user(self, user: str, max_time: int, limit: int = 200) -> list[MailQueueEntry]:
        """Queued items for one user created at or before max_time, oldest first."""
        rows = self.query_all(
            """
            SELECT * FROM activity_mq
            WHERE amq_timestamp <= ? AND amq_affecteduser = ?
            ORDER BY amq_timestamp ASC, mail_id ASC
            LIMIT ?
            """,
            (int(max_time), user, int(limit)),
        )
        return [MailQueueEntry.from_db_row(dict(row)) for row in rows]

    def delete_sent_items(self, users: Iterable[str], max_time: int) -> int:
        """
        Drop items already covered by a digest.

        Side Effects:
            - Removes rows from activity_mq
            - Commits transaction
        """
        query = FilterQuery().add("amq_timestamp <= ?", int(max_time))
        users = list(users)
        if not users:
            return 0
        query.add_in("amq_affecteduser", users)
        deleted = self.execute_rowcount(
            f"DELETE FROM {self.table_name} WHERE {query.where_clause()}",
            query.parameters(),
        )
        logger.info("Deleted %d sent mail queue items for %d users", deleted, len(users))
        return deleted
