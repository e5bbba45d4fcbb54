"""
Activity Retention Module

Deletes activity stream rows older than the retention window.

Usage:
    # Cleanup old activities (run daily via cron)
    python -m feedq.storage.retention cleanup --days 365

    # Inspect what a cleanup would remove
    python -m feedq.storage.retention cleanup --days 30 --dry-run
    python -m feedq.storage.retention stats
"""

from __future__ import annotations

import argparse
import json
import time
from collections.abc import Sequence
from typing import Any

from feedq.activity.interfaces import StaticUserSession
from feedq.activity.manager import ActivityManager
from feedq.activity.service import ActivityService
from feedq.config import EXPIRE_DAYS_DEFAULT, SECONDS_PER_DAY
from feedq.infrastructure.database import get_db_connection, init_database
from feedq.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETENTION_DAYS = EXPIRE_DAYS_DEFAULT


def _cutoff(days: int, now: int | None = None) -> int:
    now = int(time.time()) if now is None else now
    return now - SECONDS_PER_DAY * max(1, days)


def cleanup_old_activities(
    days: int = DEFAULT_RETENTION_DAYS,
    dry_run: bool = False,
    service: ActivityService | None = None,
) -> dict[str, int]:
    """
    Delete activities older than the given number of days (minimum 1).

    Side Effects:
    - Deletes from `activity` table (unless dry_run)
    - Logs cleanup statistics

    Returns:
        {"activities_found": int, "activities_deleted": int}
    """
    service = service or ActivityService(ActivityManager(), StaticUserSession())
    cutoff = _cutoff(days, int(service.clock()))

    with get_db_connection() as conn:
        count = conn.execute(
            "SELECT COUNT(*) FROM activity WHERE timestamp < ?",
            (cutoff,),
        ).fetchone()[0]

    stats = {"activities_found": count, "activities_deleted": 0}

    prefix = "[DRY RUN] " if dry_run else ""
    logger.info(
        "%sFound %d activities older than %d days (cutoff=%d)",
        prefix,
        count,
        max(1, days),
        cutoff,
        extra={"retention_policy_days": days, "dry_run": dry_run},
    )

    if not dry_run and count > 0:
        stats["activities_deleted"] = service.expire(days)

    return stats


def get_retention_stats(days: int = DEFAULT_RETENTION_DAYS) -> dict[str, Any]:
    """
    Get statistics about activity retention.

    Returns:
        {
            "total_activities": int,
            "oldest_timestamp": int | None,
            "newest_timestamp": int | None,
            "activities_past_retention": int,
            "pending_mail_items": int,
        }
    """
    cutoff = _cutoff(days)

    with get_db_connection() as conn:
        row = conn.execute(
            """
            SELECT
                COUNT(*) AS total,
                MIN(timestamp) AS oldest,
                MAX(timestamp) AS newest,
                SUM(CASE WHEN timestamp < ? THEN 1 ELSE 0 END) AS old_count
            FROM activity
            """,
            (cutoff,),
        ).fetchone()
        pending = conn.execute("SELECT COUNT(*) FROM activity_mq").fetchone()[0]

    return {
        "total_activities": row["total"],
        "oldest_timestamp": row["oldest"],
        "newest_timestamp": row["newest"],
        "activities_past_retention": row["old_count"] or 0,
        "pending_mail_items": pending,
    }


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="feedq-expire", description="Activity retention")
    subparsers = parser.add_subparsers(dest="command", required=True)

    cleanup = subparsers.add_parser("cleanup", help="Delete expired activities")
    cleanup.add_argument("--days", type=int, default=DEFAULT_RETENTION_DAYS)
    cleanup.add_argument("--dry-run", action="store_true")

    stats = subparsers.add_parser("stats", help="Show retention statistics")
    stats.add_argument("--days", type=int, default=DEFAULT_RETENTION_DAYS)

    args = parser.parse_args(argv)

    init_database()

    if args.command == "cleanup":
        result: dict[str, Any] = cleanup_old_activities(days=args.days, dry_run=args.dry_run)
    else:
        result = get_retention_stats(days=args.days)

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
