"""SQLite access for FeedQ.

The activity stream and the digest mail queue share one database file,
feedq/data/feedq.db unless FEEDQ_DB_PATH points elsewhere. Repositories
reach it only through get_db_connection() or db_transaction(), which lend
out connections from a process-wide pool.

Store errors are never retried here: sqlite3 exceptions propagate to the
caller unchanged.
"""

from __future__ import annotations

import atexit
import os
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from queue import Empty, Queue
from typing import Any

from feedq.config import (
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
)
from feedq.observability.logging import get_logger
from feedq.observability.telemetry import counter

# Database path
DB_PATH = Path(__file__).parent.parent / "data" / "feedq.db"

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    Fixed-size, thread-safe pool of SQLite connections.

    Every connection is checked with quick_check, runs in WAL mode and
    returns sqlite3.Row rows. When all connections are busy, callers wait
    up to DB_POOL_TIMEOUT seconds and then get a RuntimeError.
    """

    def __init__(self, db_path, pool_size=DB_POOL_SIZE, timeout=DB_POOL_TIMEOUT):
        self.db_path = db_path
        self.pool_size = pool_size
        self.timeout = timeout
        self.pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self.closed = False
        for _ in range(pool_size):
            self.pool.put(self._create_connection())

        atexit.register(self.close_all)

    def _create_connection(self) -> sqlite3.Connection:
        """
        Open one configured connection.

        Raises:
            RuntimeError: If quick_check reports corruption
        """
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=DB_CONNECT_TIMEOUT,
            check_same_thread=False,
        )

        try:
            status = conn.execute("PRAGMA quick_check(1)").fetchone()[0]
        except sqlite3.DatabaseError as e:
            conn.close()
            counter("database.corruption_detected")
            logger.critical("Integrity check failed on %s: %s", self.db_path, e)
            raise RuntimeError(f"Database corruption detected: {e}") from e

        if status != "ok":
            conn.close()
            counter("database.corruption_detected")
            logger.critical("Integrity check failed on %s: %s", self.db_path, status)
            raise RuntimeError(f"Database corruption detected: {status}")

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.row_factory = sqlite3.Row
        return conn

    def get_connection(self) -> sqlite3.Connection:
        """
        Take a connection, waiting for one to be returned if all are busy.

        Raises:
            RuntimeError: If the pool is closed or stays exhausted past the timeout
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")

        try:
            return self.pool.get(timeout=self.timeout)
        except Empty:
            counter("database.pool_exhausted")
            logger.error(
                "All %d pooled connections busy for %.1fs", self.pool_size, self.timeout
            )
            raise RuntimeError(
                f"Database connection pool exhausted (pool_size={self.pool_size})"
            ) from None

    def return_connection(self, conn: sqlite3.Connection) -> None:
        """Hand a connection back; it is closed instead if the pool was shut down."""
        if self.closed:
            conn.close()
            return
        self.pool.put_nowait(conn)

    def close_all(self) -> None:
        """Mark the pool closed and close every idle connection."""
        self.closed = True
        while True:
            try:
                self.pool.get_nowait().close()
            except Empty:
                break


@lru_cache(maxsize=1)
def get_pool() -> DatabaseConnectionPool:
    """
    Get or create global connection pool

    Thread-safe singleton via @lru_cache.
    """
    db_path = get_db_path()
    return DatabaseConnectionPool(db_path, pool_size=DB_POOL_SIZE)


def reset_pool() -> None:
    """
    Close the global pool and forget it so the next call re-reads the path.

    Side Effects:
        - Closes every pooled connection
        - Clears the get_pool() singleton
    """
    if get_pool.cache_info().currsize:
        get_pool().close_all()
    get_pool.cache_clear()


def get_db_path() -> Path:
    """
    Get database path (environment-aware)

    Checks FEEDQ_DB_PATH environment variable first,
    falls back to default location.
    """
    if env_path := os.getenv("FEEDQ_DB_PATH"):
        return Path(env_path)

    return DB_PATH


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Get pooled database connection (context manager)

    Usage:
        with get_db_connection() as conn:
            rows = conn.execute("SELECT * FROM activity").fetchall()
        # Connection automatically returned to pool

    Raises:
        FileNotFoundError: If database doesn't exist
    """
    db_path = get_db_path()

    if not db_path.exists():
        raise FileNotFoundError(
            f"Database not found: {db_path}\nRun init_database() before first use"
        )

    pool = get_pool()
    conn = pool.get_connection()
    try:
        yield conn
    finally:
        pool.return_connection(conn)


@contextmanager
def db_transaction() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database transactions

    Automatically commits on success, rolls back on error.

    Usage:
        with db_transaction() as conn:
            conn.execute("INSERT INTO activity ...")
        # Auto-commits on success, rolls back on error
    """
    with get_db_connection() as conn:
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            raise e


def validate_schema() -> bool:
    """
    Validate database has expected schema

    Raises:
        ValueError: If tables or columns are missing
    """
    from feedq.infrastructure.database_schema import validate_schema as _validate_schema

    with get_db_connection() as conn:
        return _validate_schema(conn)


def get_pool_stats() -> dict[str, Any]:
    """
    Get connection pool health metrics

    Returns:
        dict with pool size, available connections, and usage stats
    """
    pool = get_pool()
    available = pool.pool.qsize()
    in_use = pool.pool_size - available
    usage_percent = (in_use / pool.pool_size) * 100 if pool.pool_size > 0 else 0

    return {
        "pool_size": pool.pool_size,
        "available": available,
        "in_use": in_use,
        "usage_percent": round(usage_percent, 1),
        "closed": pool.closed,
    }


def init_database() -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS.
    """
    from feedq.infrastructure.database_schema import init_database as _init_database

    db_path = get_db_path()
    _init_database(db_path)
