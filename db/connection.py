"""
db/connection.py
----------------
PostgreSQL connection pool shared by all repositories.

Each job runs in a single process and a single thread, so a
SimpleConnectionPool with a small ceiling is enough. Repositories either
borrow a connection for reads (`get_connection` / `release_connection`)
or wrap writes in `transaction()`.
"""

from contextlib import contextmanager

import psycopg2
from psycopg2 import pool
from config import DATABASE_URL, DB_HOST, DB_NAME, DB_POOL_MAX, DB_POOL_MIN
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: pool.SimpleConnectionPool | None = None


def init_pool(min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX) -> None:
    """
    Open the pool; later calls are no-ops.

    Raises:
        psycopg2.OperationalError: If the database cannot be reached. The
            CLI treats this as a fatal, whole-run failure.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.SimpleConnectionPool(min_conn, max_conn, DATABASE_URL)
    except psycopg2.OperationalError as e:
        logger.error(f"Could not open connection pool to {DB_NAME}@{DB_HOST}: {e}")
        raise
    logger.info(f"Connection pool ready ({min_conn}-{max_conn} connections to {DB_NAME}@{DB_HOST})")


def get_connection():
    """Borrow a connection; raises RuntimeError before `init_pool()`."""
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    """Hand a borrowed connection back."""
    if _pool is not None:
        _pool.putconn(conn)


def close_pool() -> None:
    """Close every pooled connection; safe to call when no pool is open."""
    global _pool
    if _pool is None:
        return
    _pool.closeall()
    _pool = None
    logger.info("Connection pool closed.")


@contextmanager
def transaction():
    """
    Borrow a connection and yield a cursor inside one transaction.

    Commits when the block exits cleanly, rolls back and re-raises
    otherwise. The connection always goes back to the pool.

    Usage:
        with transaction() as cur:
            cur.execute(...)
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        release_connection(conn)
