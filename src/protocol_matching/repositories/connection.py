"""
Protocol Store Connection Pool

Repository queries run in worker threads (asyncio.to_thread), so each
cursor borrows its own connection from a psycopg2 ThreadedConnectionPool.
Connections are autocommit; protocol reads never hold a transaction open.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Optional

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import ThreadedConnectionPool

from src.utils.config import get_settings

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Pooled access to the protocol database."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        min_connections: int = 1,
        max_connections: Optional[int] = None,
    ):
        """
        Args:
            database_url: PostgreSQL connection string.
                         Defaults to PROTOCOL_DATABASE_URL setting.
            min_connections: Connections opened when the pool is created
            max_connections: Pool ceiling. Defaults to MAX_CONCURRENT_EVALUATIONS.
        """
        settings = get_settings()
        self.database_url = database_url or settings.protocol_database_url
        if not self.database_url:
            raise ValueError(
                "Database URL required. Set PROTOCOL_DATABASE_URL environment variable "
                "or pass database_url parameter."
            )
        self.min_connections = min_connections
        self.max_connections = max(min_connections, max_connections or settings.max_concurrent_evaluations)
        self._pool: Optional[ThreadedConnectionPool] = None
        self._lock = threading.Lock()

    def get_pool(self) -> ThreadedConnectionPool:
        """Return the connection pool, creating it on first use."""
        with self._lock:
            if self._pool is None or self._pool.closed:
                try:
                    self._pool = ThreadedConnectionPool(
                        self.min_connections, self.max_connections, self.database_url
                    )
                except psycopg2.Error as e:
                    logger.error(f"Failed to connect to protocol database: {e}")
                    raise
                logger.info(f"Opened protocol database pool (max {self.max_connections} connections)")
            return self._pool

    def close(self) -> None:
        """Close every pooled connection."""
        with self._lock:
            if self._pool is not None and not self._pool.closed:
                self._pool.closeall()
                logger.info("Closed protocol database pool")
            self._pool = None

    @contextmanager
    def cursor(self, dict_cursor: bool = True):
        """
        Context manager for a cursor on a pooled connection.

        After a query error the connection is rolled back before it goes
        back to the pool; a connection the server dropped is discarded.

        Args:
            dict_cursor: If True, returns RealDictCursor for dict-like row access

        Yields:
            Database cursor
        """
        pool = self.get_pool()
        conn = pool.getconn()
        discard = False
        try:
            conn.autocommit = True
            cursor_factory = RealDictCursor if dict_cursor else None
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
        except psycopg2.Error:
            discard = bool(conn.closed)
            if not discard:
                try:
                    conn.rollback()
                except psycopg2.Error:
                    discard = True
            raise
        finally:
            pool.putconn(conn, close=discard)

    def __enter__(self):
        self.get_pool()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
