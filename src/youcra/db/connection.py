"""Shared psycopg2 connection pool for the watch-statistics tables."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from psycopg2 import connect
from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.pool import SimpleConnectionPool

from youcra.config.settings import get_settings

DEFAULT_MIN_CONNECTIONS = 1


class DatabaseNotConfiguredError(RuntimeError):
    """Raised when a database operation is attempted without ``DATABASE_URL``."""


class DatabasePool:
    """Commit-or-rollback wrapper around psycopg2's SimpleConnectionPool."""

    def __init__(
        self,
        dsn: str,
        *,
        min_connections: int = DEFAULT_MIN_CONNECTIONS,
        max_connections: int,
    ) -> None:
        self._pool = SimpleConnectionPool(min(min_connections, max_connections), max_connections, dsn)
        self.max_connections = max_connections

    @contextmanager
    def connection(self) -> Iterator[PsycopgConnection]:
        """Yield a pooled connection; commit on success, roll back on error."""

        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def close(self) -> None:
        self._pool.closeall()


_pool: Optional[DatabasePool] = None


def configured_dsn() -> str:
    """Return ``DATABASE_URL`` as a string or fail if it is not set."""

    settings = get_settings()
    if settings.database_url is None:
        raise DatabaseNotConfiguredError("DATABASE_URL is not set; aggregate statistics are unavailable.")
    return str(settings.database_url)


def _ensure_pool() -> DatabasePool:
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = DatabasePool(configured_dsn(), max_connections=settings.database_pool_max_connections)
    return _pool


@contextmanager
def get_connection() -> Iterator[PsycopgConnection]:
    """Connection factory used by the repositories.

    The pool is opened lazily on first use so commands that never touch the
    statistics tables run without ``DATABASE_URL``.
    """

    pool = _ensure_pool()
    with pool.connection() as conn:
        yield conn


def close_pool() -> None:
    """Close the shared pool if one was opened. Safe to call repeatedly."""

    global _pool
    if _pool is not None:
        _pool.close()
        _pool = None


def connection_from_dsn(dsn: str) -> PsycopgConnection:
    """Open a standalone connection, used for migrations outside the pool."""

    return connect(dsn)


__all__ = [
    "DatabaseNotConfiguredError",
    "DatabasePool",
    "close_pool",
    "configured_dsn",
    "connection_from_dsn",
    "get_connection",
]
