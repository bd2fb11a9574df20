"""PostgreSQL execution adapter using psycopg.

Runs the pgq SQL functions over a psycopg_pool connection pool. Each call borrows a
connection and commits on return, unless it runs inside ``transaction()``, where all
calls on the current thread share one connection and one transaction.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from psycopg import Connection, Cursor
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool
from pydantic import PostgresDsn

from pgq_client.adapter_base import AbstractAdapter
from pgq_client.config import get_settings


class PsycopgAdapter(AbstractAdapter):
    """SQL adapter backed by a psycopg connection pool.

    Connects via a Postgres DSN (argument or ``PGQ_DSN``). Rows are returned as dicts.
    Driver errors (``psycopg.Error`` subclasses) propagate unchanged.
    """

    def __init__(
        self,
        dsn: PostgresDsn | str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ) -> None:
        """Open the pool using the given DSN or the settings default."""
        settings = get_settings()
        raw = dsn or settings.dsn
        if not raw:
            raise ValueError("No DSN provided and PGQ_DSN environment variable is not set")

        self.pool = ConnectionPool(
            conninfo=str(raw),
            min_size=settings.pool_min_size if min_size is None else min_size,
            max_size=settings.pool_max_size if max_size is None else max_size,
            kwargs={"row_factory": dict_row},
            open=True,
        )
        self.logger = logging.getLogger(__name__)
        self._local = threading.local()

    def __enter__(self) -> "PsycopgAdapter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Run every call made inside the block on one connection, in one transaction.

        Commits when the block exits normally, rolls back when it raises. Nested blocks
        become savepoints. Required for batch cursors, which live only as long as the
        transaction that opened them.
        """
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            with conn.transaction():
                yield conn
            return

        # nested blocks, even one placed first, are savepoints in this transaction
        with self.pool.connection() as conn, conn.transaction():
            self._local.conn = conn
            try:
                yield conn
            finally:
                self._local.conn = None

    @contextmanager
    def _cursor(self) -> Iterator[Cursor]:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            with conn.cursor() as cur:
                yield cur
            return

        with self.pool.connection() as conn, conn.cursor() as cur:
            yield cur

    def _run(self, cur: Cursor, sql: str, params: tuple) -> None:
        self.logger.debug("sql=%s params=%r", sql, params)
        cur.execute(sql, params)

    def execute(self, sql: str, *params: Any) -> None:
        with self._cursor() as cur:
            self._run(cur, sql, params)

    def select_all(self, sql: str, *params: Any) -> list[dict[str, Any]]:
        with self._cursor() as cur:
            self._run(cur, sql, params)
            return cur.fetchall()

    def select_one(self, sql: str, *params: Any) -> dict[str, Any] | None:
        with self._cursor() as cur:
            self._run(cur, sql, params)
            return cur.fetchone()

    def select_value(self, sql: str, *params: Any) -> Any:
        row = self.select_one(sql, *params)
        if row is None:
            return None
        return next(iter(row.values()))

    def select_values(self, sql: str, *params: Any) -> list[Any]:
        return [next(iter(row.values())) for row in self.select_all(sql, *params)]

    def close(self) -> None:
        """Close the connection pool; call when done to avoid shutdown warnings."""
        if getattr(self, "pool", None):
            self.pool.close()
