"""
Shared embedded database handle.

One in-memory SQLite connection per application context. Every access goes
through an RLock so the loader's transaction and ad-hoc queries never
interleave on the connection.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import contextmanager
from threading import RLock
from typing import Any, Iterable, Iterator, Sequence

logger = logging.getLogger(__name__)

# Progress handler granularity, in SQLite VM instructions.
_PROGRESS_STEPS = 1000


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use in SQL text."""
    return '"' + name.replace('"', '""') + '"'


class Database:
    def __init__(self, path: str = ":memory:"):
        self._lock = RLock()
        # Autocommit mode: transactions are opened explicitly via transaction().
        self._conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
        self._conn.row_factory = sqlite3.Row
        self._closed = False

    def query(
        self,
        sql: str,
        params: Sequence[Any] = (),
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        """Execute one statement and return its rows as dicts.

        Statements without a result set (DDL, DML) return an empty list.
        With a timeout, the engine aborts the statement once it is exceeded
        and sqlite3.OperationalError("interrupted") propagates.
        """
        with self._lock:
            if timeout is not None:
                deadline = time.time() + timeout
                self._conn.set_progress_handler(lambda: 1 if time.time() > deadline else 0, _PROGRESS_STEPS)
            try:
                cursor = self._conn.execute(sql, params)
                if cursor.description is None:
                    return []
                return [dict(row) for row in cursor.fetchall()]
            finally:
                if timeout is not None:
                    self._conn.set_progress_handler(None, _PROGRESS_STEPS)

    def executemany(self, sql: str, rows: Iterable[Sequence[Any]]) -> None:
        """Run one prepared statement over every parameter row."""
        with self._lock:
            self._conn.executemany(sql, rows)

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Hold the connection for a BEGIN..COMMIT block, rolling back on error."""
        with self._lock:
            self._conn.execute("BEGIN")
            try:
                yield self
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._conn.close()
                self._closed = True
                logger.info("Database connection closed")
