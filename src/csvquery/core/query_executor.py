"""
Ad-hoc SQL execution against the shared connection.

Statements run exactly as given: the engine's full dialect, DDL and DML
included, no row limit. TrustedQuery marks text that has been accepted for
unrestricted execution so read-only or parameterized modes can be added at
that boundary later.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Any

from csvquery.core.database import Database
from csvquery.exceptions import BadRequestException, QueryException

logger = logging.getLogger(__name__)


def to_json_value(value: Any) -> Any:
    """BLOBs become {"type": "Buffer", "data": [bytes]}; other SQLite values pass through."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"type": "Buffer", "data": list(bytes(value))}
    return value


@dataclass(frozen=True)
class TrustedQuery:
    """SQL text accepted for unrestricted execution."""

    text: str

    @classmethod
    def from_request(cls, text: str | None) -> "TrustedQuery":
        if text is None or not text.strip():
            raise BadRequestException("Query is required")
        return cls(text)


@dataclass(frozen=True)
class QueryResult:
    rows: list[dict[str, Any]]
    execution_time_ms: int
    row_count: int


class QueryExecutor:
    def __init__(self, database: Database, timeout_seconds: float | None = None):
        self._db = database
        self._timeout = timeout_seconds

    def execute(self, query: TrustedQuery) -> QueryResult:
        logger.info(f"Executing query: {query.text}")
        start_time = time.time()
        try:
            raw_rows = self._db.query(query.text, timeout=self._timeout)
        except (sqlite3.Error, sqlite3.Warning) as e:
            logger.warning(f"Error executing query: {e}")
            raise QueryException(f"Error executing query: {e}", sql=query.text) from e
        execution_time = int((time.time() - start_time) * 1000)
        rows = [{key: to_json_value(value) for key, value in row.items()} for row in raw_rows]

        logger.info(f"Query executed in {execution_time}ms, returned {len(rows)} rows")
        return QueryResult(rows=rows, execution_time_ms=execution_time, row_count=len(rows))
