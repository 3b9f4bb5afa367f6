"""
CSV -> table loader.

Reads the header to derive a flat all-TEXT schema, rebuilds the destination
table and streams the data rows in fixed-size batches through one prepared
INSERT per batch. The whole rebuild is a single transaction: a failure rolls
back to whatever the table looked like before the load started.
"""

from __future__ import annotations

import logging
import sqlite3
import time
import warnings
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import pandas as pd

from csvquery.core.database import Database, quote_identifier
from csvquery.core.schema_inspector import ColumnInfo
from csvquery.exceptions import (
    LoadFailureException,
    NotFoundException,
    SchemaInferenceException,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000

# Shared by the header probe and the row reader so both see the same columns.
_READ_OPTIONS: dict[str, Any] = {
    "dtype": str,
    "keep_default_na": False,
    # Never promote a leading field to an index; long rows must surface.
    "index_col": False,
}


class ColumnType(str, Enum):
    """Declared column types. Loaded columns are always TEXT."""

    TEXT = "TEXT"


@dataclass(frozen=True)
class LoadResult:
    table_name: str
    row_count: int
    schema: list[ColumnInfo]
    batch_sizes: list[int] = field(default_factory=list)


def infer_schema(headers: list[str]) -> list[ColumnInfo]:
    """One TEXT column per header field; values are never type-sniffed."""
    return [ColumnInfo(name=header, type=ColumnType.TEXT.value) for header in headers]


def _to_value(value: Any) -> str | None:
    # Missing fields (short rows) arrive as NaN; everything else is already text.
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return str(value)


class CsvLoader:
    def __init__(self, database: Database, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._db = database
        self.batch_size = batch_size

    def read_headers(self, file_path: Path) -> list[str]:
        """Read just the header record."""
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", pd.errors.ParserWarning)
                frame = pd.read_csv(file_path, nrows=0, **_READ_OPTIONS)
        except pd.errors.EmptyDataError as e:
            raise SchemaInferenceException(str(file_path), "file is empty") from e
        except (pd.errors.ParserError, pd.errors.ParserWarning, UnicodeDecodeError) as e:
            raise SchemaInferenceException(str(file_path), str(e)) from e

        headers = [str(col) for col in frame.columns]
        if not headers:
            raise SchemaInferenceException(str(file_path), "no header fields")
        return headers

    def load(self, file_path: str | Path, table_name: str) -> LoadResult:
        """Drop, recreate and fill table_name from the CSV at file_path."""
        file_path = Path(file_path)
        if not file_path.is_file():
            raise NotFoundException(
                "CSV file",
                str(file_path),
                message="CSV file not found. Please upload the file first.",
            )

        logger.info(f"Loading CSV from {file_path} into table {table_name}")
        start_time = time.time()

        headers = self.read_headers(file_path)
        schema = infer_schema(headers)

        table = quote_identifier(table_name)
        column_defs = ", ".join(f"{quote_identifier(col.name)} {col.type}" for col in schema)
        placeholders = ", ".join("?" for _ in schema)
        insert_sql = f"INSERT INTO {table} VALUES ({placeholders})"

        batch_sizes: list[int] = []
        try:
            with self._db.transaction() as db:
                db.query(f"DROP TABLE IF EXISTS {table}")
                db.query(f"CREATE TABLE {table} ({column_defs})")

                with warnings.catch_warnings():
                    # pandas only warns when a row has more fields than the header.
                    warnings.simplefilter("error", pd.errors.ParserWarning)
                    reader = pd.read_csv(file_path, chunksize=self.batch_size, **_READ_OPTIONS)
                    with reader:
                        for chunk in reader:
                            if chunk.empty:
                                continue
                            rows = [
                                tuple(_to_value(value) for value in record)
                                for record in chunk.itertuples(index=False, name=None)
                            ]
                            db.executemany(insert_sql, rows)
                            batch_sizes.append(len(rows))
        except (
            sqlite3.Error,
            pd.errors.ParserError,
            pd.errors.ParserWarning,
            UnicodeDecodeError,
            ValueError,
        ) as e:
            logger.error(f"Error loading CSV data into {table_name}: {e}")
            raise LoadFailureException(table_name, str(e)) from e

        total_rows = sum(batch_sizes)
        elapsed = time.time() - start_time
        logger.info(
            f"Loaded {total_rows} records into {table_name} "
            f"({len(batch_sizes)} batches, {elapsed:.2f}s)"
        )
        return LoadResult(
            table_name=table_name,
            row_count=total_rows,
            schema=schema,
            batch_sizes=batch_sizes,
        )
