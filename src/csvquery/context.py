"""
Application context.

Owns every piece of shared mutable state for one app instance: the database
connection, the initialization coordinator and the metrics store. Routes get
it through a dependency rather than module globals, so several independent
instances can live in one process.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from csvquery.config import Settings
from csvquery.core import (
    ColumnInfo,
    CsvLoader,
    Database,
    InitializationCoordinator,
    InitializationState,
    QueryExecutor,
    QueryResult,
    SchemaInspector,
    TableInfo,
    TrustedQuery,
)
from csvquery.exceptions import CsvQueryException
from csvquery.observability import MetricsStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    database: Database
    loader: CsvLoader
    coordinator: InitializationCoordinator
    executor: QueryExecutor
    inspector: SchemaInspector
    metrics: MetricsStore

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        database = Database()
        loader = CsvLoader(database, batch_size=settings.loader.batch_size)
        inspector = SchemaInspector(database)
        coordinator = InitializationCoordinator(
            loader,
            inspector,
            poll_interval=settings.loader.poll_interval_seconds,
            wait_timeout=settings.loader.wait_timeout_seconds,
        )
        return cls(
            settings=settings,
            database=database,
            loader=loader,
            coordinator=coordinator,
            executor=QueryExecutor(database, timeout_seconds=settings.query.timeout_seconds),
            inspector=inspector,
            metrics=MetricsStore(),
        )

    # -------------------------------------------------------------------------
    # Managed table
    # -------------------------------------------------------------------------

    @property
    def csv_path(self) -> Path:
        return Path(self.settings.loader.csv_path)

    @property
    def table_name(self) -> str:
        return self.settings.loader.table_name

    @property
    def state(self) -> InitializationState:
        return self.coordinator.get_state(self.table_name)

    def is_ready(self) -> bool:
        return self.coordinator.is_ready(self.table_name)

    # -------------------------------------------------------------------------
    # Operations (timed into metrics)
    # -------------------------------------------------------------------------

    def initialize(self) -> TableInfo:
        """Load the managed CSV into the managed table unless already loaded."""
        with self._timed("load"):
            info = self.coordinator.ensure_loaded(self.csv_path, self.table_name)
        self.metrics.record_load(info.row_count, cached=info.cached)
        return info

    def run_query(self, query: TrustedQuery) -> QueryResult:
        with self._timed("query"):
            result = self.executor.execute(query)
        self.metrics.record_rows_returned(result.row_count)
        return result

    def describe(self, table_name: str) -> list[ColumnInfo]:
        with self._timed("schema"):
            return self.inspector.describe(table_name)

    def auto_initialize(self) -> None:
        """Best-effort startup load. Failures are logged, never raised."""
        if not self.csv_path.is_file():
            logger.info("No CSV file found for auto-initialization")
            return
        logger.info("Found CSV file, auto-initializing database...")
        try:
            self.initialize()
        except Exception as e:
            logger.error(f"Error during auto-initialization: {e}")
            return
        logger.info("Database auto-initialization complete")

    def close(self) -> None:
        self.database.close()

    @contextmanager
    def _timed(self, operation: str) -> Iterator[None]:
        start_time = time.time()
        error_code = None
        try:
            yield
        except CsvQueryException as e:
            error_code = e.code
            raise
        except Exception:
            error_code = "INTERNAL_ERROR"
            raise
        finally:
            self.metrics.observe(operation, (time.time() - start_time) * 1000, error_code)
