"""
Initialization coordinator.

Guarantees the CSV load for a table runs at most once at a time per process
and publishes readiness only after the load has committed. Callers that
arrive while a load is running wait on a condition variable (bounded wait per
round, so a missed notification only costs one poll interval) and then
re-evaluate: return the ready table, or claim a fresh attempt if the running
load failed.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from csvquery.core.csv_loader import CsvLoader
from csvquery.core.schema_inspector import ColumnInfo, SchemaInspector
from csvquery.exceptions import LoadTimeoutException

logger = logging.getLogger(__name__)


class InitializationState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    READY = "ready"


@dataclass(frozen=True)
class TableInfo:
    table_name: str
    row_count: int
    schema: list[ColumnInfo]
    cached: bool = False


@dataclass
class _TableSlot:
    state: InitializationState = InitializationState.NOT_STARTED
    info: TableInfo | None = None
    last_error: str | None = None
    load_count: int = 0


@dataclass
class _Claim:
    slot: _TableSlot
    owner: bool = False


class InitializationCoordinator:
    """Owns the load lifecycle of every managed table.

    This is the only component that calls CsvLoader, and therefore the only
    one that drops or creates managed tables.
    """

    def __init__(
        self,
        loader: CsvLoader,
        inspector: SchemaInspector,
        poll_interval: float = 0.1,
        wait_timeout: float | None = None,
    ):
        self._loader = loader
        self._inspector = inspector
        self._poll_interval = poll_interval
        self._wait_timeout = wait_timeout
        self._cond = threading.Condition()
        self._slots: dict[str, _TableSlot] = {}

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def get_state(self, table_name: str) -> InitializationState:
        with self._cond:
            return self._slot(table_name).state

    def is_ready(self, table_name: str) -> bool:
        return self.get_state(table_name) is InitializationState.READY

    def last_error(self, table_name: str) -> str | None:
        with self._cond:
            return self._slot(table_name).last_error

    def cached_info(self, table_name: str) -> TableInfo | None:
        """TableInfo recorded by the most recent successful load, if any."""
        with self._cond:
            return self._slot(table_name).info

    def load_count(self, table_name: str) -> int:
        """Number of loads that have completed successfully for a table."""
        with self._cond:
            return self._slot(table_name).load_count

    def _slot(self, table_name: str) -> _TableSlot:
        # Must hold self._cond.
        slot = self._slots.get(table_name)
        if slot is None:
            slot = self._slots[table_name] = _TableSlot()
        return slot

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def ensure_loaded(self, source: str | Path, table_name: str) -> TableInfo:
        """Return info for a loaded table, loading it first if nobody has.

        Exceptions from a load reach only the caller that ran it; callers that
        were waiting see the state fall back to NOT_STARTED and try again
        themselves.
        """
        claim = self._claim(table_name)
        if not claim.owner:
            return self._describe(table_name)

        try:
            result = self._loader.load(source, table_name)
        except Exception as e:
            with self._cond:
                claim.slot.state = InitializationState.NOT_STARTED
                claim.slot.last_error = str(e)
                self._cond.notify_all()
            logger.error(f"Error loading CSV data: {e}", exc_info=True)
            raise

        info = TableInfo(
            table_name=result.table_name,
            row_count=result.row_count,
            schema=result.schema,
        )
        with self._cond:
            claim.slot.info = info
            claim.slot.last_error = None
            claim.slot.load_count += 1
            claim.slot.state = InitializationState.READY
            self._cond.notify_all()
        return info

    def _claim(self, table_name: str) -> _Claim:
        """Wait out any running load, then either find READY or take ownership."""
        started = time.time()
        announced = False
        with self._cond:
            while True:
                slot = self._slot(table_name)
                if slot.state is InitializationState.READY:
                    if announced:
                        logger.info("Using already initialized database")
                    return _Claim(slot=slot)
                if slot.state is InitializationState.NOT_STARTED:
                    slot.state = InitializationState.IN_PROGRESS
                    return _Claim(slot=slot, owner=True)

                if not announced:
                    logger.info("Database initialization already in progress, waiting...")
                    announced = True
                waited = time.time() - started
                if self._wait_timeout is not None and waited >= self._wait_timeout:
                    raise LoadTimeoutException(table_name, waited)
                self._cond.wait(timeout=self._poll_interval)

    def _describe(self, table_name: str) -> TableInfo:
        """Fast path: read the live table from the engine instead of reloading."""
        schema = self._inspector.describe(table_name)
        return TableInfo(
            table_name=table_name,
            row_count=self._inspector.row_count(table_name),
            schema=schema,
            cached=True,
        )
