"""
CSV Query Service Metrics Store.

Counters for the three things the service does:
- load: table (re)builds and fast-path hits on an already loaded table
- query: ad-hoc statements and how many rows they returned
- schema: column lookups

Each operation also keeps its call count, failures by error code and timing.
Requests turned away by the readiness gate are counted separately since they
never reach an operation. One store per application context.
"""

from __future__ import annotations

import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

OPERATIONS = ("load", "query", "schema")


@dataclass
class OperationStats:
    calls: int = 0
    errors: Counter = field(default_factory=Counter)
    total_ms: float = 0.0
    max_ms: float = 0.0
    last_ms: float | None = None

    def observe(self, ms: float, error_code: str | None = None) -> None:
        self.calls += 1
        self.total_ms += ms
        self.max_ms = max(self.max_ms, ms)
        self.last_ms = ms
        if error_code is not None:
            self.errors[error_code] += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "calls": self.calls,
            "failures": sum(self.errors.values()),
            "errors": dict(self.errors),
            "mean_ms": round(self.total_ms / self.calls, 3) if self.calls else None,
            "max_ms": round(self.max_ms, 3),
            "last_ms": round(self.last_ms, 3) if self.last_ms is not None else None,
        }


class MetricsStore:
    """Thread-safe counters behind GET /api/metrics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._operations = {name: OperationStats() for name in OPERATIONS}
        self._table_loads = 0
        self._fast_path_hits = 0
        self._rows_loaded = 0
        self._rows_returned = 0
        self._rejected: Counter = Counter()

    def observe(self, operation: str, ms: float, error_code: str | None = None) -> None:
        """Record one finished operation, failed when error_code is set."""
        with self._lock:
            self._operations.setdefault(operation, OperationStats()).observe(ms, error_code)

    def record_load(self, row_count: int, cached: bool) -> None:
        with self._lock:
            if cached:
                self._fast_path_hits += 1
            else:
                self._table_loads += 1
                self._rows_loaded = row_count

    def record_rows_returned(self, row_count: int) -> None:
        with self._lock:
            self._rows_returned += row_count

    def record_rejection(self, code: str) -> None:
        """A request the readiness gate turned away."""
        with self._lock:
            self._rejected[code] += 1

    def get_summary(self) -> dict[str, Any]:
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "operations": {name: stats.to_dict() for name, stats in self._operations.items()},
                "table": {
                    "loads": self._table_loads,
                    "fast_path_hits": self._fast_path_hits,
                    "rows_loaded": self._rows_loaded,
                },
                "rows_returned": self._rows_returned,
                "rejected_requests": dict(self._rejected),
            }
