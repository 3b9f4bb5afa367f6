"""
Metrics Endpoint.

Exposes observability metrics for monitoring and debugging.
"""

from fastapi import APIRouter, Depends

from csvquery.context import AppContext
from csvquery.deps import get_context

router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics")
def get_metrics(context: AppContext = Depends(get_context)) -> dict:
    """
    Get current metrics summary.

    Per-operation calls, failures by error code and timing for `load`,
    `query` and `schema`, plus table load counters, rows returned by queries
    and requests rejected before the table was ready.

    Example response:
    ```json
    {
      "uptime_seconds": 3600.5,
      "operations": {
        "query": {
          "calls": 150,
          "failures": 3,
          "errors": {"QUERY_ERROR": 3},
          "mean_ms": 2.4,
          "max_ms": 40.3,
          "last_ms": 1.9
        }
      },
      "table": {"loads": 1, "fast_path_hits": 4, "rows_loaded": 2001},
      "rows_returned": 1280,
      "rejected_requests": {"NOT_INITIALIZED": 2}
    }
    ```
    """
    return context.metrics.get_summary()
