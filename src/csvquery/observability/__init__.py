"""
CSV Query Service Observability Module.

Counters for table loads, queries, schema lookups and gate rejections.
"""

from csvquery.observability.metrics import MetricsStore

__all__ = ["MetricsStore"]
