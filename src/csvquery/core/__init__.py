"""
Core components: shared database handle, CSV loader, initialization
coordinator, query executor and schema inspector.
"""

from csvquery.core.coordinator import InitializationCoordinator, InitializationState, TableInfo
from csvquery.core.csv_loader import ColumnType, CsvLoader, LoadResult, infer_schema
from csvquery.core.database import Database, quote_identifier
from csvquery.core.query_executor import QueryExecutor, QueryResult, TrustedQuery
from csvquery.core.schema_inspector import ColumnInfo, SchemaInspector

__all__ = [
    "ColumnInfo",
    "ColumnType",
    "CsvLoader",
    "Database",
    "InitializationCoordinator",
    "InitializationState",
    "LoadResult",
    "QueryExecutor",
    "QueryResult",
    "SchemaInspector",
    "TableInfo",
    "TrustedQuery",
    "infer_schema",
    "quote_identifier",
]
