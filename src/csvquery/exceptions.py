"""
CSV Query Service - Custom Exceptions.

Centralized exception handling with standardized error responses.
"""

from typing import Any


class CsvQueryException(Exception):
    """Base exception for the CSV query service."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundException(CsvQueryException):
    """Raised when the CSV source file or a table is missing."""

    def __init__(self, resource_type: str, resource_id: str, message: str | None = None):
        super().__init__(
            code="NOT_FOUND",
            message=message or f"{resource_type} not found: {resource_id}",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class BadRequestException(CsvQueryException):
    """Raised for missing or malformed request input."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            code="BAD_REQUEST",
            message=message,
            status_code=400,
            details={"errors": errors} if errors else None,
        )


class SchemaInferenceException(CsvQueryException):
    """Raised when the CSV header is empty or cannot be read."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            code="SCHEMA_INFERENCE_ERROR",
            message=f"Failed to process CSV headers in {source}: {reason}",
            status_code=500,
            details={"source": source},
        )


class LoadFailureException(CsvQueryException):
    """Raised when the engine or parser fails while (re)building the table."""

    def __init__(self, table_name: str, reason: str):
        super().__init__(
            code="LOAD_FAILURE",
            message=f"Failed to load table {table_name}: {reason}",
            status_code=500,
            details={"table": table_name},
        )


class LoadTimeoutException(CsvQueryException):
    """Raised to a waiting caller when another caller's load outlasts the wait timeout."""

    def __init__(self, table_name: str, waited_seconds: float):
        super().__init__(
            code="LOAD_TIMEOUT",
            message=f"Timed out after {waited_seconds:.1f}s waiting for table {table_name} to load",
            status_code=503,
            details={"table": table_name},
        )


class QueryException(CsvQueryException):
    """Raised when the engine rejects a statement."""

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(
            code="QUERY_ERROR",
            message=message,
            status_code=400,
            details={"sql": sql} if sql else None,
        )


class NotInitializedException(CsvQueryException):
    """Raised when a gated route is hit before the managed table is ready."""

    def __init__(self, message: str = "Database not initialized. Please call /api/init endpoint first."):
        super().__init__(
            code="NOT_INITIALIZED",
            message=message,
            status_code=503,
        )
