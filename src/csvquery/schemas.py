"""
CSV Query Service - Common Schemas.

Pydantic request/response models. Wire names follow the original JSON API
(camelCase), exposed through field aliases.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Responses
# =============================================================================


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    message: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")
    request_id: str | None = Field(default=None, alias="requestId", description="Request ID for tracing")


# =============================================================================
# Table Schema
# =============================================================================


class ColumnSchema(BaseModel):
    """One column of a table."""

    name: str
    type: str


class InitResponse(BaseModel):
    """Response from /api/init."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    table_name: str = Field(..., alias="tableName")
    row_count: int = Field(..., ge=0, alias="rowCount")
    table_schema: list[ColumnSchema] = Field(..., alias="schema")


class SchemaResponse(BaseModel):
    """Response from /api/schema/{table_name}."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    table_schema: list[ColumnSchema] = Field(..., alias="schema")


# =============================================================================
# Query
# =============================================================================


class QueryRequest(BaseModel):
    """Body of /api/query. A missing query is reported as 400, not 422."""

    query: str | None = Field(default=None, description="SQL text, executed as-is")


class QueryResponse(BaseModel):
    """Rows and timing of an executed query."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: list[dict[str, Any]]
    execution_time: int = Field(..., ge=0, alias="executionTime", description="Wall-clock milliseconds")
    row_count: int = Field(..., ge=0, alias="rowCount")
    message: str


# =============================================================================
# Health Check
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response. Served regardless of readiness."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    message: str = "Server is running"
    version: str
    db_initialized: bool = Field(..., alias="dbInitialized")
    db_initializing: bool = Field(..., alias="dbInitializing")
    row_count: int | None = Field(default=None, alias="rowCount")
    last_error: str | None = Field(default=None, alias="lastError")
