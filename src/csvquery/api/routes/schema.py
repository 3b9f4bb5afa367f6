"""Table schema endpoint."""

import logging
import sqlite3

from fastapi import APIRouter, Depends

from csvquery.context import AppContext
from csvquery.deps import get_context
from csvquery.exceptions import CsvQueryException
from csvquery.schemas import ColumnSchema, SchemaResponse

router = APIRouter(prefix="/api", tags=["schema"])

logger = logging.getLogger(__name__)


@router.get("/schema/{table_name}", response_model=SchemaResponse)
def get_schema(table_name: str, context: AppContext = Depends(get_context)):
    """Column names and declared types of a table; 404 if the table does not exist."""
    try:
        columns = context.describe(table_name)
    except sqlite3.Error as e:
        logger.error(f"Error fetching schema for {table_name}: {e}")
        raise CsvQueryException(
            code="SCHEMA_ERROR",
            message=f"Error fetching schema: {e}",
            status_code=500,
        ) from e

    return SchemaResponse(table_schema=[ColumnSchema(name=col.name, type=col.type) for col in columns])
