"""
Initialization endpoint.

Loads the configured CSV into the managed table, or reports the live table
when a previous load already succeeded.
"""

import logging

from fastapi import APIRouter, Depends

from csvquery.context import AppContext
from csvquery.deps import get_context
from csvquery.exceptions import CsvQueryException, NotFoundException
from csvquery.schemas import ColumnSchema, InitResponse

router = APIRouter(prefix="/api", tags=["init"])

logger = logging.getLogger(__name__)


@router.post("/init", response_model=InitResponse)
def init_database(context: AppContext = Depends(get_context)):
    """
    Load `LOADER_CSV_PATH` into `LOADER_TABLE_NAME`.

    - Already loaded: answers from the live table without re-reading the file.
    - Another load running: waits for it, then answers (or retries if it failed).
    - Source file missing: 404.
    - Any other failure: 500 with the loader's message; a later call can retry.
    """
    try:
        info = context.initialize()
    except NotFoundException:
        raise
    except CsvQueryException as e:
        raise CsvQueryException(
            code=e.code,
            message=f"Error initializing database: {e.message}",
            status_code=e.status_code,
            details=e.details,
        ) from e
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise CsvQueryException(
            code="LOAD_FAILURE",
            message=f"Error initializing database: {e}",
            status_code=500,
        ) from e

    if info.cached:
        message = f"Database already initialized with {info.row_count} rows in table {info.table_name}"
    else:
        message = f"Successfully loaded {info.row_count} rows into table {info.table_name}"

    return InitResponse(
        message=message,
        table_name=info.table_name,
        row_count=info.row_count,
        table_schema=[ColumnSchema(name=col.name, type=col.type) for col in info.schema],
    )
