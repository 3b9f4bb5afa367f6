"""Ad-hoc SQL endpoint."""

from fastapi import APIRouter, Depends

from csvquery.context import AppContext
from csvquery.core import TrustedQuery
from csvquery.deps import get_context
from csvquery.schemas import QueryRequest, QueryResponse

router = APIRouter(prefix="/api", tags=["query"])


@router.post("/query", response_model=QueryResponse)
def execute_query(
    body: QueryRequest | None = None,
    context: AppContext = Depends(get_context),
):
    """
    Execute SQL against the shared database, exactly as given.

    The full dialect is available (DDL and DML included) and there is no row
    limit; callers are trusted. Engine errors come back as 400 with the
    engine's message.
    """
    query = TrustedQuery.from_request(body.query if body else None)
    result = context.run_query(query)

    return QueryResponse(
        data=result.rows,
        execution_time=result.execution_time_ms,
        row_count=result.row_count,
        message=f"Query executed successfully. {result.row_count} rows returned.",
    )
